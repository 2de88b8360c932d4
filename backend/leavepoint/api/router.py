from fastapi import APIRouter

from leavepoint.api.balances import balances_router
from leavepoint.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(balances_router)
