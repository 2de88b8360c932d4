from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from fastapi import FastAPI

    from leavepoint.config import Settings

ACTOR_HEADERS = ["X-Actor-Name", "X-Actor-Email", "X-Role"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure CORS for the dashboard, which sends the actor identity headers."""
    app.add_middleware(
        CORSMiddleware,  # ty: ignore[invalid-argument-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Content-Type", *ACTOR_HEADERS],
    )
