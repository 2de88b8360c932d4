# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from leavepoint.exceptions import AppError, NotAuthorized
from leavepoint.schemas.auth import Actor


async def get_actor(
    x_actor_name: str | None = Header(default=None),
    x_actor_email: str | None = Header(default=None),
    x_role: str = Header(default="csp"),
) -> Actor:
    """Extract the acting identity from request headers."""
    if not (x_actor_name or "").strip() and not (x_actor_email or "").strip():
        raise AppError("X-Actor-Name or X-Actor-Email header required", status_code=status.HTTP_401_UNAUTHORIZED)
    return Actor(name=x_actor_name, email=x_actor_email, role=x_role.strip().lower())


ActorDep = Annotated[Actor, Depends(get_actor)]


async def require_admin(actor: ActorDep) -> Actor:
    """Require admin role for the request."""
    if actor.role != "admin":
        raise NotAuthorized("Admin access required")
    return actor


AdminDep = Annotated[Actor, Depends(require_admin)]
