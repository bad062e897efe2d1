"""Actor identity and request origin for admin routes.

Authentication happens upstream; this layer only reads the authenticated
actor id from the identity header. It never re-authenticates.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.admin.service import AdminActionService
from src.config import settings
from src.schemas.audit import Origin


async def require_actor_id(request: Request) -> str:
    """FastAPI dependency: the authenticated actor id, or 401."""
    actor_id = request.headers.get(settings.security.actor_header, "").strip()
    if not actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing actor identity",
        )
    return actor_id


def request_origin(request: Request) -> Origin:
    """Network address and client string for the audit record."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address: str | None = forwarded.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return Origin(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


def get_action_service(request: Request) -> AdminActionService:
    """The service instance built in the application lifespan."""
    return request.app.state.action_service
