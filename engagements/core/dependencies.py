"""
FastAPI dependencies for the application.
"""

from typing import Callable, List
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status

from engagements.core.permissions import CallerIdentity, Roles, ensure_role
from engagements.db.session import get_db  # noqa: F401  re-exported for routers
from engagements.services.realtime import RealtimeChannel
from engagements.services.signaling import RoomTokenAllocator


async def get_caller(
    x_user_id: str = Header(None),
    x_user_role: str = Header(None),
) -> CallerIdentity:
    """
    Resolve the caller identity forwarded by the gateway.

    Raises 401 if either header is missing or malformed.
    """
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id and X-User-Role headers are required",
        )
    try:
        user_id = UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id must be a UUID",
        )
    role = x_user_role.strip().lower()
    if role not in Roles.ALL:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Unknown role {x_user_role}",
        )
    return CallerIdentity(user_id=user_id, role=role)


def require_roles(allowed_roles: List[str]) -> Callable:
    """
    Dependency to require that the caller has one of the allowed roles.

    Usage:
        @router.post("/schedule")
        async def schedule(caller: CallerIdentity = Depends(require_roles([Roles.ASSOCIATE]))):
            ...
    """
    async def role_checker(caller: CallerIdentity = Depends(get_caller)) -> CallerIdentity:
        ensure_role(caller, allowed_roles)
        return caller
    return role_checker


def get_channel(request: Request) -> RealtimeChannel:
    """Real-time channel installed on app.state at startup."""
    return request.app.state.channel


def get_room_allocator(request: Request) -> RoomTokenAllocator:
    return request.app.state.room_allocator


def get_contract_sweep(request: Request):
    return request.app.state.contract_sweep
