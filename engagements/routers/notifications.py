"""
Notification router: the caller's own notifications.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.dependencies import get_caller, get_db
from engagements.core.permissions import CallerIdentity
from engagements.schemas.base import success
from engagements.schemas.notification import NotificationRead
from engagements.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    notification_type: Optional[str] = Query(None, alias="type"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    """Immediate notifications plus reminders that are already due, newest first."""
    notifications = await NotificationService(db).list_for_user(
        caller.user_id,
        notification_type=notification_type,
        limit=limit,
        offset=offset,
    )
    return success(data=[NotificationRead.model_validate(n) for n in notifications])


@router.get("/count")
async def count_notifications(
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    count = await NotificationService(db).count_for_user(caller.user_id)
    return success(data=count)


@router.put("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    updated = await NotificationService(db).mark_all_read(caller.user_id)
    return success("All notifications marked as read", {"updated_count": updated})


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    notification = await NotificationService(db).mark_read(caller.user_id, notification_id)
    return success("Notification marked as read", {"notification_id": notification.id})


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    caller: CallerIdentity = Depends(get_caller),
):
    await NotificationService(db).delete(caller.user_id, notification_id)
    return success("Notification deleted", {"notification_id": notification_id})
