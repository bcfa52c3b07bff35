"""
Pydantic schemas for notifications.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel

from engagements.schemas.base import TimestampedRead


class NotificationCreate(BaseModel):
    """Internal payload for the notification store."""

    user_id: UUID
    notification_type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    sender_id: Optional[UUID] = None
    scheduled_for: Optional[datetime] = None


class NotificationRead(TimestampedRead):
    user_id: UUID
    sender_id: Optional[UUID] = None
    notification_type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    scheduled_for: Optional[datetime] = None
    is_read: bool
    is_sent: bool


class NotificationCount(BaseModel):
    total_count: int
    unread_count: int
