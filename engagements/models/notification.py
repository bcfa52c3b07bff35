"""
Notification model.

A unit of async information delivered to one user, either immediately
(scheduled_for is null) or once scheduled_for has passed.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Index, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from engagements.models.base_model import TimestampedModel, UTCDateTime


class NotificationType:
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_REMINDER_24H = "interview_reminder_24h"
    INTERVIEW_REMINDER_2H = "interview_reminder_2h"
    INTERVIEW_REMINDER_30M = "interview_reminder_30m"


class Notification(TimestampedModel):
    """Notification owned by its recipient."""

    __tablename__ = "notifications"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    sender_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    data: Mapped[Optional[dict]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    # Null means deliver immediately
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_notifications_due", "is_sent", "scheduled_for"),
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )
