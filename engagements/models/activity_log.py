"""
ActivityLog model.

Audit trail of business mutations, written in the same transaction as the
change it records.
"""

import uuid
from typing import Optional

from sqlalchemy import String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from engagements.models.base_model import TimestampedModel


class ActivityLog(TimestampedModel):
    """Activity log table."""

    __tablename__ = "activity_log"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    role: Mapped[str] = mapped_column(String(20), nullable=False)

    # e.g. "freelancer_hired", "interview_scheduled", "interview_feedback_submitted"
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed")

    details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
