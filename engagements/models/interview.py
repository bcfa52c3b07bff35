"""
Interview workflow models.

Interview, its 1:1 InterviewInvitation and per-evaluator InterviewFeedback.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from engagements.models.base_model import TimestampedModel, UTCDateTime
from engagements.utils.time import utc_now


class InterviewType:
    VIDEO = "video"
    PHONE = "phone"
    IN_PERSON = "in_person"

    ALL = [VIDEO, PHONE, IN_PERSON]


class InterviewStatus:
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    OPEN = [SCHEDULED, IN_PROGRESS]
    TERMINAL = [COMPLETED, CANCELLED]
    # Targets a caller may request through a status update
    UPDATABLE = [IN_PROGRESS, COMPLETED, CANCELLED]

    TRANSITIONS = {
        SCHEDULED: {IN_PROGRESS, CANCELLED},
        IN_PROGRESS: {COMPLETED, CANCELLED},
        COMPLETED: set(),
        CANCELLED: set(),
    }

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        return target in cls.TRANSITIONS.get(current, set())


class InvitationStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"

    RESPONSES = [ACCEPTED, DECLINED]


class FeedbackRecommendation:
    HIRE = "hire"
    NO_HIRE = "no_hire"
    MAYBE = "maybe"

    ALL = [HIRE, NO_HIRE, MAYBE]


class Interview(TimestampedModel):
    """A scheduled meeting for one request/freelancer pair."""

    __tablename__ = "interviews"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("associate_requests.id"),
        nullable=False,
        index=True,
    )

    associate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    freelancer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    interview_type: Mapped[str] = mapped_column(String(20), nullable=False, default=InterviewType.VIDEO)

    scheduled_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

    # Opaque room token from the signaling service (video interviews only)
    meeting_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    interview_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    associate_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    freelancer_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InterviewStatus.SCHEDULED)

    __table_args__ = (
        # At most one open interview per request/freelancer pair
        Index(
            "uq_interviews_open_pair",
            "request_id",
            "freelancer_id",
            unique=True,
            postgresql_where=text("status IN ('scheduled', 'in_progress')"),
            sqlite_where=text("status IN ('scheduled', 'in_progress')"),
        ),
    )


class InterviewInvitation(TimestampedModel):
    """The freelancer's accept/decline gate on an interview."""

    __tablename__ = "interview_invitations"

    interview_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("interviews.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    associate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    freelancer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    invitation_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    invitation_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvitationStatus.PENDING,
    )

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    response_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    responded_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)


class InterviewFeedback(TimestampedModel):
    """One evaluator's assessment of a completed interview."""

    __tablename__ = "interview_feedback"

    interview_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("interviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    evaluator_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # associate / freelancer
    evaluator_role: Mapped[str] = mapped_column(String(20), nullable=False)

    technical_skills_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    communication_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cultural_fit_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_rating: Mapped[int] = mapped_column(Integer, nullable=False)

    strengths: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    areas_for_improvement: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    detailed_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    recommendation: Mapped[str] = mapped_column(String(20), nullable=False)

    submitted_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("interview_id", "evaluator_id", name="uq_interview_feedback_evaluator"),
        CheckConstraint("overall_rating BETWEEN 1 AND 5", name="ck_interview_feedback_overall_range"),
    )
