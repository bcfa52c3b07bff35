"""
Associate request models.

AssociateRequest and FreelancerRecommendation are written by the upstream
matching flow; this service only reads them for ownership and recommendation
checks. RequestResponse is the single response state per request/freelancer
pair and is upserted here when a freelancer is hired.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from engagements.models.base_model import TimestampedModel, UTCDateTime


class AssociateRequest(TimestampedModel):
    """A request posted by an associate looking for freelancers."""

    __tablename__ = "associate_requests"

    associate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Display name used in notification copy
    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class FreelancerRecommendation(TimestampedModel):
    """A platform decision pairing a freelancer with a request."""

    __tablename__ = "freelancer_recommendations"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("associate_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    freelancer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("request_id", "freelancer_id", name="uq_recommendation_request_freelancer"),
    )


class RequestResponse(TimestampedModel):
    """Response state for one request x freelancer pair."""

    __tablename__ = "request_responses"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("associate_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    freelancer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # pending / interested / declined / hired
    associate_response: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")

    response_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("request_id", "freelancer_id", name="uq_request_response_pair"),
    )
