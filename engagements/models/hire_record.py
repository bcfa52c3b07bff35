"""
HireRecord model.

One engagement (contract) between an associate and a freelancer for a request.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from engagements.models.base_model import TimestampedModel, UTCDateTime
from engagements.utils.time import utc_now


class HireStatus:
    ACTIVE = "active"
    COMPLETED = "completed"

    ALL = [ACTIVE, COMPLETED]


class HireRecord(TimestampedModel):
    """
    Contract table.

    A freelancer may hold at most one active contract whose expected end date
    is null or in the future. actual_end_date is only set on completion.
    """

    __tablename__ = "freelancer_hires"

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("associate_requests.id"),
        nullable=False,
        index=True,
    )

    associate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    freelancer_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    project_title: Mapped[str] = mapped_column(String(255), nullable=False)

    project_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    agreed_terms: Mapped[str] = mapped_column(Text, nullable=False)

    agreed_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # hourly / daily / fixed
    rate_type: Mapped[str] = mapped_column(String(20), nullable=False, default="hourly")

    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    expected_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    actual_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=HireStatus.ACTIVE)

    associate_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Reference into the document store; content is never inspected here
    contract_document_ref: Mapped[str] = mapped_column(String(500), nullable=False)

    hire_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_freelancer_hires_freelancer_status", "freelancer_id", "status"),
        Index("ix_freelancer_hires_status_expected_end", "status", "expected_end_date"),
    )
