"""
Repository for interviews, invitations and feedback.
"""

from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from engagements.core.permissions import Roles
from engagements.models.associate_request import AssociateRequest
from engagements.models.interview import (
    Interview,
    InterviewFeedback,
    InterviewInvitation,
    InterviewStatus,
)

InterviewRow = Tuple[Interview, Optional[InterviewInvitation], AssociateRequest]

# Listing is shaped by who is asking: associates see interviews they own,
# freelancers see interviews they were invited to.
PARTY_COLUMNS: Dict[str, InstrumentedAttribute] = {
    Roles.ASSOCIATE: Interview.associate_id,
    Roles.FREELANCER: Interview.freelancer_id,
}


class InterviewRepository:
    """Repository for the interview workflow entities."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, interview_id: UUID, for_update: bool = False) -> Optional[Interview]:
        query = select(Interview).where(Interview.id == interview_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_open_for_pair(self, request_id: UUID, freelancer_id: UUID) -> Optional[Interview]:
        """Scheduled or in-progress interview for the pair, if any."""
        result = await self.db.execute(
            select(Interview)
            .where(
                Interview.request_id == request_id,
                Interview.freelancer_id == freelancer_id,
                Interview.status.in_(InterviewStatus.OPEN),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def add(self, *records) -> None:
        for record in records:
            self.db.add(record)
        await self.db.flush()

    async def get_invitation(self, interview_id: UUID, for_update: bool = False) -> Optional[InterviewInvitation]:
        query = select(InterviewInvitation).where(InterviewInvitation.interview_id == interview_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_feedback_by_evaluator(self, interview_id: UUID, evaluator_id: UUID) -> Optional[InterviewFeedback]:
        result = await self.db.execute(
            select(InterviewFeedback).where(
                InterviewFeedback.interview_id == interview_id,
                InterviewFeedback.evaluator_id == evaluator_id,
            )
        )
        return result.scalar_one_or_none()

    def _party_query(self, party_column: InstrumentedAttribute, user_id: UUID, status: Optional[str]):
        query = (
            select(Interview, InterviewInvitation, AssociateRequest)
            .join(AssociateRequest, AssociateRequest.id == Interview.request_id)
            .outerjoin(InterviewInvitation, InterviewInvitation.interview_id == Interview.id)
            .where(party_column == user_id)
        )
        if status:
            query = query.where(Interview.status == status)
        return query

    async def list_for_party(
        self,
        party_column: InstrumentedAttribute,
        user_id: UUID,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[InterviewRow]:
        """Interviews for one party, newest scheduled first."""
        query = (
            self._party_query(party_column, user_id, status)
            .order_by(Interview.scheduled_date.desc(), Interview.id.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return [tuple(row) for row in result.all()]

    async def count_for_party(
        self,
        party_column: InstrumentedAttribute,
        user_id: UUID,
        status: Optional[str] = None,
    ) -> int:
        query = select(func.count(Interview.id)).where(party_column == user_id)
        if status:
            query = query.where(Interview.status == status)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def get_row(self, interview_id: UUID) -> Optional[InterviewRow]:
        result = await self.db.execute(
            select(Interview, InterviewInvitation, AssociateRequest)
            .join(AssociateRequest, AssociateRequest.id == Interview.request_id)
            .outerjoin(InterviewInvitation, InterviewInvitation.interview_id == Interview.id)
            .where(Interview.id == interview_id)
        )
        row = result.first()
        return tuple(row) if row else None

    async def list_feedback_for(self, interview_ids: List[UUID]) -> Dict[UUID, List[InterviewFeedback]]:
        """Batch fetch feedback, grouped by interview, newest submission first."""
        if not interview_ids:
            return {}

        result = await self.db.execute(
            select(InterviewFeedback)
            .where(InterviewFeedback.interview_id.in_(interview_ids))
            .order_by(InterviewFeedback.submitted_at.desc())
        )
        grouped: Dict[UUID, List[InterviewFeedback]] = {}
        for feedback in result.scalars().all():
            grouped.setdefault(feedback.interview_id, []).append(feedback)
        return grouped
