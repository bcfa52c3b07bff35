"""
Repository for associate requests, recommendations and request responses.
"""

import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.models.associate_request import AssociateRequest, FreelancerRecommendation, RequestResponse


class RequestRepository:
    """Read helpers for request ownership plus the response-state upsert."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, request_id: UUID) -> Optional[AssociateRequest]:
        result = await self.db.execute(
            select(AssociateRequest).where(AssociateRequest.id == request_id)
        )
        return result.scalar_one_or_none()

    async def get_recommendation(
        self,
        request_id: UUID,
        freelancer_id: UUID,
        for_update: bool = False,
    ) -> Optional[FreelancerRecommendation]:
        """
        Fetch the recommendation for a pair.

        With for_update the row is locked for the rest of the transaction,
        which serializes concurrent writers working on the same pair.
        """
        query = select(FreelancerRecommendation).where(
            FreelancerRecommendation.request_id == request_id,
            FreelancerRecommendation.freelancer_id == freelancer_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def upsert_response(
        self,
        request_id: UUID,
        freelancer_id: UUID,
        associate_response: str,
        responded_at: datetime,
    ) -> None:
        """Insert or update the single response row for (request, freelancer)."""
        dialect = self.db.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert

        base_insert = insert(RequestResponse).values(
            id=uuid.uuid4(),
            request_id=request_id,
            freelancer_id=freelancer_id,
            associate_response=associate_response,
            response_date=responded_at,
            created_at=responded_at,
            updated_at=responded_at,
        )
        stmt = base_insert.on_conflict_do_update(
            index_elements=["request_id", "freelancer_id"],
            set_={
                "associate_response": base_insert.excluded.associate_response,
                "response_date": base_insert.excluded.response_date,
                "updated_at": base_insert.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.flush()
