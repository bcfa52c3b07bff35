"""
Repository for HireRecord (contract) database operations.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.models.hire_record import HireRecord, HireStatus


def freelancer_lock_key(freelancer_id: UUID) -> int:
    """Signed 64-bit advisory lock key derived from the freelancer UUID."""
    return int.from_bytes(freelancer_id.bytes[:8], "big", signed=True)


class HireRepository:
    """Repository for contract operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_freelancer(self, freelancer_id: UUID) -> None:
        """
        Serialize hiring for one freelancer until the transaction ends.

        PostgreSQL takes a transaction-scoped advisory lock. SQLite already
        allows a single writer at a time, so nothing is needed there.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(select(func.pg_advisory_xact_lock(freelancer_lock_key(freelancer_id))))

    async def complete_expired(self, today: date) -> int:
        """
        Mark every overdue active contract completed in one conditional UPDATE.

        The WHERE clause is the whole decision, so concurrent runs cannot
        double-apply or lose updates; a second run finds nothing to change.
        """
        stmt = (
            update(HireRecord)
            .where(
                HireRecord.status == HireStatus.ACTIVE,
                HireRecord.expected_end_date.is_not(None),
                HireRecord.expected_end_date < today,
            )
            .values(status=HireStatus.COMPLETED, actual_end_date=today)
            .returning(HireRecord.id)
        )
        result = await self.db.execute(stmt)
        updated_ids = list(result.scalars().all())
        await self.db.flush()
        return len(updated_ids)

    async def list_blocking(self, freelancer_id: UUID, today: date) -> List[HireRecord]:
        """Active contracts whose expected end is open-ended or after today."""
        result = await self.db.execute(
            select(HireRecord)
            .where(
                HireRecord.freelancer_id == freelancer_id,
                HireRecord.status == HireStatus.ACTIVE,
                or_(
                    HireRecord.expected_end_date.is_(None),
                    HireRecord.expected_end_date > today,
                ),
            )
            .order_by(HireRecord.hire_date.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_expired(self, freelancer_id: UUID, today: date) -> List[HireRecord]:
        """Active contracts already past their expected end (pending the next sweep)."""
        result = await self.db.execute(
            select(HireRecord)
            .where(
                HireRecord.freelancer_id == freelancer_id,
                HireRecord.status == HireStatus.ACTIVE,
                HireRecord.expected_end_date.is_not(None),
                HireRecord.expected_end_date < today,
            )
            .order_by(HireRecord.expected_end_date.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_active_for_pair(self, request_id: UUID, freelancer_id: UUID) -> Optional[HireRecord]:
        result = await self.db.execute(
            select(HireRecord)
            .where(
                HireRecord.request_id == request_id,
                HireRecord.freelancer_id == freelancer_id,
                HireRecord.status == HireStatus.ACTIVE,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create(self, hire: HireRecord) -> HireRecord:
        self.db.add(hire)
        await self.db.flush()
        return hire
