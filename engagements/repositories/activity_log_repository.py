"""
Repository for ActivityLog database operations.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.models.activity_log import ActivityLog


class ActivityLogRepository:
    """Append-only audit rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        user_id: UUID,
        role: str,
        activity_type: str,
        details: Optional[str] = None,
        status: str = "completed",
    ) -> ActivityLog:
        """Add an activity row to the current transaction."""
        entry = ActivityLog(
            user_id=user_id,
            role=role,
            activity_type=activity_type,
            details=details,
            status=status,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> List[ActivityLog]:
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
