"""
Repository for Notification database operations.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from engagements.models.notification import Notification
from engagements.schemas.notification import NotificationCreate


def visible_at(now: datetime):
    """Immediate notifications and reminders whose send time has passed."""
    return or_(Notification.scheduled_for.is_(None), Notification.scheduled_for <= now)


class NotificationRepository:
    """Persistence and queries for notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: NotificationCreate) -> Notification:
        notification = Notification(**data.model_dump())
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def get_for_user(self, user_id: UUID, notification_id: UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_due(self, now: datetime) -> List[Notification]:
        """Deferred notifications whose time has come and that were never attempted."""
        result = await self.db.execute(
            select(Notification)
            .where(
                Notification.scheduled_for.is_not(None),
                Notification.scheduled_for <= now,
                Notification.is_sent.is_(False),
            )
            .order_by(Notification.scheduled_for.asc())
        )
        return list(result.scalars().all())

    async def mark_sent(self, notification_ids: List[UUID]) -> int:
        if not notification_ids:
            return 0
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id.in_(notification_ids))
            .values(is_sent=True)
        )
        await self.db.flush()
        return result.rowcount

    async def list_for_user(
        self,
        user_id: UUID,
        now: datetime,
        notification_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Notification]:
        """Visible notifications for a user: immediate ones and reminders already due."""
        query = select(Notification).where(
            Notification.user_id == user_id,
            visible_at(now),
        )
        if notification_type:
            query = query.where(Notification.notification_type == notification_type)

        query = query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: UUID, now: datetime) -> tuple[int, int]:
        result = await self.db.execute(
            select(
                func.count(Notification.id),
                func.coalesce(func.sum(case((Notification.is_read.is_(False), 1), else_=0)), 0),
            ).where(
                Notification.user_id == user_id,
                visible_at(now),
            )
        )
        total, unread = result.one()
        return int(total), int(unread)

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Optional[Notification]:
        notification = await self.get_for_user(user_id, notification_id)
        if not notification:
            return None
        notification.is_read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, user_id: UUID, now: datetime) -> int:
        """Mark read what the user can currently see; pending reminders stay unread."""
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
                visible_at(now),
            )
            .values(is_read=True)
        )
        await self.db.flush()
        return result.rowcount

    async def delete(self, user_id: UUID, notification_id: UUID) -> bool:
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
        )
        await self.db.flush()
        return result.rowcount > 0
