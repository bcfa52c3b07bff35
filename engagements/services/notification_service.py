"""
Notification store adapter and interview reminder scheduling.

Immediate notifications are published as soon as they are stored; deferred
reminders sit in the store until the dispatcher finds them due.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from engagements.core.config import settings
from engagements.db.session import transaction
from engagements.errors import InvalidError, NotFoundError
from engagements.models.notification import Notification, NotificationType
from engagements.repositories.notification_repository import NotificationRepository
from engagements.schemas.notification import NotificationCount, NotificationCreate
from engagements.services.realtime import NullChannel, RealtimeChannel
from engagements.utils.time import as_utc, utc_now

logger = logging.getLogger(__name__)

REALTIME_MESSAGE_TYPE = "interview_notification"


@dataclass(frozen=True)
class ReminderTemplate:
    offset_minutes: int
    notification_type: str
    title: str
    message: str

    @property
    def offset(self) -> timedelta:
        return timedelta(minutes=self.offset_minutes)


REMINDER_TEMPLATES: List[ReminderTemplate] = [
    ReminderTemplate(
        offset_minutes=1440,
        notification_type=NotificationType.INTERVIEW_REMINDER_24H,
        title="Interview Tomorrow",
        message='Your interview for "{job_title}" with {associate_name} is in 24 hours.',
    ),
    ReminderTemplate(
        offset_minutes=120,
        notification_type=NotificationType.INTERVIEW_REMINDER_2H,
        title="Interview in 2 Hours",
        message='Your interview for "{job_title}" with {associate_name} starts in 2 hours.',
    ),
    ReminderTemplate(
        offset_minutes=30,
        notification_type=NotificationType.INTERVIEW_REMINDER_30M,
        title="Interview in 30 Minutes",
        message='Your interview for "{job_title}" with {associate_name} starts in 30 minutes. Get ready to join.',
    ),
]


def build_realtime_payload(notification: Notification) -> Dict[str, Any]:
    """Message pushed to the recipient's live connections."""
    created_at = as_utc(notification.created_at)
    return {
        "type": REALTIME_MESSAGE_TYPE,
        "notification": {
            "id": str(notification.id),
            "notification_type": notification.notification_type,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data,
            "created_at": created_at.isoformat() if created_at else None,
        },
    }


class NotificationService:
    """Creates, delivers and manages notifications for one session."""

    def __init__(
        self,
        db: AsyncSession,
        channel: Optional[RealtimeChannel] = None,
        clock: Callable[[], datetime] = utc_now,
        reminder_offsets: Optional[Sequence[int]] = None,
    ):
        self.db = db
        self.channel = channel or NullChannel()
        self.clock = clock
        self.reminder_offsets = list(
            settings.REMINDER_OFFSETS_MINUTES if reminder_offsets is None else reminder_offsets
        )
        self.repo = NotificationRepository(db)

    async def create_notification(self, data: NotificationCreate) -> Notification:
        async with transaction(self.db):
            notification = await self.repo.create(data)
        return notification

    async def send_notification(self, notification: Notification) -> None:
        """
        Publish one notification to its recipient.

        Channel failures are logged; the caller still treats the
        notification as attempted.
        """
        try:
            await self.channel.publish(notification.user_id, build_realtime_payload(notification))
        except Exception:
            logger.exception(
                "Real-time delivery failed for notification %s (user %s)",
                notification.id,
                notification.user_id,
            )

    async def notify_interview_scheduled(
        self,
        *,
        interview_id: UUID,
        freelancer_id: UUID,
        associate_id: UUID,
        interview_type: str,
        scheduled_date: datetime,
        job_title: str,
        associate_name: Optional[str] = None,
        meeting_token: Optional[str] = None,
    ) -> Notification:
        """Store the immediate 'interview scheduled' notice, push it, mark it sent."""
        scheduled_date = as_utc(scheduled_date)
        associate_label = associate_name or "Your client"
        data = {
            "interview_id": str(interview_id),
            "interview_type": interview_type,
            "scheduled_date": scheduled_date.isoformat(),
            "job_title": job_title,
            "associate_name": associate_label,
        }
        if meeting_token:
            data["meeting_token"] = meeting_token

        # Stored, attempted and marked sent in one commit
        async with transaction(self.db):
            notification = await self.repo.create(
                NotificationCreate(
                    user_id=freelancer_id,
                    sender_id=associate_id,
                    notification_type=NotificationType.INTERVIEW_SCHEDULED,
                    title="New Interview Scheduled",
                    message=(
                        f"{associate_label} has scheduled a {interview_type} interview with you "
                        f'for "{job_title}" on {scheduled_date:%Y-%m-%d} at {scheduled_date:%H:%M} UTC'
                    ),
                    data=data,
                )
            )
            await self.send_notification(notification)
            await self.repo.mark_sent([notification.id])
        return notification

    def reminder_candidates(self, scheduled_time: datetime) -> List[tuple[ReminderTemplate, datetime]]:
        """
        Reminder templates paired with their send time.

        Only configured offsets whose send time is still strictly in the
        future are returned.
        """
        now = as_utc(self.clock())
        scheduled_time = as_utc(scheduled_time)
        candidates = []
        for template in REMINDER_TEMPLATES:
            if template.offset_minutes not in self.reminder_offsets:
                continue
            send_at = scheduled_time - template.offset
            if send_at > now:
                candidates.append((template, send_at))
        return candidates

    async def schedule_reminders(
        self,
        interview_id: UUID,
        freelancer_id: UUID,
        scheduled_time: datetime,
        context: Optional[Dict[str, Any]] = None,
    ) -> List[Notification]:
        """Create the deferred reminders for an interview; past-due candidates are dropped."""
        context = context or {}
        job_title = context.get("job_title") or "your interview"
        associate_name = context.get("associate_name") or "your client"
        sender_id = context.get("associate_id")

        candidates = self.reminder_candidates(scheduled_time)
        if not candidates:
            logger.info("No future reminders for interview %s", interview_id)
            return []

        reminders: List[Notification] = []
        async with transaction(self.db):
            for template, send_at in candidates:
                reminder = await self.repo.create(
                    NotificationCreate(
                        user_id=freelancer_id,
                        sender_id=sender_id,
                        notification_type=template.notification_type,
                        title=template.title,
                        message=template.message.format(job_title=job_title, associate_name=associate_name),
                        data={
                            "interview_id": str(interview_id),
                            "job_title": job_title,
                            "associate_name": associate_name,
                            "scheduled_date": as_utc(scheduled_time).isoformat(),
                            "interview_type": context.get("interview_type"),
                        },
                        scheduled_for=send_at,
                    )
                )
                reminders.append(reminder)

        logger.info(
            "Scheduled %d reminder(s) for interview %s: %s",
            len(reminders),
            interview_id,
            ", ".join(r.notification_type for r in reminders),
        )
        return reminders

    async def dispatch_due(self) -> int:
        """
        Publish every due, unsent notification and mark all of them sent.

        Returns the number of notifications attempted.
        """
        now = self.clock()
        due = await self.repo.list_due(now)
        if not due:
            return 0

        for notification in due:
            await self.send_notification(notification)

        async with transaction(self.db):
            await self.repo.mark_sent([n.id for n in due])

        logger.info("Dispatched %d due notification(s)", len(due))
        return len(due)

    async def list_for_user(
        self,
        user_id: UUID,
        notification_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Notification]:
        if limit < 1 or offset < 0:
            raise InvalidError("limit must be positive and offset non-negative", {"limit": limit, "offset": offset})
        return await self.repo.list_for_user(
            user_id,
            self.clock(),
            notification_type=notification_type,
            limit=limit,
            offset=offset,
        )

    async def count_for_user(self, user_id: UUID) -> NotificationCount:
        total, unread = await self.repo.count_for_user(user_id, self.clock())
        return NotificationCount(total_count=total, unread_count=unread)

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        async with transaction(self.db):
            notification = await self.repo.mark_read(user_id, notification_id)
            if not notification:
                raise NotFoundError("Notification not found", {"notification_id": str(notification_id)})
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        async with transaction(self.db):
            updated = await self.repo.mark_all_read(user_id, self.clock())
        return updated

    async def delete(self, user_id: UUID, notification_id: UUID) -> None:
        async with transaction(self.db):
            deleted = await self.repo.delete(user_id, notification_id)
            if not deleted:
                raise NotFoundError("Notification not found", {"notification_id": str(notification_id)})
