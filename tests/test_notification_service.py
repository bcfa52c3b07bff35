import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from engagements.errors import DependencyError, InvalidError, NotFoundError
from engagements.models.notification import Notification, NotificationType
from engagements.schemas.notification import NotificationCreate
from engagements.services.notification_service import NotificationService, build_realtime_payload


def _create(user_id, scheduled_for=None, notification_type="interview_scheduled", title="Hello"):
    return NotificationCreate(
        user_id=user_id,
        notification_type=notification_type,
        title=title,
        message=f"{title} message",
        data={"interview_id": str(uuid.uuid4())},
        scheduled_for=scheduled_for,
    )


@pytest.mark.unit
def test_reminder_candidates_drop_past_offsets(clock):
    service = NotificationService(db=None, clock=clock)

    candidates = service.reminder_candidates(clock() + timedelta(hours=3))

    assert [(t.notification_type, at) for t, at in candidates] == [
        (NotificationType.INTERVIEW_REMINDER_2H, clock() + timedelta(hours=1)),
        (NotificationType.INTERVIEW_REMINDER_30M, clock() + timedelta(hours=2, minutes=30)),
    ]


@pytest.mark.unit
def test_reminder_candidate_at_exactly_now_is_dropped(clock):
    service = NotificationService(db=None, clock=clock)

    candidates = service.reminder_candidates(clock() + timedelta(minutes=30))

    assert candidates == []


@pytest.mark.unit
def test_reminder_offsets_are_configurable(clock):
    service = NotificationService(db=None, clock=clock, reminder_offsets=[1440])

    candidates = service.reminder_candidates(clock() + timedelta(days=3))

    assert [t.notification_type for t, _ in candidates] == [NotificationType.INTERVIEW_REMINDER_24H]


@pytest.mark.db
@pytest.mark.asyncio
async def test_schedule_reminders_persists_deferred_rows(db, clock):
    freelancer_id, associate_id = uuid.uuid4(), uuid.uuid4()
    interview_id = uuid.uuid4()
    service = NotificationService(db, clock=clock)

    reminders = await service.schedule_reminders(
        interview_id,
        freelancer_id,
        clock() + timedelta(days=2),
        {"job_title": "ETL Lead", "associate_name": "Acme", "associate_id": associate_id},
    )

    assert len(reminders) == 3
    assert all(r.sender_id == associate_id for r in reminders)
    assert all(not r.is_sent for r in reminders)
    assert reminders[0].data["interview_id"] == str(interview_id)
    assert '"ETL Lead" with Acme' in reminders[0].message


@pytest.mark.db
@pytest.mark.asyncio
async def test_listing_hides_reminders_that_are_not_due(db, clock):
    user_id = uuid.uuid4()
    service = NotificationService(db, clock=clock)
    await service.create_notification(_create(user_id, title="Immediate"))
    await service.create_notification(_create(user_id, scheduled_for=clock() - timedelta(minutes=1), title="Due"))
    await service.create_notification(_create(user_id, scheduled_for=clock() + timedelta(hours=1), title="Later"))
    await service.create_notification(_create(uuid.uuid4(), title="Someone else"))

    listed = await service.list_for_user(user_id)
    assert sorted(n.title for n in listed) == ["Due", "Immediate"]

    count = await service.count_for_user(user_id)
    assert count.total_count == 2
    assert count.unread_count == 2

    clock.advance(hours=2)
    assert len(await service.list_for_user(user_id)) == 3


@pytest.mark.db
@pytest.mark.asyncio
async def test_list_filters_by_type_and_paginates(db, clock):
    user_id = uuid.uuid4()
    service = NotificationService(db, clock=clock)
    for i in range(3):
        await service.create_notification(_create(user_id, title=f"n{i}"))
    await service.create_notification(
        _create(user_id, notification_type=NotificationType.INTERVIEW_REMINDER_2H, scheduled_for=clock())
    )

    reminders = await service.list_for_user(user_id, notification_type=NotificationType.INTERVIEW_REMINDER_2H)
    assert len(reminders) == 1
    assert len(await service.list_for_user(user_id, limit=2)) == 2
    assert len(await service.list_for_user(user_id, limit=2, offset=2)) == 2

    with pytest.raises(InvalidError):
        await service.list_for_user(user_id, limit=0)


@pytest.mark.db
@pytest.mark.asyncio
async def test_mark_read_and_delete_are_scoped_to_recipient(db, clock):
    owner, stranger = uuid.uuid4(), uuid.uuid4()
    service = NotificationService(db, clock=clock)
    first = await service.create_notification(_create(owner))
    await service.create_notification(_create(owner))
    notification_id = first.id

    with pytest.raises(NotFoundError):
        await service.mark_read(stranger, notification_id)

    marked = await service.mark_read(owner, notification_id)
    assert marked.is_read is True
    assert (await service.count_for_user(owner)).unread_count == 1

    assert await service.mark_all_read(owner) == 1
    assert (await service.count_for_user(owner)).unread_count == 0

    with pytest.raises(NotFoundError):
        await service.delete(stranger, notification_id)
    await service.delete(owner, notification_id)
    with pytest.raises(NotFoundError):
        await service.delete(owner, notification_id)

    remaining = (await db.execute(select(Notification.id).where(Notification.user_id == owner))).scalars().all()
    assert notification_id not in remaining
    assert len(remaining) == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_mark_all_read_leaves_pending_reminders_unread(db, clock):
    freelancer_id = uuid.uuid4()
    service = NotificationService(db, clock=clock)
    await service.create_notification(_create(freelancer_id, title="Immediate"))
    await service.schedule_reminders(uuid.uuid4(), freelancer_id, clock() + timedelta(days=2))

    assert await service.mark_all_read(freelancer_id) == 1

    clock.advance(hours=25)
    assert await service.dispatch_due() == 1

    count = await service.count_for_user(freelancer_id)
    assert count.total_count == 2
    assert count.unread_count == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_realtime_payload_shape(db, clock):
    notification = await NotificationService(db, clock=clock).create_notification(_create(uuid.uuid4()))

    payload = build_realtime_payload(notification)

    assert payload["type"] == "interview_notification"
    assert payload["notification"]["id"] == str(notification.id)
    assert set(payload["notification"]) == {"id", "notification_type", "title", "message", "data", "created_at"}


@pytest.mark.db
@pytest.mark.asyncio
async def test_immediate_notice_is_not_left_unsent_when_marking_fails(db, clock, monkeypatch):
    freelancer_id = uuid.uuid4()
    service = NotificationService(db, clock=clock)

    async def store_down(notification_ids):
        raise OperationalError("UPDATE notifications", {}, Exception("connection lost"))

    monkeypatch.setattr(service.repo, "mark_sent", store_down)
    with pytest.raises(DependencyError):
        await service.notify_interview_scheduled(
            interview_id=uuid.uuid4(),
            freelancer_id=freelancer_id,
            associate_id=uuid.uuid4(),
            interview_type="phone",
            scheduled_date=clock() + timedelta(days=1),
            job_title="ETL Lead",
        )

    unsent = await db.execute(
        select(Notification.id).where(Notification.user_id == freelancer_id, Notification.is_sent.is_(False))
    )
    assert unsent.scalars().all() == []
