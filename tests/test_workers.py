import asyncio
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import FailingChannel, seed_request
from engagements.models.hire_record import HireRecord, HireStatus
from engagements.models.notification import Notification
from engagements.workers.contract_sweep import ContractSweepJob
from engagements.workers.notification_dispatcher import NotificationDispatcher


def broken_session_factory():
    raise ConnectionRefusedError("database unreachable")


async def _seed_notifications(db, clock, user_id):
    due = Notification(
        user_id=user_id,
        notification_type="interview_reminder_2h",
        title="Due",
        message="due",
        scheduled_for=clock() - timedelta(minutes=5),
    )
    due_later = Notification(
        user_id=user_id,
        notification_type="interview_reminder_30m",
        title="Due later",
        message="due later",
        scheduled_for=clock() - timedelta(minutes=1),
    )
    future = Notification(
        user_id=user_id,
        notification_type="interview_reminder_24h",
        title="Future",
        message="future",
        scheduled_for=clock() + timedelta(hours=3),
    )
    db.add_all([due, due_later, future])
    await db.commit()
    return due.id, due_later.id, future.id


async def _sent_flags(db):
    result = await db.execute(select(Notification).execution_options(populate_existing=True))
    return {n.id: n.is_sent for n in result.scalars()}


@pytest.mark.db
@pytest.mark.asyncio
async def test_dispatcher_publishes_due_notifications_in_order(db, session_factory, clock, channel):
    user_id = uuid.uuid4()
    due_id, due_later_id, future_id = await _seed_notifications(db, clock, user_id)
    dispatcher = NotificationDispatcher(channel=channel, session_factory=session_factory, clock=clock)

    assert await dispatcher.process_now() == 2

    assert [p["notification"]["title"] for _, p in channel.published] == ["Due", "Due later"]
    assert all(uid == user_id for uid, _ in channel.published)
    assert await _sent_flags(db) == {due_id: True, due_later_id: True, future_id: False}

    assert await dispatcher.process_now() == 0
    assert dispatcher.status()["last_dispatched"] == 0

    clock.advance(hours=4)
    assert await dispatcher.process_now() == 1


@pytest.mark.db
@pytest.mark.asyncio
async def test_dispatcher_marks_sent_even_when_channel_fails(db, session_factory, clock):
    await _seed_notifications(db, clock, uuid.uuid4())
    dispatcher = NotificationDispatcher(channel=FailingChannel(), session_factory=session_factory, clock=clock)

    assert await dispatcher.process_now() == 2
    assert sorted((await _sent_flags(db)).values()) == [False, True, True]


@pytest.mark.db
@pytest.mark.asyncio
async def test_dispatcher_ignores_immediate_notifications(db, session_factory, clock, channel):
    db.add(Notification(user_id=uuid.uuid4(), notification_type="interview_scheduled", title="Now", message="now"))
    await db.commit()

    dispatcher = NotificationDispatcher(channel=channel, session_factory=session_factory, clock=clock)

    assert await dispatcher.process_now() == 0
    assert channel.published == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_dispatcher_tick_logs_and_survives_failures(clock, caplog):
    dispatcher = NotificationDispatcher(session_factory=broken_session_factory, clock=clock)

    await dispatcher.tick()

    assert "Notification dispatch tick failed" in caplog.text


@pytest.mark.db
@pytest.mark.asyncio
async def test_dispatcher_loop_start_and_stop(db, session_factory, clock, channel):
    await _seed_notifications(db, clock, uuid.uuid4())
    dispatcher = NotificationDispatcher(channel=channel, session_factory=session_factory, interval=0.01, clock=clock)

    dispatcher.start()
    dispatcher.start()
    assert dispatcher.status()["is_running"] is True

    for _ in range(100):
        if len(channel.published) == 2:
            break
        await asyncio.sleep(0.01)

    await dispatcher.stop()
    assert dispatcher.status()["is_running"] is False
    assert len(channel.published) == 2


@pytest.mark.db
@pytest.mark.asyncio
async def test_sweep_run_now_reports_updated_count(db, session_factory, clock):
    pair = await seed_request(db)
    db.add_all(
        [
            HireRecord(
                request_id=pair.request_id,
                associate_id=pair.associate_id,
                freelancer_id=pair.freelancer_id,
                project_title=f"Contract {i}",
                agreed_terms="terms",
                expected_end_date=clock().date() - timedelta(days=i + 1),
                status=HireStatus.ACTIVE,
                contract_document_ref="contracts/c.pdf",
            )
            for i in range(2)
        ]
    )
    await db.commit()
    sweep = ContractSweepJob(session_factory=session_factory, clock=clock)

    first = await sweep.run_now()
    second = await sweep.run_now()

    assert first == {"success": True, "updated_count": 2, "message": "Updated 2 expired contract(s)"}
    assert second["updated_count"] == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sweep_run_now_reports_failure(clock):
    sweep = ContractSweepJob(session_factory=broken_session_factory, clock=clock)

    result = await sweep.run_now()

    assert result == {"success": False, "updated_count": 0, "error": "database unreachable"}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_sweep_start_is_idempotent_and_reports_next_run():
    sweep = ContractSweepJob(hour=2, minute=0, timezone="UTC")
    assert sweep.status() == {"is_running": False, "next_run": None}

    sweep.start()
    scheduler = sweep.scheduler
    sweep.start()
    try:
        assert sweep.scheduler is scheduler
        status = sweep.status()
        assert status["is_running"] is True
        next_run = sweep.next_run()
        assert (next_run.hour, next_run.minute) == (2, 0)
        assert next_run.utcoffset() == timedelta(0)
    finally:
        sweep.stop()

    assert sweep.status() == {"is_running": False, "next_run": None}
    sweep.stop()
