"""Flush loop that pushes due deferred notifications to the real-time channel.

Each tick opens its own session, publishes everything that is due and marks
it sent. A failing tick is logged and the loop carries on. Runs as a single
instance per deployment.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from engagements.core.config import settings
from engagements.db.session import async_session_maker
from engagements.services.notification_service import NotificationService
from engagements.services.realtime import NullChannel, RealtimeChannel
from engagements.utils.time import utc_now

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Periodically dispatch due notifications."""

    def __init__(
        self,
        channel: Optional[RealtimeChannel] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        interval: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.channel = channel or NullChannel()
        self.session_factory = session_factory or async_session_maker
        self.interval = interval if interval is not None else settings.NOTIFICATION_FLUSH_INTERVAL_SECONDS
        self.clock = clock
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self.last_run: Optional[datetime] = None
        self.last_dispatched = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def process_now(self) -> int:
        """Dispatch everything currently due; returns how many were attempted."""
        async with self.session_factory() as session:
            service = NotificationService(session, channel=self.channel, clock=self.clock)
            dispatched = await service.dispatch_due()
        self.last_run = self.clock()
        self.last_dispatched = dispatched
        return dispatched

    async def tick(self) -> None:
        try:
            await self.process_now()
        except Exception:
            logger.exception("Notification dispatch tick failed")

    async def run_forever(self) -> None:
        """Tick until stopped, sleeping interval seconds between ticks."""
        while not self._stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        if self.is_running:
            logger.info("Notification dispatcher already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run_forever())
        logger.info("Notification dispatcher started (every %ss)", self.interval)

    async def stop(self) -> None:
        if not self.is_running:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("Notification dispatcher stopped")

    def status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "interval_seconds": self.interval,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_dispatched": self.last_dispatched,
        }
