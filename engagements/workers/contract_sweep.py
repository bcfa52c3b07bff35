"""Daily sweep that completes contracts past their expected end date.

The body is a single conditional bulk update, so overlapping runs (a manual
trigger during the scheduled one, or several instances) are harmless.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from engagements.core.config import settings
from engagements.db.session import async_session_maker
from engagements.services.contract_service import ContractService
from engagements.utils.time import utc_now

logger = logging.getLogger(__name__)

JOB_ID = "contract_expiry_sweep"


class ContractSweepJob:
    """Cron-triggered contract reconciliation."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        timezone: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session_factory = session_factory or async_session_maker
        self.hour = settings.CONTRACT_SWEEP_HOUR if hour is None else hour
        self.minute = settings.CONTRACT_SWEEP_MINUTE if minute is None else minute
        self.timezone = timezone or settings.CONTRACT_SWEEP_TIMEZONE
        self.clock = clock
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Start the daily trigger. Must be called from a running event loop."""
        if self.is_running:
            logger.info("Contract sweep already running")
            return

        self.scheduler = AsyncIOScheduler(timezone=self.timezone)
        self.scheduler.add_job(
            self.run_now,
            CronTrigger(hour=self.hour, minute=self.minute, timezone=self.timezone),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            "Contract sweep scheduled daily at %02d:%02d %s",
            self.hour,
            self.minute,
            self.timezone,
        )

    def stop(self) -> None:
        if not self.is_running:
            return
        self.scheduler.shutdown(wait=False)
        self.scheduler = None
        logger.info("Contract sweep stopped")

    def next_run(self) -> Optional[datetime]:
        if not self.is_running:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    def status(self) -> Dict[str, Any]:
        next_run = self.next_run()
        return {
            "is_running": self.is_running,
            "next_run": next_run.isoformat() if next_run else None,
        }

    async def run_now(self) -> Dict[str, Any]:
        """Reconcile expired contracts immediately and report the outcome."""
        logger.info("Running contract expiry sweep")
        try:
            async with self.session_factory() as session:
                updated = await ContractService(session, clock=self.clock).reconcile_expired()
        except Exception as exc:
            logger.exception("Contract expiry sweep failed")
            return {"success": False, "updated_count": 0, "error": str(exc)}

        message = f"Updated {updated} expired contract(s)"
        logger.info("Contract expiry sweep finished: %s", message)
        return {"success": True, "updated_count": updated, "message": message}
