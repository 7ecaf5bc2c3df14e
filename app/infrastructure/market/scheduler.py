"""
Market polling scheduler.

Uses APScheduler's AsyncIOScheduler to drive RatePoller on a fixed
interval inside the application's event loop:
- **Cold start**: the first cycle runs immediately when the scheduler starts
- **Interval**: every ``poll_interval_seconds`` afterwards
- **Overlap**: at most one cycle in flight; missed runs are coalesced

Started and stopped by the FastAPI lifespan.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.application.market.poll_rates import RatePoller

logger = logging.getLogger(__name__)

POLL_JOB_ID = "poll_rates"


class MarketScheduler:
    """Runs the rate poller periodically.

    Usage:
        scheduler = MarketScheduler(poller, interval_seconds=60)
        scheduler.start()   # must be called with a running event loop
        scheduler.stop()
    """

    def __init__(self, poller: RatePoller, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._poller = poller
        self._interval = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._runs = 0
        self._last_run_at: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Register the polling job and start the scheduler."""
        if self._scheduler is not None:
            logger.warning("MarketScheduler already running.")
            return

        scheduler = AsyncIOScheduler(timezone=timezone.utc)
        scheduler.add_job(
            self._run_cycle,
            trigger=IntervalTrigger(seconds=self._interval),
            id=POLL_JOB_ID,
            name="Poll exchange rates",
            next_run_time=datetime.now(timezone.utc),
            coalesce=True,
            max_instances=1,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info("MarketScheduler started (interval=%ss).", self._interval)

    def stop(self) -> None:
        """Stop the scheduler without waiting for an in-flight cycle."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("MarketScheduler stopped.")

    async def _run_cycle(self) -> None:
        self._last_run_at = datetime.now(timezone.utc)
        self._runs += 1
        try:
            await self._poller.poll()
        except Exception:
            # The job must survive unexpected failures so later cycles still run.
            logger.exception("Rate polling cycle crashed")

    def get_status(self) -> dict[str, Any]:
        next_run = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(POLL_JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()
        return {
            "running": self.is_running,
            "interval_seconds": self._interval,
            "runs": self._runs,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "next_run_at": next_run,
        }
