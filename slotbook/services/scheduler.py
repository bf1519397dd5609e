"""Background scheduler for in-memory housekeeping."""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from slotbook.core.config import settings
from slotbook.services.state import ServerState

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """Periodically prunes rate windows and resets throttle counters."""

    def __init__(self, state: ServerState, interval_ms: Optional[int] = None):
        """Initialize the scheduler."""
        self.state = state
        self.interval_seconds = (interval_ms or settings.SWEEP_INTERVAL_MS) / 1000.0
        self.scheduler = AsyncIOScheduler()
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        logger.info("Starting maintenance scheduler")

        self.scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=self.interval_seconds),
            id="sweep_job",
            name="Sweep rate limit and throttle tables",
            replace_existing=True,
        )

        self.scheduler.start()
        self.running = True
        logger.info("Maintenance scheduler started")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping maintenance scheduler")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Maintenance scheduler stopped")

    async def sweep(self):
        """
        Drop idle rate-limit identities and clear throttle counters.

        Counters should be zero between bursts, so clearing them also
        recovers any slot leaked by a crashed attempt.
        """
        removed = self.state.rate_limiter.sweep()
        self.state.throttle.clear()
        logger.debug(f"Maintenance sweep removed {removed} rate limit entries")
