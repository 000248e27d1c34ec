"""Background sync scheduling - interval sync plus reconnect detection."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .config import Config
from .ports.reachability import ReachabilityProbe
from .storage import StorageService

logger = logging.getLogger(__name__)


class SyncScheduler:
    """
    Runs full syncs on a fixed interval and whenever connectivity returns.

    Connectivity is polled every few seconds; an offline-to-online
    transition triggers an immediate sync.
    """

    def __init__(
        self,
        service: StorageService,
        reachability: ReachabilityProbe,
        config: Config,
    ):
        self.service = service
        self.reachability = reachability
        self.config = config
        self.was_online: bool | None = None
        self.scheduler = AsyncIOScheduler()

    async def run_sync(self, reason: str) -> None:
        logger.info(f"Running sync ({reason})")
        try:
            reports = await self.service.sync_now()
        except Exception as e:
            logger.error(f"Sync failed: {type(e).__name__}: {e}")
            return
        for report in reports:
            if report.failed:
                logger.info(f"{len(report.failed)} {report.kind.value} left queued for retry")

    async def check_connectivity(self) -> None:
        """Sync when the device goes from offline to online."""
        try:
            online = await self.reachability.is_online()
        except Exception as e:
            logger.warning(f"Connectivity poll failed: {type(e).__name__}")
            return

        previous = self.was_online
        self.was_online = online
        if online and previous is False:
            await self.run_sync("reconnected")

    def start(self) -> None:
        """Start jobs. Must be called with the event loop running."""
        self.scheduler.add_job(
            self.check_connectivity,
            IntervalTrigger(seconds=self.config.connectivity_poll_seconds),
            id="connectivity",
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.add_job(
            self.run_sync,
            IntervalTrigger(minutes=self.config.sync_interval_minutes),
            args=["interval"],
            id="interval_sync",
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(
            f"Scheduler started: sync every {self.config.sync_interval_minutes} min, "
            f"connectivity poll every {self.config.connectivity_poll_seconds}s"
        )

    def shutdown(self) -> None:
        self.scheduler.shutdown(wait=False)
