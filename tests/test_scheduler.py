"""Tests for background sync scheduling."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from dreamlog.config import Config
from dreamlog.core.records import RecordKind
from dreamlog.scheduler import SyncScheduler
from dreamlog.sync import DrainReport

from conftest import FakeReachability


def make_scheduler(online=True):
    service = MagicMock()
    service.sync_now = AsyncMock(return_value=[DrainReport(RecordKind.ENTRIES)])
    reachability = FakeReachability(online)
    return SyncScheduler(service, reachability, Config()), service, reachability


class TestCheckConnectivity:
    def test_first_poll_does_not_sync(self):
        scheduler, service, _ = make_scheduler(online=True)

        asyncio.run(scheduler.check_connectivity())

        service.sync_now.assert_not_awaited()
        assert scheduler.was_online is True

    def test_reconnect_triggers_sync(self):
        scheduler, service, reachability = make_scheduler(online=False)

        async def run():
            await scheduler.check_connectivity()
            reachability.online = True
            await scheduler.check_connectivity()

        asyncio.run(run())
        service.sync_now.assert_awaited_once()

    def test_staying_online_does_not_sync(self):
        scheduler, service, _ = make_scheduler(online=True)

        async def run():
            await scheduler.check_connectivity()
            await scheduler.check_connectivity()

        asyncio.run(run())
        service.sync_now.assert_not_awaited()

    def test_going_offline_does_not_sync(self):
        scheduler, service, reachability = make_scheduler(online=True)

        async def run():
            await scheduler.check_connectivity()
            reachability.online = False
            await scheduler.check_connectivity()

        asyncio.run(run())
        service.sync_now.assert_not_awaited()
        assert scheduler.was_online is False

    def test_probe_error_keeps_previous_state(self):
        scheduler, service, reachability = make_scheduler(online=False)
        asyncio.run(scheduler.check_connectivity())
        reachability.is_online = AsyncMock(side_effect=RuntimeError("boom"))

        asyncio.run(scheduler.check_connectivity())

        assert scheduler.was_online is False
        service.sync_now.assert_not_awaited()


class TestRunSync:
    def test_sync_failure_is_logged_not_raised(self, caplog):
        scheduler, service, _ = make_scheduler()
        service.sync_now.side_effect = RuntimeError("boom")

        asyncio.run(scheduler.run_sync("interval"))

        assert "Sync failed" in caplog.text

    def test_start_registers_jobs(self):
        scheduler, _, _ = make_scheduler()

        async def run():
            scheduler.start()
            try:
                return sorted(job.id for job in scheduler.scheduler.get_jobs())
            finally:
                scheduler.shutdown()

        assert asyncio.run(run()) == ["connectivity", "interval_sync"]
