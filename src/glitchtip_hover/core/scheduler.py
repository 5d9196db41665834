"""Recurring trigger for sync cycles.

The scheduler owns the timer and nothing else: every cycle goes through
``IssueSync.run_cycle()``, which tests can also call directly without a
running schedule.
"""

from __future__ import annotations

import asyncio
import builtins
import contextlib
from typing import TYPE_CHECKING

import structlog

from glitchtip_hover.utils.logging import LogEventNames

if TYPE_CHECKING:
    from glitchtip_hover.core.sync import IssueSync
    from glitchtip_hover.models.outcome import SyncResult

log = structlog.get_logger()


class SyncScheduler:
    """Runs ``IssueSync.run_cycle()`` on a fixed interval.

    Example:
        scheduler = SyncScheduler(sync, interval_seconds=3600)
        await scheduler.start()
        ...
        await scheduler.trigger()  # manual refresh
        ...
        await scheduler.stop()
    """

    DEFAULT_INTERVAL = 3600
    DEFAULT_SHUTDOWN_TIMEOUT = 10

    def __init__(
        self,
        sync: IssueSync,
        interval_seconds: float = DEFAULT_INTERVAL,
        run_on_start: bool = True,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    ) -> None:
        """Initialize the scheduler.

        Args:
            sync: Sync service whose cycles are triggered.
            interval_seconds: Delay between the end of one scheduled cycle
                and the start of the next.
            run_on_start: Run a cycle as soon as the scheduler starts.
            shutdown_timeout: Seconds ``stop()`` waits for a running cycle
                before cancelling it.
        """
        self._sync = sync
        self._interval = interval_seconds
        self._run_on_start = run_on_start
        self._shutdown_timeout = shutdown_timeout

        self._stop_event: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self._scheduled_runs = 0

    @property
    def is_running(self) -> bool:
        """Return True between ``start()`` and ``stop()``."""
        return self._task is not None and not self._task.done()

    @property
    def scheduled_runs(self) -> int:
        """Return how many cycles the timer has triggered."""
        return self._scheduled_runs

    async def start(self) -> None:
        """Start the recurring schedule in the background."""
        if self.is_running:
            log.warning("scheduler_already_running")
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="glitchtip-hover-scheduler")
        log.info(
            LogEventNames.SCHEDULER_STARTED,
            interval_seconds=self._interval,
            run_on_start=self._run_on_start,
        )

    async def stop(self) -> None:
        """Stop the schedule, waiting briefly for a running cycle to finish."""
        if self._task is None or self._stop_event is None:
            log.warning("scheduler_not_running")
            return

        self._stop_event.set()
        _, pending = await asyncio.wait({self._task}, timeout=self._shutdown_timeout)
        if pending:
            log.warning("cancelling_running_cycle")
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

        self._task = None
        log.info(LogEventNames.SCHEDULER_STOPPED, scheduled_runs=self._scheduled_runs)

    async def wait(self) -> None:
        """Block until the schedule is stopped."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await asyncio.shield(self._task)

    async def trigger(self) -> SyncResult | None:
        """Run a cycle now, outside the schedule."""
        return await self._sync.run_cycle()

    async def _loop(self) -> None:
        assert self._stop_event is not None

        if self._run_on_start:
            await self._run_scheduled()

        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except builtins.TimeoutError:
                await self._run_scheduled()

    async def _run_scheduled(self) -> None:
        self._scheduled_runs += 1
        try:
            await self._sync.run_cycle()
        except Exception as e:
            # The schedule outlives a broken cycle
            log.exception(LogEventNames.SYNC_CYCLE_FAILED, error=str(e), scheduled=True)
