"""
Nightly archive timer.

Runs inside the API process as an asyncio task. Each iteration works out the
next firing time from the current wall clock rather than adding 24h to the
last one, so restarts, slow runs and DST changes never make it drift. A run
that fails is logged and recorded in `last_run`; the next night is scheduled
regardless.
"""
import asyncio
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

import structlog
from shared.config.settings import (
    ARCHIVE_CATCH_UP_ON_START,
    ARCHIVE_HOUR,
    ARCHIVE_MINUTE,
    ARCHIVE_RETRY_ATTEMPTS,
    ARCHIVE_RETRY_DELAY,
)
from shared.sales.timeutils import now, yesterday
from .exceptions import ArchiveInProgressError
from .schemas import SchedulerRun, SchedulerStatus
from .service import ArchiveService

logger = structlog.get_logger(__name__)


def next_run_after(current: datetime, hour: int = ARCHIVE_HOUR, minute: int = ARCHIVE_MINUTE) -> datetime:
    """Today at hour:minute if that is still ahead of `current`, else tomorrow."""
    candidate = current.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if current >= candidate:
        candidate = datetime.combine(current.date() + timedelta(days=1), time(hour, minute), tzinfo=current.tzinfo)
    return candidate


def seconds_until(current: datetime, target: datetime) -> float:
    # Subtract in UTC: same-zone aware datetimes subtract as wall-clock time
    return (target.astimezone(timezone.utc) - current.astimezone(timezone.utc)).total_seconds()


class ArchiveScheduler:
    def __init__(
        self,
        service_factory: Callable[[], ArchiveService],
        hour: int = ARCHIVE_HOUR,
        minute: int = ARCHIVE_MINUTE,
        clock: Callable[[], datetime] = now,
        retry_attempts: int = ARCHIVE_RETRY_ATTEMPTS,
        retry_delay: float = ARCHIVE_RETRY_DELAY,
        catch_up_on_start: bool = ARCHIVE_CATCH_UP_ON_START,
    ):
        self._service_factory = service_factory
        self.hour = hour
        self.minute = minute
        self._clock = clock
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.catch_up_on_start = catch_up_on_start

        self.state = "idle"
        self.next_run_at: datetime | None = None
        self.last_run: SchedulerRun | None = None
        self._stopped: asyncio.Event | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._stopped = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="archive-scheduler")

    async def stop(self):
        """Cancellation token for host shutdown; waits for an in-flight run to finish."""
        if self._stopped is not None:
            self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None
        self.state = "stopped"
        self.next_run_at = None
        logger.info("scheduler.stopped")

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            state=self.state,
            next_run_at=self.next_run_at.isoformat() if self.next_run_at else None,
            last_run=self.last_run,
        )

    async def _loop(self):
        if self.catch_up_on_start:
            await self.run_once()

        while not self._stopped.is_set():
            current = self._clock()
            self.next_run_at = next_run_after(current, self.hour, self.minute)
            delay = seconds_until(current, self.next_run_at)
            self.state = "scheduled"
            logger.info("scheduler.scheduled", next_run_at=self.next_run_at.isoformat(), in_seconds=round(delay))

            if await self._wait(delay):
                break
            if self._clock() < self.next_run_at:
                # Timers run on the monotonic clock; woke before the wall clock got there
                continue
            await self.run_once()

    async def run_once(self, target: date | None = None) -> SchedulerRun:
        """Archive `target` (default: yesterday by the clock at firing time)."""
        target = target or yesterday(self._clock())
        self.state = "firing"
        run = None
        for attempt in range(self.retry_attempts + 1):
            run = await self._attempt(target)
            if run.ok or run.error == "in_progress":
                break
            if attempt < self.retry_attempts:
                logger.info("scheduler.retry_scheduled", archive_date=target.isoformat(), in_seconds=self.retry_delay)
                if await self._wait(self.retry_delay):
                    break
        self.state = "scheduled" if self.running else "idle"
        return run

    async def _attempt(self, target: date) -> SchedulerRun:
        run = SchedulerRun(archive_date=target.isoformat(), started_at=self._clock().isoformat())
        try:
            result = await self._service_factory().archive_day(target)
        except ArchiveInProgressError:
            # A manual run already owns this date
            run.error = "in_progress"
            logger.info("scheduler.run_skipped", archive_date=run.archive_date, reason="in_progress")
        except Exception as e:
            # Never let a bad night stop future runs; surface it instead
            run.error = f"{type(e).__name__}: {e}"
            logger.error("scheduler.run_failed", archive_date=run.archive_date, error=run.error, exc_info=True)
        else:
            run.ok = result.ok
            run.archived_count = result.archived_count
            run.failed_order_ids = result.failed_order_ids
            if result.ok:
                logger.info("scheduler.run_completed", archive_date=run.archive_date, archived=result.archived_count)
            else:
                logger.warning(
                    "scheduler.run_incomplete",
                    archive_date=run.archive_date,
                    failed_order_ids=result.failed_order_ids,
                )
        run.finished_at = self._clock().isoformat()
        self.last_run = run
        return run

    async def _wait(self, delay: float) -> bool:
        """Sleep for `delay` seconds; True if stop() was called meanwhile."""
        if self._stopped is None:
            await asyncio.sleep(max(delay, 0))
            return False
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=max(delay, 0))
            return True
        except asyncio.TimeoutError:
            return False
