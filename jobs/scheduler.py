"""
Background task scheduler.

Wraps APScheduler's AsyncIOScheduler with the periodic-task contract the
monitoring core needs:
- tasks are defined once, then registered/unregistered with an interval
- task callbacks report a BackgroundFetchResult
- consecutive failures back off the interval (x2 per failure, capped)
"""

from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from wallet_monitor.config.constants import SCHEDULER_MAX_BACKOFF_MULTIPLIER
from wallet_monitor.utils.exceptions import BackgroundSchedulingUnavailableError


class BackgroundFetchResult(StrEnum):
    """Outcome of one background task run."""

    NEW_DATA = "new_data"
    NO_DATA = "no_data"
    FAILED = "failed"


TaskCallback = Callable[[], Awaitable[BackgroundFetchResult]]


class BackgroundTaskScheduler:
    """
    Periodic background task registry.

    A None scheduler models an environment without background execution:
    registration raises BackgroundSchedulingUnavailableError.
    """

    def __init__(
        self,
        scheduler: AsyncIOScheduler | None,
        max_backoff_multiplier: int = SCHEDULER_MAX_BACKOFF_MULTIPLIER,
    ) -> None:
        """
        Initialize scheduler wrapper.

        Args:
            scheduler: APScheduler instance, None when unavailable
            max_backoff_multiplier: Cap for the failure backoff
        """
        self.scheduler = scheduler
        self.max_backoff_multiplier = max_backoff_multiplier
        self._callbacks: dict[str, TaskCallback] = {}
        self._base_intervals: dict[str, float] = {}
        self._failures: dict[str, int] = {}
        self._last_results: dict[str, BackgroundFetchResult] = {}

    @property
    def available(self) -> bool:
        return self.scheduler is not None

    def _require_scheduler(self) -> AsyncIOScheduler:
        if self.scheduler is None:
            raise BackgroundSchedulingUnavailableError(
                "Background scheduling is not available in this environment"
            )
        return self.scheduler

    def define_task(self, task_id: str, callback: TaskCallback) -> None:
        """
        Define the callback of a periodic task.

        Args:
            task_id: Task id
            callback: Coroutine function returning BackgroundFetchResult
        """
        self._callbacks[task_id] = callback
        logger.debug(f"Background task defined: {task_id}")

    def register_periodic_task(self, task_id: str, min_interval_ms: int) -> None:
        """
        Schedule a defined task.

        Re-registering replaces the previous schedule.

        Args:
            task_id: Task id (must be defined)
            min_interval_ms: Run interval in milliseconds

        Raises:
            BackgroundSchedulingUnavailableError: If no scheduler is available
            ValueError: If the task was never defined
        """
        scheduler = self._require_scheduler()
        if task_id not in self._callbacks:
            raise ValueError(f"Background task {task_id} is not defined")

        seconds = min_interval_ms / 1000
        scheduler.add_job(
            self.run_task,
            "interval",
            seconds=seconds,
            args=[task_id],
            id=task_id,
            name=task_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._base_intervals[task_id] = seconds
        self._failures[task_id] = 0
        logger.info(f"Background task registered: {task_id} every {seconds:.0f}s")

    def unregister_task(self, task_id: str) -> bool:
        """
        Remove a periodic task schedule. The definition is kept.

        Returns:
            True if a schedule was removed
        """
        self._base_intervals.pop(task_id, None)
        self._failures.pop(task_id, None)
        removed = self.cancel(task_id)
        if removed:
            logger.info(f"Background task unregistered: {task_id}")
        return removed

    def schedule_interval(
        self,
        job_id: str,
        seconds: float,
        func: Callable[[], Awaitable[Any]],
    ) -> None:
        """
        Schedule a plain interval job (no result reporting, no backoff).

        Raises:
            BackgroundSchedulingUnavailableError: If no scheduler is available
        """
        scheduler = self._require_scheduler()
        scheduler.add_job(
            func,
            "interval",
            seconds=seconds,
            id=job_id,
            name=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Interval job scheduled: {job_id} every {seconds:.0f}s")

    def cancel(self, job_id: str) -> bool:
        """
        Remove a job if scheduled.

        Returns:
            True if the job existed
        """
        if self.scheduler is None:
            return False
        try:
            self.scheduler.remove_job(job_id)
            return True
        except JobLookupError:
            return False

    def is_registered(self, job_id: str) -> bool:
        return self.scheduler is not None and self.scheduler.get_job(job_id) is not None

    def last_result(self, task_id: str) -> BackgroundFetchResult | None:
        return self._last_results.get(task_id)

    async def run_task(self, task_id: str) -> BackgroundFetchResult:
        """
        Run a defined task once and adapt its interval to the outcome.

        Exceptions from the callback count as FAILED.

        Args:
            task_id: Task id

        Returns:
            Task outcome
        """
        callback = self._callbacks.get(task_id)
        if callback is None:
            logger.error(f"Background task {task_id} has no callback")
            return BackgroundFetchResult.FAILED

        try:
            result = await callback()
        except Exception as e:
            logger.exception(f"Background task {task_id} crashed: {e}")
            result = BackgroundFetchResult.FAILED

        self._last_results[task_id] = result
        self._apply_backoff(task_id, result)
        return result

    def _apply_backoff(self, task_id: str, result: BackgroundFetchResult) -> None:
        base = self._base_intervals.get(task_id)
        if base is None or self.scheduler is None:
            return

        previous = self._failures.get(task_id, 0)
        failures = previous + 1 if result == BackgroundFetchResult.FAILED else 0
        self._failures[task_id] = failures

        if failures == previous:
            return

        multiplier = min(2**failures, self.max_backoff_multiplier)
        try:
            self.scheduler.reschedule_job(task_id, trigger="interval", seconds=base * multiplier)
        except JobLookupError:
            return

        if failures:
            logger.warning(
                f"Background task {task_id} failed {failures}x, "
                f"next run in {base * multiplier:.0f}s"
            )
        else:
            logger.info(f"Background task {task_id} recovered, interval {base:.0f}s")

    def jobs(self) -> list[dict[str, Any]]:
        """Describe scheduled jobs."""
        if self.scheduler is None:
            return []
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "last_result": str(self._last_results[job.id]) if job.id in self._last_results else None,
            }
            for job in self.scheduler.get_jobs()
        ]

    @property
    def running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self) -> None:
        """Start the underlying scheduler (requires a running event loop)."""
        if self.scheduler is not None and not self.scheduler.running:
            self.scheduler.start()
            logger.info("Background scheduler started")

    def shutdown(self) -> None:
        """Stop the underlying scheduler without waiting for running jobs."""
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Background scheduler stopped")
