"""Scheduler facade for CronPilot jobs."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from cronpilot.engine.context import JobOutcome
from cronpilot.engine.runner import TaskRunner

from .registry import JobRegistry, JobState, RegisteredJob

if TYPE_CHECKING:
    from datetime import tzinfo

    from cronpilot.models import JobDefinition

logger = logging.getLogger(__name__)

# Overlap is decided by the TaskRunner guard. APScheduler's own instance cap
# only bounds how many ticks of one job can be waiting under the queue policy.
MAX_PENDING_TICKS = 5


def _job_id(name: str) -> str:
    return f"job:{name}"


class SchedulerState(str, enum.Enum):
    """Lifecycle state of the scheduler facade."""

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    STOPPED = "stopped"


class SchedulerService:
    """Register, start, stop and inspect cron-scheduled jobs.

    One instance is constructed by the process entry point and passed to
    whatever needs it. APScheduler's ``AsyncIOScheduler`` is the wall clock;
    every firing goes through the TaskRunner so overlap and error handling
    are the same for scheduled, ticked and manual runs.
    """

    def __init__(
        self,
        runner: TaskRunner | None = None,
        timezone: tzinfo | None = None,
        misfire_grace_time: int = 60,
    ) -> None:
        """Initialize the scheduler service.

        Args:
            runner: Task runner used for every job invocation.
            timezone: Timezone for cron evaluation (None for local time).
            misfire_grace_time: Seconds a late tick may still run.
        """
        self._registry = JobRegistry()
        self._runner = runner or TaskRunner()
        self._timezone = timezone
        self._misfire_grace_time = misfire_grace_time
        self._scheduler: AsyncIOScheduler | None = None
        self._state = SchedulerState.UNINITIALIZED
        self._inflight: set[asyncio.Task[JobOutcome]] = set()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._state is SchedulerState.RUNNING

    @property
    def runner(self) -> TaskRunner:
        return self._runner

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    def _build_scheduler(self) -> AsyncIOScheduler:
        job_defaults = {
            "coalesce": True,  # Combine missed runs into one
            "max_instances": MAX_PENDING_TICKS,
            "misfire_grace_time": self._misfire_grace_time,
        }
        if self._timezone is not None:
            return AsyncIOScheduler(job_defaults=job_defaults, timezone=self._timezone)
        return AsyncIOScheduler(job_defaults=job_defaults)

    # Registration

    def register(self, job: JobDefinition) -> bool:
        """Register a job.

        Never raises. Duplicate names are ignored with a warning and invalid
        schedules are rejected with an error log. A job registered while the
        scheduler is running starts immediately.

        Args:
            job: The job definition.

        Returns:
            True if the job was added.
        """
        with self._registry.lock:
            entry = self._registry.register(job)
            if entry is None:
                return False
            if self.is_running:
                self._schedule(entry)
        return True

    def register_all(self, jobs: Iterable[JobDefinition]) -> int:
        """Register several jobs.

        Args:
            jobs: Job definitions to register.

        Returns:
            Number of jobs accepted.
        """
        return sum(1 for job in jobs if self.register(job))

    def unregister(self, name: str) -> bool:
        """Stop a job's clock subscription and remove it.

        Args:
            name: Name of the job.

        Returns:
            True if removed, False if the name was unknown.
        """
        with self._registry.lock:
            entry = self._registry.unregister(name)
            if entry is None:
                return False
            self._unschedule(entry)

        self._runner.forget(name)
        logger.info(f"Unregistered job: {name}")
        return True

    def list(self) -> list[str]:
        """Get the names of all registered jobs."""
        return self._registry.list()

    # Lifecycle

    def start(self) -> None:
        """Start the clock and all enabled jobs.

        Must be called from within a running event loop.
        """
        with self._registry.lock:
            if self.is_running:
                logger.warning("Scheduler is already running.")
                return

            entries = self._registry.entries()
            logger.info(f"Starting scheduler with {len(entries)} job(s)...")

            self._scheduler = self._build_scheduler()
            self._scheduler.start()
            self._state = SchedulerState.RUNNING

            for entry in entries:
                self._schedule(entry)

        logger.info("Scheduler started")

    def stop(self) -> None:
        """Stop all jobs and the clock.

        Idempotent. In-flight runs are not interrupted.
        """
        with self._registry.lock:
            if not self.is_running:
                return

            logger.info("Stopping scheduler...")
            for entry in self._registry.entries():
                self._unschedule(entry)

            if self._scheduler is not None:
                self._scheduler.shutdown(wait=False)
                self._scheduler = None
            self._state = SchedulerState.STOPPED

        logger.info("Scheduler stopped")

    async def wait_idle(self, timeout: float | None = None) -> None:
        """Wait for in-flight runs started by the clock to finish.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely).
        """
        pending = list(self._inflight)
        if pending:
            logger.info(f"Waiting for {len(pending)} running job(s) to finish")
            await asyncio.wait(pending, timeout=timeout)

    def _schedule(self, entry: RegisteredJob) -> None:
        if not entry.enabled:
            logger.info(f"Job '{entry.name}' is disabled. Not scheduling.")
            return
        if self._scheduler is None:
            return

        self._scheduler.add_job(
            self._fire,
            trigger=entry.cron.to_trigger(self._timezone),
            id=_job_id(entry.name),
            name=entry.name,
            args=[entry.name],
            replace_existing=True,
        )
        entry.state = JobState.STARTED
        logger.info(f"Started job: {entry.name}")

    def _unschedule(self, entry: RegisteredJob) -> None:
        if self._scheduler is not None and self._scheduler.get_job(_job_id(entry.name)):
            self._scheduler.remove_job(_job_id(entry.name))
        if entry.state is JobState.STARTED:
            logger.info(f"Stopped job: {entry.name}")
        entry.state = JobState.STOPPED

    # Execution

    async def _fire(self, name: str) -> JobOutcome | None:
        """Clock callback for one tick of a job."""
        entry = self._registry.get(name)
        if entry is None or entry.state is not JobState.STARTED:
            return None

        task = asyncio.create_task(self._runner.run(entry.definition, trigger_type="scheduled"))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        # Shutting APScheduler down cancels its own futures; the shield keeps
        # the job itself running to completion.
        return await asyncio.shield(task)

    async def tick(self, now: datetime | None = None) -> list[JobOutcome]:
        """Run every started job whose schedule matches a timestamp.

        Args:
            now: Timestamp to evaluate (defaults to the current time).

        Returns:
            Outcomes of the jobs that were due, including skipped ones.
        """
        moment = now or datetime.now(self._timezone)
        due = [
            entry
            for entry in self._registry.entries()
            if entry.state is JobState.STARTED and entry.cron.matches(moment)
        ]
        if not due:
            return []

        logger.debug(f"Tick {moment.isoformat()}: {len(due)} job(s) due")
        results = await asyncio.gather(
            *(self._runner.run(entry.definition, trigger_type="scheduled") for entry in due)
        )
        return list(results)

    async def run_now(
        self,
        name: str,
        *,
        trigger_type: str = "manual",
        params: dict[str, Any] | None = None,
    ) -> JobOutcome | None:
        """Run a registered job immediately, outside its schedule.

        Args:
            name: Name of the job.
            trigger_type: Recorded cause of the run.
            params: Extra handler parameters for this run only.

        Returns:
            The outcome, or None if no such job is registered.
        """
        entry = self._registry.get(name)
        if entry is None:
            logger.warning(f"Cannot run unknown job: {name}")
            return None
        if not entry.enabled:
            logger.info(f"Job '{name}' is disabled. Not running.")
            return JobOutcome.skipped(name, "job is disabled")

        return await self._runner.run(entry.definition, trigger_type=trigger_type, params=params)

    # Introspection

    def get_next_run(self, name: str) -> datetime | None:
        """Get next run time for a job.

        Args:
            name: Name of the job.

        Returns:
            Next run datetime or None if not scheduled.
        """
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(_job_id(name))
        return job.next_run_time if job else None

    def describe(self, name: str | None = None) -> list[dict[str, Any]]:
        """Get status information for registered jobs.

        Args:
            name: Optional single job to describe.

        Returns:
            List of job status dictionaries.
        """
        entries = self._registry.entries()
        if name is not None:
            entries = [e for e in entries if e.name == name]

        result: list[dict[str, Any]] = []
        for entry in entries:
            last = self._runner.last_outcome(entry.name)
            result.append(
                {
                    "name": entry.name,
                    "schedule": str(entry.cron),
                    "handler": entry.definition.handler,
                    "description": entry.definition.description,
                    "enabled": entry.enabled,
                    "state": entry.state.value,
                    "running": self._runner.is_running(entry.name),
                    "next_run": self.get_next_run(entry.name),
                    "last_outcome": last.to_dict() if last else None,
                }
            )
        return result
