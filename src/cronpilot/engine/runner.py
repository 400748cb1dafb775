"""Guarded job execution for CronPilot."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from cronpilot.models import JobDefinition, OverlapPolicy

from .context import JobContext, JobOutcome
from .errors import CronPilotError, categorize
from .handlers import HandlerRegistry

if TYPE_CHECKING:
    from cronpilot.services import Services

logger = logging.getLogger(__name__)


class TaskRunner:
    """Runs job handlers with error isolation and a per-job overlap guard.

    Each job name owns an ``asyncio.Lock``. Under ``OverlapPolicy.SKIP`` a run
    that finds the lock held returns a ``skipped`` outcome without invoking
    the handler; under ``OverlapPolicy.QUEUE`` it waits for the previous run.
    Handler errors never escape ``run``.
    """

    def __init__(
        self,
        services: Services | None = None,
        overlap_policy: OverlapPolicy = OverlapPolicy.SKIP,
    ) -> None:
        """Initialize the task runner.

        Args:
            services: Services passed to every handler through its JobContext.
            overlap_policy: Behavior for runs that overlap a run of the same job.
        """
        self._services = services
        self._overlap_policy = overlap_policy
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_outcomes: dict[str, JobOutcome] = {}
        self._skipped: dict[str, int] = {}
        self._state_lock = threading.Lock()

    @property
    def overlap_policy(self) -> OverlapPolicy:
        return self._overlap_policy

    def _lock_for(self, job_name: str) -> asyncio.Lock:
        with self._state_lock:
            lock = self._locks.get(job_name)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[job_name] = lock
            return lock

    def is_running(self, job_name: str) -> bool:
        """Check if a job currently has a run in flight."""
        lock = self._locks.get(job_name)
        return lock is not None and lock.locked()

    def last_outcome(self, job_name: str) -> JobOutcome | None:
        """Get the outcome of the most recent completed run of a job."""
        return self._last_outcomes.get(job_name)

    def skipped_count(self, job_name: str) -> int:
        """Get how many runs of a job were skipped by the overlap guard."""
        return self._skipped.get(job_name, 0)

    def forget(self, job_name: str) -> None:
        """Drop the guard and history of a job that was unregistered."""
        with self._state_lock:
            lock = self._locks.get(job_name)
            if lock is not None and not lock.locked():
                del self._locks[job_name]
            self._last_outcomes.pop(job_name, None)
            self._skipped.pop(job_name, None)

    async def run(
        self,
        job: JobDefinition,
        *,
        trigger_type: str = "scheduled",
        params: dict[str, Any] | None = None,
    ) -> JobOutcome:
        """Run a job once under its overlap guard.

        Args:
            job: The job to run.
            trigger_type: What caused the run (scheduled, manual, chat, ...).
            params: Extra parameters merged over the job's own params.

        Returns:
            The structured outcome of the run.
        """
        lock = self._lock_for(job.name)

        if self._overlap_policy is OverlapPolicy.SKIP and lock.locked():
            logger.warning(
                f"Skipping job '{job.name}': previous run still in progress",
                extra={"job": job.name, "trigger": trigger_type},
            )
            self._skipped[job.name] = self._skipped.get(job.name, 0) + 1
            return JobOutcome.skipped(job.name, "previous run still in progress")

        async with lock:
            return await self._execute(job, trigger_type, params or {})

    async def _execute(
        self,
        job: JobDefinition,
        trigger_type: str,
        params: dict[str, Any],
    ) -> JobOutcome:
        started_at = datetime.now(UTC)
        start = time.perf_counter()
        logger.info(f"Running job: {job.name}", extra={"job": job.name, "trigger": trigger_type})

        try:
            handler = HandlerRegistry.get(job.handler)
            context = JobContext(
                job_name=job.name,
                params={**job.params, **params},
                services=self._services,
                trigger_type=trigger_type,
            )
            result = await handler(context)
        except Exception as e:
            duration_ms = int((time.perf_counter() - start) * 1000)
            category = categorize(e)
            logger.error(
                f"Job '{job.name}' failed after {duration_ms}ms: {e}",
                exc_info=not isinstance(e, CronPilotError),
                extra={"job": job.name, "duration_ms": duration_ms, "category": category.value},
            )
            outcome = JobOutcome(
                job_name=job.name,
                status="failed",
                started_at=started_at,
                finished_at=datetime.now(UTC),
                duration_ms=duration_ms,
                error=str(e),
                error_category=category,
            )
        else:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                f"Completed job: {job.name} in {duration_ms}ms",
                extra={"job": job.name, "duration_ms": duration_ms},
            )
            outcome = JobOutcome(
                job_name=job.name,
                status="success",
                started_at=started_at,
                finished_at=datetime.now(UTC),
                duration_ms=duration_ms,
                result=result,
            )

        self._last_outcomes[job.name] = outcome
        return outcome
