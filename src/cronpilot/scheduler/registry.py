"""In-memory job registry for CronPilot."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass

from cronpilot.engine.handlers import HandlerRegistry
from cronpilot.models import JobDefinition

from .cron import CronExpression, InvalidCronExpression

logger = logging.getLogger(__name__)


class JobState(str, enum.Enum):
    """Externally visible state of a registered job."""

    STOPPED = "stopped"
    STARTED = "started"


@dataclass
class RegisteredJob:
    """A job accepted into the registry together with its parsed schedule."""

    definition: JobDefinition
    cron: CronExpression
    state: JobState = JobState.STOPPED

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def enabled(self) -> bool:
        return self.definition.enabled


class JobRegistry:
    """Catalog of jobs keyed by name.

    Registration never raises: it runs during process boot, so bad entries
    are logged and skipped while the remaining jobs still register.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, RegisteredJob] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Lock guarding the job map, shared with the scheduler facade."""
        return self._lock

    def register(self, job: JobDefinition) -> RegisteredJob | None:
        """Add a job to the registry.

        Args:
            job: The job definition.

        Returns:
            The registered entry, or None if the job was rejected.
        """
        with self._lock:
            if job.name in self._jobs:
                logger.warning(f"Job '{job.name}' is already registered. Skipping.")
                return None

            try:
                cron = CronExpression.parse(job.schedule)
            except InvalidCronExpression as e:
                logger.error(f"Invalid cron expression for job '{job.name}': {e}")
                return None

            if not HandlerRegistry.has_handler(job.handler):
                logger.error(f"Unknown handler '{job.handler}' for job '{job.name}'")
                return None

            entry = RegisteredJob(definition=job, cron=cron)
            self._jobs[job.name] = entry

        if job.enabled:
            logger.info(f"Registered job: {job.name} ({cron})")
        else:
            logger.info(f"Registered job: {job.name} (disabled, will not be scheduled)")
        return entry

    def unregister(self, name: str) -> RegisteredJob | None:
        """Remove a job from the registry.

        Args:
            name: Name of the job.

        Returns:
            The removed entry, or None if the name was unknown.
        """
        with self._lock:
            entry = self._jobs.pop(name, None)

        if entry is None:
            logger.warning(f"Job '{name}' not found.")
        return entry

    def get(self, name: str) -> RegisteredJob | None:
        """Get a registered job by name."""
        with self._lock:
            return self._jobs.get(name)

    def list(self) -> list[str]:
        """Get the names of all registered jobs."""
        with self._lock:
            return list(self._jobs)

    def entries(self) -> list[RegisteredJob]:
        """Get all registered jobs."""
        with self._lock:
            return list(self._jobs.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
