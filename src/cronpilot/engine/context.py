"""Job execution context and outcome types for CronPilot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Literal

from .errors import ErrorCategory

if TYPE_CHECKING:
    from cronpilot.services import Services

OutcomeStatus = Literal["success", "failed", "skipped"]


@dataclass
class JobContext:
    """Everything a job handler receives for a single invocation."""

    job_name: str
    params: dict[str, Any] = field(default_factory=dict)
    services: Services | None = None
    trigger_type: str = "scheduled"

    def require_services(self) -> Services:
        """Get the wired services, failing loudly if the job was built without them."""
        if self.services is None:
            msg = f"Job '{self.job_name}' requires services but none were provided"
            raise RuntimeError(msg)
        return self.services


@dataclass
class JobOutcome:
    """Result of a single guarded job invocation.

    Outcomes are transient: the runner keeps the latest one per job for
    status reporting and nothing else.
    """

    job_name: str
    status: OutcomeStatus
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    duration_ms: int = 0
    error: str | None = None
    error_category: ErrorCategory | None = None
    result: Any = None

    @property
    def ok(self) -> bool:
        """Whether the task ran and returned without raising."""
        return self.status == "success"

    @classmethod
    def skipped(cls, job_name: str, reason: str) -> JobOutcome:
        """Create an outcome for a tick that did not invoke the task."""
        now = datetime.now(UTC)
        return cls(
            job_name=job_name, status="skipped", started_at=now, finished_at=now, error=reason
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "job_name": self.job_name,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "error_category": self.error_category.value if self.error_category else None,
        }
