"""Static job list and config file overrides."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from cronpilot.config import get_job_overrides
from cronpilot.models import JobDefinition

logger = logging.getLogger(__name__)

DEFAULT_JOBS: tuple[JobDefinition, ...] = (
    JobDefinition(
        name="youtube-comments",
        schedule="*/15 * * * *",
        handler="youtube.check_comments",
        description="Save new comments on tracked videos and optionally reply",
    ),
    JobDefinition(
        name="youtube-analysis",
        schedule="0 */6 * * *",
        handler="youtube.fetch_for_analysis",
        enabled=False,
        description="Save recent comments on tracked videos for analysis (no replies)",
    ),
    JobDefinition(
        name="content-drafts",
        schedule="0 9 * * *",
        handler="content.generate_draft",
        enabled=False,
        description="Generate a post draft for later review",
    ),
)


def load_job_definitions(overrides: dict[str, dict[str, Any]] | None = None) -> list[JobDefinition]:
    """Build the job list.

    Built-in jobs take ``schedule``, ``enabled`` and ``params`` overrides from
    the config file's ``jobs:`` section. An entry for an unknown name that
    names a ``handler`` and a ``schedule`` adds a new job.

    Args:
        overrides: Per-job overrides (defaults to the config file's).

    Returns:
        Job definitions in declaration order. Invalid custom entries are
        logged and left out, and a built-in job with an invalid override
        keeps its defaults. The registry reports bad schedules and handlers.
    """
    if overrides is None:
        overrides = get_job_overrides()

    jobs: list[JobDefinition] = []
    builtin = {job.name for job in DEFAULT_JOBS}

    for job in DEFAULT_JOBS:
        override = overrides.get(job.name)
        if not override:
            jobs.append(job)
            continue
        try:
            jobs.append(job.with_overrides(override))
        except ValidationError as e:
            logger.error(f"Invalid config for job '{job.name}', keeping its defaults: {e}")
            jobs.append(job)

    for name, entry in overrides.items():
        if name in builtin:
            continue
        if "handler" not in entry or "schedule" not in entry:
            logger.warning(
                f"Ignoring config for unknown job '{name}': needs 'handler' and 'schedule'"
            )
            continue
        try:
            jobs.append(JobDefinition.model_validate({**entry, "name": name}))
        except ValidationError as e:
            logger.error(f"Invalid job '{name}' in config: {e}")

    return jobs
