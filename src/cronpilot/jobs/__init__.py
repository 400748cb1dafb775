"""Built-in CronPilot jobs.

Importing this package registers the built-in handlers with the
HandlerRegistry.
"""

from . import content, youtube
from .definitions import DEFAULT_JOBS, load_job_definitions

__all__ = ["DEFAULT_JOBS", "content", "load_job_definitions", "youtube"]
