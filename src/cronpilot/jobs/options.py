"""Option lookup shared by the built-in jobs."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from cronpilot.engine import ConfigError, JobContext

OptionsT = TypeVar("OptionsT", bound=BaseModel)


def job_options(ctx: JobContext) -> dict[str, Any]:
    """Merge job params with the job's stored settings.

    Stored settings win, so values saved through the settings API take
    effect on the next run without a restart.
    """
    services = ctx.require_services()
    return {**ctx.params, **services.settings.get_job_settings(ctx.job_name)}


def parse_options(model: type[OptionsT], ctx: JobContext) -> OptionsT:
    """Validate the merged options of a job against an options model.

    Settings arrive as JSON or raw strings, so values go through pydantic's
    coercion: ``"false"`` is False and ``"20"`` is 20.

    Raises:
        ConfigError: If a value cannot be coerced to its field's type.
    """
    try:
        return model.model_validate(job_options(ctx))
    except ValidationError as e:
        raise ConfigError(f"Invalid options for job '{ctx.job_name}': {e}") from e
