"""Wiring of CronPilot's long-lived collaborators."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from cronpilot.config import (
    get_anthropic_api_key,
    get_database_url,
    get_model,
    get_overlap_policy,
    get_timezone,
    get_youtube_credentials,
)
from cronpilot.engine import ConfigError, TaskRunner
from cronpilot.generation import ChatModel, ClaudeGenerator, ContentGenerator
from cronpilot.ingestion import (
    CommentSource,
    IngestionStore,
    SqlIngestionStore,
    YouTubeCommentSource,
)
from cronpilot.jobs import load_job_definitions
from cronpilot.models import JobDefinition
from cronpilot.scheduler import SchedulerService
from cronpilot.storage import Database, SettingsStore, init_database

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Collaborators shared by job handlers, the API and the CLI.

    Built once by the process entry point and handed to whatever needs it.
    """

    db: Database
    settings: SettingsStore
    ingestion_store: IngestionStore
    comment_source: CommentSource
    generator: ContentGenerator | None = None
    chat_model: ChatModel | None = None


def build_services(
    db: Database | None = None,
    *,
    comment_source: CommentSource | None = None,
    generator: ContentGenerator | None = None,
    chat_model: ChatModel | None = None,
) -> Services:
    """Build services from configuration.

    Anything passed in explicitly is used as-is. A process without provider
    credentials still starts: YouTube credentials are only needed when the
    source is first called, and without an Anthropic API key the generator
    and chat model are left unset, so content jobs fail as not configured
    and chat answers 503.

    Args:
        db: Database to use (defaults to the configured database URL).
        comment_source: Comment source (defaults to the YouTube Data API).
        generator: Content generator (defaults to Claude).
        chat_model: Chat model (defaults to Claude).

    Returns:
        The wired services.
    """
    if db is None:
        db = init_database(get_database_url())

    if comment_source is None:
        credentials = get_youtube_credentials()
        if credentials is None:
            logger.info("YouTube credentials not configured; comment jobs will fail until set")
        comment_source = YouTubeCommentSource(credentials)

    if generator is None or chat_model is None:
        try:
            api_key = get_anthropic_api_key()
        except ConfigError:
            logger.info("Anthropic API key not configured; generation and chat are disabled")
        else:
            claude = ClaudeGenerator(api_key=api_key, model=get_model())
            generator = generator or claude
            chat_model = chat_model or claude

    return Services(
        db=db,
        settings=SettingsStore(db),
        ingestion_store=SqlIngestionStore(db),
        comment_source=comment_source,
        generator=generator,
        chat_model=chat_model,
    )


def build_scheduler(
    services: Services,
    jobs: Iterable[JobDefinition] | None = None,
) -> SchedulerService:
    """Build a scheduler with the job list registered.

    Args:
        services: Services handed to every job handler.
        jobs: Jobs to register (defaults to the built-in list with config
            overrides applied).

    Returns:
        A scheduler that has not been started.
    """
    runner = TaskRunner(services, overlap_policy=get_overlap_policy())
    scheduler = SchedulerService(runner, timezone=get_timezone())

    job_list = list(jobs) if jobs is not None else load_job_definitions()
    accepted = scheduler.register_all(job_list)
    if accepted < len(job_list):
        logger.warning(f"Registered {accepted} of {len(job_list)} job(s); see errors above")
    return scheduler
