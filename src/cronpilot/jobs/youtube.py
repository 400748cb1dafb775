"""YouTube comment jobs."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from cronpilot.engine import JobContext, handler
from cronpilot.ingestion import DEFAULT_PAGE_SIZE, DEFAULT_REPLY_PROMPT, IngestionPipeline

from .options import parse_options

logger = logging.getLogger(__name__)

ANALYSIS_PAGE_SIZE = 100


class CommentJobOptions(BaseModel):
    """Options of the comment check job."""

    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    reply_enabled: bool = False
    reply_prompt: str | None = None
    continue_on_item_error: bool = True


class AnalysisJobOptions(BaseModel):
    """Options of the analysis fetch job."""

    page_size: int = Field(default=ANALYSIS_PAGE_SIZE, ge=1)


@handler("youtube.check_comments")
async def check_comments(ctx: JobContext) -> dict[str, Any]:
    """Save new comments on every tracked video, replying if enabled."""
    services = ctx.require_services()
    options = parse_options(CommentJobOptions, ctx)

    pipeline = IngestionPipeline(
        services.ingestion_store,
        services.comment_source,
        services.generator,
        page_size=options.page_size,
        reply_enabled=options.reply_enabled,
        reply_prompt=options.reply_prompt or DEFAULT_REPLY_PROMPT,
        continue_on_item_error=options.continue_on_item_error,
    )
    if not pipeline.reply_enabled:
        logger.debug("Replies disabled; new comments are saved as pending")

    report = await pipeline.run()
    return report.model_dump()


@handler("youtube.fetch_for_analysis")
async def fetch_for_analysis(ctx: JobContext) -> dict[str, Any]:
    """Save recent comments on every tracked video without replying."""
    services = ctx.require_services()
    options = parse_options(AnalysisJobOptions, ctx)

    pipeline = IngestionPipeline(
        services.ingestion_store,
        services.comment_source,
        page_size=options.page_size,
        reply_enabled=False,
    )
    report = await pipeline.run()
    return report.model_dump()
