"""Content draft generation job."""

from __future__ import annotations

import logging
import random
from typing import Any

from cronpilot.engine import JobContext, NotConfiguredError, handler
from cronpilot.storage import ContentDraft, DraftRepository

from .options import job_options

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS = (
    "Write a motivational tweet about productivity",
    "Share an interesting fact about AI",
    "Write a thought-provoking question about technology",
)

DRAFT_SYSTEM_PROMPT = (
    "You write short social media posts. Reply with the post text only, "
    "in at most 280 characters, without hashtags unless asked."
)


def choose_prompt(options: dict[str, Any]) -> str:
    """Pick the prompt for a draft.

    A chat message wins, then a fixed ``prompt`` setting, then a random
    entry of ``prompts``.
    """
    if message := options.get("user_message"):
        return str(message)
    if prompt := options.get("prompt"):
        return str(prompt)
    prompts = options.get("prompts")
    if not isinstance(prompts, list) or not prompts:
        prompts = list(DEFAULT_PROMPTS)
    return str(random.choice(prompts))


@handler("content.generate_draft")
async def generate_draft(ctx: JobContext) -> dict[str, Any]:
    """Generate a post and save it as a draft for review."""
    services = ctx.require_services()
    if services.generator is None:
        raise NotConfiguredError("No content generator configured")

    prompt = choose_prompt(job_options(ctx))
    content = await services.generator.generate(prompt, system=DRAFT_SYSTEM_PROMPT)
    logger.info(f"Generated draft: {content[:80]}")

    with services.db.session_scope() as session:
        draft = DraftRepository(session).create(
            ContentDraft(job_name=ctx.job_name, prompt=prompt, content=content)
        )
        draft_id = draft.id

    logger.info(f"Saved draft {draft_id} for review")
    return {"draft_id": draft_id, "prompt": prompt, "content": content}
