"""Idempotent ingestion of items from polled external resources."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cronpilot.engine.errors import (
    CronPilotError,
    DuplicateItemError,
    GenerationError,
    NotConfiguredError,
    NotFoundError,
)
from cronpilot.models import ExternalItem, IngestedItem, IngestionReport, TrackedResource

if TYPE_CHECKING:
    from cronpilot.generation import ContentGenerator
    from cronpilot.ingestion.store import IngestionStore
    from cronpilot.ingestion.youtube import CommentSource

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_REPLY_PROMPT = 'Generate a friendly reply to this YouTube comment: "{text}"'


def _utcnow() -> datetime:
    return datetime.now(UTC)


class IngestionPipeline:
    """Polls tracked resources and records each new item exactly once.

    An item whose dedup key is already stored is skipped, so re-running a
    pass over the same page never creates a second row and never replies
    twice. Replies are only attempted for items inserted by this pass.
    """

    def __init__(
        self,
        store: IngestionStore,
        source: CommentSource,
        generator: ContentGenerator | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        reply_enabled: bool = False,
        reply_prompt: str = DEFAULT_REPLY_PROMPT,
        continue_on_item_error: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize the pipeline.

        Args:
            store: Storage for resources and ingested items.
            source: External source the items are fetched from.
            generator: Content generator used for replies.
            page_size: Items requested per resource per pass.
            reply_enabled: Whether new items get a generated reply.
            reply_prompt: Reply prompt; ``{text}`` is replaced by the item text.
            continue_on_item_error: Keep going after a failed item instead
                of aborting the pass.
            clock: Returns the time recorded as ``last_checked_at``.
        """
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.store = store
        self.source = source
        self.generator = generator
        self.page_size = page_size
        self.reply_enabled = reply_enabled
        self.reply_prompt = reply_prompt
        self.continue_on_item_error = continue_on_item_error
        self._clock = clock

    async def run(self) -> IngestionReport:
        """Run one pass over every tracked resource.

        A source failure for one resource is logged and counted; the pass
        moves on to the next resource and that resource's
        ``last_checked_at`` is left unchanged.

        Raises:
            NotConfiguredError: If the source has no credentials.
        """
        report = IngestionReport()
        resources = self.store.list_resources()
        if not resources:
            logger.info("No resources tracked, nothing to ingest")
            return report

        logger.info(f"Checking {len(resources)} resource(s) for new items")
        for resource in resources:
            report.resources += 1
            try:
                items = await self.source.list_items(resource.external_id, self.page_size)
            except NotConfiguredError:
                raise
            except CronPilotError as e:
                report.source_errors += 1
                logger.error(
                    f"Failed to poll resource {resource.external_id}: {e}",
                    extra={"resource": resource.external_id, "category": e.category.value},
                )
                continue
            report.merge(await self.process_page(resource, items))

        logger.info(
            f"Ingestion finished: {report.new} new, {report.skipped} skipped, "
            f"{report.failed} failed, {report.replied} replied"
        )
        return report

    async def poll_resource(self, resource: TrackedResource) -> IngestionReport:
        """Fetch one page for a single resource and ingest new items."""
        items = await self.source.list_items(resource.external_id, self.page_size)
        report = await self.process_page(resource, items)
        report.resources = 1
        return report

    async def process_page(
        self,
        resource: TrackedResource,
        items: list[ExternalItem],
    ) -> IngestionReport:
        """Ingest a fetched page, then record the check time on the resource."""
        report = IngestionReport(fetched=len(items))

        for item in items:
            try:
                await self._ingest_item(resource, item, report)
            except Exception as e:
                report.failed += 1
                logger.error(
                    f"Failed to ingest item {item.external_id} of {resource.external_id}: {e}",
                    exc_info=not isinstance(e, CronPilotError),
                )
                if not self.continue_on_item_error:
                    raise

        self.store.touch_resource(resource.external_id, self._clock())
        return report

    async def _ingest_item(
        self,
        resource: TrackedResource,
        item: ExternalItem,
        report: IngestionReport,
    ) -> None:
        if self.store.has_item(item.external_id):
            report.skipped += 1
            return

        try:
            self.store.insert_item(IngestedItem.from_external(item, resource.external_id))
        except DuplicateItemError as e:
            # Another pass inserted the same key between lookup and insert
            report.failed += 1
            logger.error(
                f"Uniqueness violation for item {item.external_id}: {e}",
                extra={"resource": resource.external_id, "context": e.context},
            )
            return

        report.new += 1
        logger.info(f"New item {item.external_id} from {item.author_name or 'unknown'}")

        if self.reply_enabled:
            await self._reply(item, report)

    async def _reply(self, item: ExternalItem, report: IngestionReport) -> None:
        """Generate and post a reply. Failures leave the item pending."""
        if self.generator is None:
            report.reply_failed += 1
            logger.warning(f"Reply enabled but no generator available for {item.external_id}")
            return

        try:
            prompt = self.reply_prompt.replace("{text}", item.text)
            reply_text = (await self.generator.generate(prompt)).strip()
            if not reply_text:
                raise GenerationError("Generated reply is empty")
            await self.source.reply(item.external_id, reply_text)
            self.store.mark_replied(item.external_id, reply_text)
        except Exception as e:
            report.reply_failed += 1
            logger.error(
                f"Failed to reply to item {item.external_id}: {e}",
                exc_info=not isinstance(e, CronPilotError),
            )
            return

        report.replied += 1
        logger.info(f"Replied to item {item.external_id}")

    async def track(self, external_id: str) -> TrackedResource:
        """Start tracking a resource, creating it at most once.

        Raises:
            NotFoundError: If the source does not know the resource.
        """
        existing = self.store.get_resource(external_id)
        if existing is not None:
            return existing

        resource = await self.source.get_resource(external_id)
        if resource is None:
            raise NotFoundError(f"Resource not found: {external_id}")

        try:
            created = self.store.add_resource(resource)
        except DuplicateItemError:
            tracked = self.store.get_resource(external_id)
            if tracked is None:
                raise
            return tracked

        logger.info(f"Tracking resource {external_id} ({created.title})")
        return created
