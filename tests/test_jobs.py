"""Tests for the built-in jobs and the job list."""

import logging

import pytest

from conftest import FakeCommentSource, FakeGenerator, make_item, provider_error
from cronpilot.engine import ConfigError, ErrorCategory, JobContext, NotConfiguredError, TaskRunner
from cronpilot.jobs import DEFAULT_JOBS, load_job_definitions
from cronpilot.jobs.content import DEFAULT_PROMPTS, choose_prompt, generate_draft
from cronpilot.jobs.options import job_options, parse_options
from cronpilot.jobs.youtube import CommentJobOptions, check_comments, fetch_for_analysis
from cronpilot.models import TrackedResource
from cronpilot.services import Services
from cronpilot.storage import DraftRepository


def context(services: Services, job_name: str = "youtube-comments", **params) -> JobContext:
    return JobContext(job_name=job_name, params=params, services=services)


class TestJobDefinitions:
    """Tests for the job list."""

    def test_defaults(self) -> None:
        """Test the built-in jobs without overrides."""
        jobs = {job.name: job for job in load_job_definitions({})}

        assert list(jobs) == [job.name for job in DEFAULT_JOBS]
        assert jobs["youtube-comments"].schedule == "*/15 * * * *"
        assert jobs["youtube-comments"].enabled is True
        assert jobs["content-drafts"].enabled is False

    def test_overrides(self) -> None:
        """Test schedule, enabled and params overrides."""
        jobs = {
            job.name: job
            for job in load_job_definitions(
                {
                    "youtube-comments": {
                        "schedule": "*/5 * * * *",
                        "params": {"page_size": 10},
                    },
                    "content-drafts": {"enabled": True},
                }
            )
        }

        assert jobs["youtube-comments"].schedule == "*/5 * * * *"
        assert jobs["youtube-comments"].params == {"page_size": 10}
        assert jobs["content-drafts"].enabled is True
        assert DEFAULT_JOBS[0].schedule == "*/15 * * * *"

    def test_custom_job(self) -> None:
        """Test a config entry with handler and schedule adds a job."""
        jobs = load_job_definitions(
            {
                "second-channel": {
                    "handler": "youtube.check_comments",
                    "schedule": "0 * * * *",
                    "params": {"reply_enabled": True},
                }
            }
        )

        custom = jobs[-1]
        assert custom.name == "second-channel"
        assert custom.params == {"reply_enabled": True}

    def test_incomplete_custom_job_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an unknown name without handler and schedule is ignored."""
        with caplog.at_level(logging.WARNING):
            jobs = load_job_definitions({"typo-job": {"enabled": True}})

        assert len(jobs) == len(DEFAULT_JOBS)
        assert "typo-job" in caplog.text

    def test_invalid_custom_job_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an entry failing validation is logged and left out."""
        with caplog.at_level(logging.ERROR):
            jobs = load_job_definitions(
                {"broken": {"handler": "", "schedule": "* * * * *"}}
            )

        assert len(jobs) == len(DEFAULT_JOBS)
        assert "Invalid job 'broken'" in caplog.text

    def test_custom_job_with_name_key(self) -> None:
        """Test a custom entry repeating its name is accepted."""
        jobs = load_job_definitions(
            {
                "extra": {
                    "name": "ignored",
                    "handler": "content.generate_draft",
                    "schedule": "* * * * *",
                }
            }
        )

        assert jobs[-1].name == "extra"

    @pytest.mark.parametrize("value", ["false", "no", "off", "0", False])
    def test_enabled_override_coerced(self, value: object) -> None:
        """Test string booleans in config disable a job."""
        jobs = {
            job.name: job
            for job in load_job_definitions({"youtube-comments": {"enabled": value}})
        }

        assert jobs["youtube-comments"].enabled is False

    def test_invalid_override_keeps_defaults(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test an override that fails validation is logged and ignored."""
        with caplog.at_level(logging.ERROR):
            jobs = {
                job.name: job
                for job in load_job_definitions({"content-drafts": {"enabled": "sometimes"}})
            }

        assert jobs["content-drafts"].enabled is False
        assert "Invalid config for job 'content-drafts'" in caplog.text

    def test_overrides_from_config_file(self, cronpilot_home) -> None:
        """Test overrides are read from config.yaml by default."""
        cronpilot_home.mkdir(parents=True)
        (cronpilot_home / "config.yaml").write_text(
            "jobs:\n  youtube-comments:\n    enabled: false\n"
        )

        jobs = {job.name: job for job in load_job_definitions()}

        assert jobs["youtube-comments"].enabled is False


class TestJobOptions:
    """Tests for option lookup."""

    def test_settings_win_over_params(self, services: Services) -> None:
        """Test stored settings override job params."""
        services.settings.set_job_settings("youtube-comments", {"page_size": 5})

        options = job_options(context(services, page_size=50, reply_enabled=True))

        assert options == {"page_size": 5, "reply_enabled": True}

    def test_parse_options_coerces_settings(self, services: Services) -> None:
        """Test stored string values are coerced to the option types."""
        services.settings.set_job_settings(
            "youtube-comments", {"reply_enabled": "false", "page_size": "20"}
        )

        options = parse_options(CommentJobOptions, context(services))

        assert options.reply_enabled is False
        assert options.page_size == 20
        assert options.continue_on_item_error is True

    def test_parse_options_invalid(self, services: Services) -> None:
        """Test a value that cannot be coerced is a configuration error."""
        services.settings.set_job_settings("youtube-comments", {"page_size": "lots"})

        with pytest.raises(ConfigError, match="Invalid options for job 'youtube-comments'"):
            parse_options(CommentJobOptions, context(services))

    def test_requires_services(self) -> None:
        """Test a context without services fails."""
        with pytest.raises(RuntimeError, match="requires services"):
            job_options(JobContext(job_name="youtube-comments"))


class TestCheckComments:
    """Tests for the youtube.check_comments handler."""

    @pytest.mark.asyncio
    async def test_saves_new_comments(
        self, services: Services, tracked_video: TrackedResource, source: FakeCommentSource
    ) -> None:
        """Test new comments are stored as pending."""
        source.pages["vid-1"] = [make_item("c1"), make_item("c2")]

        result = await check_comments(context(services))

        assert result["new"] == 2
        assert result["replied"] == 0
        assert services.ingestion_store.get_item("c1").status == "pending"
        assert source.replies == []

    @pytest.mark.asyncio
    async def test_reply_enabled_by_settings(
        self,
        services: Services,
        tracked_video: TrackedResource,
        source: FakeCommentSource,
        generator: FakeGenerator,
    ) -> None:
        """Test replies follow the stored settings."""
        source.pages["vid-1"] = [make_item("c1", text="Love it")]
        services.settings.set_job_settings(
            "youtube-comments",
            {"reply_enabled": True, "reply_prompt": "Answer briefly: {text}"},
        )

        result = await check_comments(context(services))

        assert result["replied"] == 1
        assert generator.prompts == ["Answer briefly: Love it"]
        assert services.ingestion_store.get_item("c1").status == "replied"


    @pytest.mark.asyncio
    async def test_reply_disabled_as_string(
        self,
        services: Services,
        tracked_video: TrackedResource,
        source: FakeCommentSource,
        generator: FakeGenerator,
    ) -> None:
        """Test a reply setting stored as "false" keeps replies off."""
        source.pages["vid-1"] = [make_item("c1")]
        services.settings.set("youtube-comments", "reply_enabled", "false")

        result = await check_comments(context(services))

        assert result["new"] == 1
        assert result["replied"] == 0
        assert source.replies == []
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_invalid_setting_fails_run(
        self, services: Services, tracked_video: TrackedResource, source: FakeCommentSource
    ) -> None:
        """Test an invalid setting fails the run as a permanent error."""
        services.settings.set("youtube-comments", "page_size", 0)
        job = load_job_definitions({})[0]

        outcome = await TaskRunner(services).run(job)

        assert outcome.status == "failed"
        assert outcome.error_category is ErrorCategory.PERMANENT
        assert source.list_calls == []
    @pytest.mark.asyncio
    async def test_page_size_param(
        self, services: Services, tracked_video: TrackedResource, source: FakeCommentSource
    ) -> None:
        """Test the page size comes from the job params."""
        await check_comments(context(services, page_size=7))

        assert source.list_calls == [("vid-1", 7)]

    @pytest.mark.asyncio
    async def test_source_error_reported(
        self, services: Services, tracked_video: TrackedResource, source: FakeCommentSource
    ) -> None:
        """Test a failing video is counted, not raised."""
        source.errors["vid-1"] = provider_error()

        result = await check_comments(context(services))

        assert result["source_errors"] == 1

    @pytest.mark.asyncio
    async def test_runs_under_runner(
        self, services: Services, tracked_video: TrackedResource, source: FakeCommentSource
    ) -> None:
        """Test the built-in job runs end to end through the runner."""
        source.pages["vid-1"] = [make_item("c1")]
        job = load_job_definitions({})[0]

        first = await TaskRunner(services).run(job)
        second = await TaskRunner(services).run(job)

        assert first.result["new"] == 1
        assert second.result["skipped"] == 1
        assert services.ingestion_store.count_items() == 1


class TestFetchForAnalysis:
    """Tests for the youtube.fetch_for_analysis handler."""

    @pytest.mark.asyncio
    async def test_never_replies(
        self,
        services: Services,
        tracked_video: TrackedResource,
        source: FakeCommentSource,
        generator: FakeGenerator,
    ) -> None:
        """Test comments are saved without replies at the analysis page size."""
        source.pages["vid-1"] = [make_item("c1")]
        services.settings.set("youtube-analysis", "reply_enabled", True)

        result = await fetch_for_analysis(context(services, job_name="youtube-analysis"))

        assert result["new"] == 1
        assert source.list_calls == [("vid-1", 100)]
        assert generator.prompts == []


class TestGenerateDraft:
    """Tests for the content.generate_draft handler."""

    def test_choose_prompt_order(self) -> None:
        """Test a chat message wins over a fixed prompt and the list."""
        assert choose_prompt({"user_message": "chat", "prompt": "fixed"}) == "chat"
        assert choose_prompt({"prompt": "fixed", "prompts": ["a"]}) == "fixed"
        assert choose_prompt({"prompts": ["only"]}) == "only"
        assert choose_prompt({}) in DEFAULT_PROMPTS

    @pytest.mark.asyncio
    async def test_saves_draft(self, services: Services, generator: FakeGenerator) -> None:
        """Test a generated draft is stored for review."""
        generator.text = "Ship small, ship often."

        result = await generate_draft(
            context(services, job_name="content-drafts", prompt="Write about shipping")
        )

        assert result["content"] == "Ship small, ship often."
        assert generator.prompts == ["Write about shipping"]
        with services.db.session_scope() as session:
            [draft] = DraftRepository(session).get_recent()
            assert draft.id == result["draft_id"]
            assert draft.job_name == "content-drafts"

    @pytest.mark.asyncio
    async def test_without_generator(self, services: Services) -> None:
        """Test drafting without a generator fails as not configured."""
        services.generator = None

        with pytest.raises(NotConfiguredError):
            await generate_draft(context(services, job_name="content-drafts"))
