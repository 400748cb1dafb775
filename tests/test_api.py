"""Tests for the CronPilot FastAPI server."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from conftest import FakeCommentSource, FakeGenerator, make_item
from cronpilot.api import create_app
from cronpilot.engine import JobContext, handler
from cronpilot.models import IngestedItem, JobDefinition, TrackedResource
from cronpilot.services import Services

API_JOBS = [
    JobDefinition(
        name="record",
        schedule="*/5 * * * *",
        handler="test.api.record",
        params={"source": "job"},
        description="Records its params",
    ),
    JobDefinition(name="comments", schedule="*/15 * * * *", handler="youtube.check_comments"),
    JobDefinition(name="off", schedule="0 0 * * *", handler="test.api.record", enabled=False),
]


@handler("test.api.record")
async def record(context: JobContext) -> dict[str, Any]:
    return {"params": context.params, "trigger": context.trigger_type}


@pytest.fixture
def client(services: Services) -> TestClient:
    """Create a test client with the scheduler left stopped."""
    app = create_app(services=services, jobs=API_JOBS, start_scheduler=False)
    return TestClient(app)


@pytest.fixture
def automation_id(client: TestClient) -> str:
    """Create an automation and return its ID."""
    response = client.post(
        "/api/automations",
        json={"name": "Recorder", "handler": "test.api.record", "description": "Records"},
    )
    return response.json()["id"]


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient) -> None:
        """Test main health check endpoint."""
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "cronpilot"
        assert data["scheduler"] == "uninitialized"
        assert data["jobs"] == 3
        assert "timestamp" in data

    def test_lifespan_starts_and_stops_scheduler(self, services: Services) -> None:
        """Test the scheduler runs for the lifetime of the application."""
        app = create_app(services=services, jobs=API_JOBS)

        with TestClient(app) as client:
            assert client.get("/api/health").json()["scheduler"] == "running"
            [status] = [j for j in client.get("/api/jobs").json() if j["name"] == "record"]
            assert status["state"] == "started"
            assert status["next_run"] is not None

        assert app.state.scheduler.is_running is False

    def test_default_job_list(self, services: Services) -> None:
        """Test the app registers the built-in jobs when none are given."""
        app = create_app(services=services, start_scheduler=False)

        client = TestClient(app)

        names = {j["name"] for j in client.get("/api/jobs").json()}
        assert names == {"youtube-comments", "youtube-analysis", "content-drafts"}
        assert client.get("/api/health").json()["jobs"] == 3

    def test_cors_headers(self, client: TestClient) -> None:
        """Test CORS exposes the conversation header."""
        response = client.options(
            "/api/health",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "GET"},
        )
        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers


class TestJobEndpoints:
    """Tests for job endpoints."""

    def test_list_jobs(self, client: TestClient) -> None:
        """Test listing registered jobs."""
        response = client.get("/api/jobs")
        assert response.status_code == 200
        jobs = {j["name"]: j for j in response.json()}
        assert set(jobs) == {"record", "comments", "off"}
        assert jobs["record"]["schedule"] == "*/5 * * * *"
        assert jobs["record"]["description"] == "Records its params"
        assert jobs["off"]["enabled"] is False
        assert jobs["record"]["last_outcome"] is None

    def test_get_job(self, client: TestClient) -> None:
        """Test getting a single job."""
        response = client.get("/api/jobs/record")
        assert response.status_code == 200
        assert response.json()["handler"] == "test.api.record"

    def test_get_job_not_found(self, client: TestClient) -> None:
        """Test getting an unknown job."""
        response = client.get("/api/jobs/missing")
        assert response.status_code == 404

    def test_run_job(self, client: TestClient) -> None:
        """Test running a job now."""
        response = client.post("/api/jobs/record/run", json={"params": {"extra": 1}})
        assert response.status_code == 200
        data = response.json()
        assert data["job_name"] == "record"
        assert data["status"] == "success"

        status = client.get("/api/jobs/record").json()
        assert status["last_outcome"]["status"] == "success"

    def test_run_job_without_body(self, client: TestClient) -> None:
        """Test a run request body is optional."""
        response = client.post("/api/jobs/record/run")
        assert response.status_code == 200

    def test_run_disabled_job(self, client: TestClient) -> None:
        """Test a disabled job is reported as skipped."""
        response = client.post("/api/jobs/off/run")
        assert response.status_code == 200
        assert response.json()["status"] == "skipped"

    def test_run_job_not_found(self, client: TestClient) -> None:
        """Test running an unknown job."""
        response = client.post("/api/jobs/missing/run")
        assert response.status_code == 404

    def test_run_ingestion_job(
        self,
        client: TestClient,
        tracked_video: TrackedResource,
        source: FakeCommentSource,
    ) -> None:
        """Test running the comment job over the API twice stores each comment once."""
        source.pages["vid-1"] = [make_item("c1"), make_item("c2")]

        first = client.post("/api/jobs/comments/run")
        second = client.post("/api/jobs/comments/run")

        assert first.json()["status"] == "success"
        assert second.json()["status"] == "success"
        comments = client.get("/api/videos/vid-1/comments").json()
        assert sorted(c["comment_id"] for c in comments) == ["c1", "c2"]


class TestSettingsEndpoints:
    """Tests for automation settings endpoints."""

    def test_save_and_get(self, client: TestClient) -> None:
        """Test saving then reading a job's settings."""
        response = client.post(
            "/api/automation/settings",
            json={"jobName": "youtube-comments", "settings": {"reply_enabled": True}},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = client.get("/api/automation/settings", params={"job": "youtube-comments"})
        assert response.status_code == 200
        assert response.json() == {"reply_enabled": True}

    def test_get_requires_job(self, client: TestClient) -> None:
        """Test the job name is required."""
        response = client.get("/api/automation/settings")
        assert response.status_code == 400
        assert response.json()["detail"] == "Job name is required"

    def test_get_unknown_job(self, client: TestClient) -> None:
        """Test a job without settings returns an empty mapping."""
        response = client.get("/api/automation/settings", params={"job": "nothing"})
        assert response.json() == {}

    def test_save_invalid(self, client: TestClient) -> None:
        """Test a body without a job name is rejected."""
        response = client.post("/api/automation/settings", json={"settings": {}})
        assert response.status_code == 422


class TestVideoEndpoints:
    """Tests for tracked video endpoints."""

    def test_track_video(self, client: TestClient, source: FakeCommentSource) -> None:
        """Test tracking a video the source knows."""
        source.resources["vid-9"] = TrackedResource(
            external_id="vid-9", title="Ninth", channel_title="Channel"
        )

        response = client.post("/api/videos", json={"video_id": "vid-9"})
        assert response.status_code == 201
        assert response.json()["title"] == "Ninth"

        again = client.post("/api/videos", json={"video_id": "vid-9"})
        assert again.status_code == 201
        assert [v["video_id"] for v in client.get("/api/videos").json()] == ["vid-9"]

    def test_track_unknown_video(self, client: TestClient) -> None:
        """Test tracking a video the source does not know."""
        response = client.post("/api/videos", json={"video_id": "missing"})
        assert response.status_code == 404
        assert "missing" in response.json()["detail"]

    def test_list_comments(self, client: TestClient, services: Services, tracked_video) -> None:
        """Test listing comments with a status filter."""
        store = services.ingestion_store
        store.insert_item(IngestedItem(external_id="c1", parent_resource_id="vid-1"))
        store.insert_item(IngestedItem(external_id="c2", parent_resource_id="vid-1"))
        store.mark_replied("c2", "Thanks!")

        response = client.get("/api/videos/vid-1/comments", params={"status": "replied"})
        assert response.status_code == 200
        [comment] = response.json()
        assert comment["comment_id"] == "c2"
        assert comment["reply_text"] == "Thanks!"

    def test_list_comments_untracked(self, client: TestClient) -> None:
        """Test comments of an untracked video."""
        response = client.get("/api/videos/missing/comments")
        assert response.status_code == 404

    def test_list_drafts(self, client: TestClient) -> None:
        """Test the drafts list starts empty."""
        response = client.get("/api/drafts")
        assert response.status_code == 200
        assert response.json() == []


class TestAutomationEndpoints:
    """Tests for automation and chat endpoints."""

    def test_create_and_list(self, client: TestClient, automation_id: str) -> None:
        """Test creating and listing automations."""
        response = client.get("/api/automations")
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [automation_id]

        response = client.get(f"/api/automations/{automation_id}")
        assert response.json()["name"] == "Recorder"

    def test_create_unknown_handler(self, client: TestClient) -> None:
        """Test an automation must name a registered handler."""
        response = client.post(
            "/api/automations", json={"name": "Ghost", "handler": "test.api.missing"}
        )
        assert response.status_code == 422

    def test_get_unknown(self, client: TestClient) -> None:
        """Test getting a missing automation."""
        assert client.get("/api/automations/missing").status_code == 404

    def test_chat_streams_reply(self, client: TestClient, automation_id: str) -> None:
        """Test a chat streams the reply and stores the exchange."""
        response = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "user", "content": "Run it"}]},
        )

        assert response.status_code == 200
        assert response.text == "Hello, world"
        assert response.headers["content-type"].startswith("text/plain")
        conversation_id = response.headers["x-conversation-id"]

        transcript = client.get(
            f"/api/automations/{automation_id}/chat",
            params={"conversationId": conversation_id},
        ).json()
        assert transcript["conversation"]["title"] == "Run it"
        assert transcript["conversation"]["message_count"] == 2
        assert [m["role"] for m in transcript["messages"]] == ["user", "assistant"]

    def test_chat_continues_conversation(self, client: TestClient, automation_id: str) -> None:
        """Test sending the conversation ID back reuses the conversation."""
        first = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "user", "content": "one"}]},
        )
        conversation_id = first.headers["x-conversation-id"]

        second = client.post(
            f"/api/automations/{automation_id}/chat",
            json={
                "messages": [
                    {"role": "user", "content": "one"},
                    {"role": "user", "parts": [{"type": "text", "text": "two"}]},
                ],
                "conversationId": conversation_id,
            },
        )

        assert second.headers["x-conversation-id"] == conversation_id
        transcript = client.get(
            f"/api/automations/{automation_id}/chat",
            params={"conversationId": conversation_id},
        ).json()
        assert transcript["conversation"]["message_count"] == 4
        assert transcript["messages"][2]["content"] == "two"

    def test_chat_requires_messages(self, client: TestClient, automation_id: str) -> None:
        """Test an empty message list is rejected."""
        response = client.post(f"/api/automations/{automation_id}/chat", json={"messages": []})
        assert response.status_code == 422

    def test_chat_requires_user_text(self, client: TestClient, automation_id: str) -> None:
        """Test a history without user text is rejected."""
        response = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "assistant", "content": "hi"}]},
        )
        assert response.status_code == 422

    def test_chat_unknown_automation(self, client: TestClient) -> None:
        """Test chatting with a missing automation."""
        response = client.post(
            "/api/automations/missing/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
        )
        assert response.status_code == 404

    def test_chat_generation_failure(
        self, client: TestClient, automation_id: str, generator: FakeGenerator
    ) -> None:
        """Test a model failure before any output is a 502."""
        generator.fail_after = 0

        response = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to generate a response"

    def test_chat_interrupted_stream(
        self, client: TestClient, automation_id: str, generator: FakeGenerator
    ) -> None:
        """Test a failure mid-stream ends the body with a marker."""
        generator.fail_after = 1

        response = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
        )

        assert response.status_code == 200
        assert response.text == "Hello\n\n[Failed to generate a response]"

    def test_chat_without_model(self, services: Services, automation_id: str) -> None:
        """Test chatting without a configured model is a 503."""
        services.chat_model = None
        app = create_app(services=services, jobs=API_JOBS, start_scheduler=False)
        client = TestClient(app)

        response = client.post(
            f"/api/automations/{automation_id}/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
        )

        assert response.status_code == 503

    def test_transcript_requires_conversation(
        self, client: TestClient, automation_id: str
    ) -> None:
        """Test the conversation ID is required."""
        response = client.get(f"/api/automations/{automation_id}/chat")
        assert response.status_code == 400

    def test_transcript_unknown_conversation(
        self, client: TestClient, automation_id: str
    ) -> None:
        """Test an unknown conversation is a 404."""
        response = client.get(
            f"/api/automations/{automation_id}/chat", params={"conversationId": "missing"}
        )
        assert response.status_code == 404
