"""
Integration tests for the HTTP and WebSocket API.
"""

import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from meeting_reporter.api.dependencies import (
    get_calendar_client, get_event_bus, get_orchestrator, get_pipeline_lock, get_settings
)
from meeting_reporter.api.main import app
from meeting_reporter.models.core import AgentEventType
from meeting_reporter.orchestration.events import EventBus
from meeting_reporter.tools.excel_writer import ExcelReportWriter
from meeting_reporter.tools.graph_client import GraphCalendarClient
from meeting_reporter.utils.config import GraphConfig, SystemConfig

from doubles import build_orchestrator

pytestmark = pytest.mark.integration

REPORT_REQUEST = {"start_date": "2024-03-04", "end_date": "2024-03-06"}
FILENAME = "meeting-report_20240304_to_20240306.xlsx"


@pytest.fixture
def settings(tmp_path):
    return SystemConfig(reports={"output_dir": str(tmp_path)}, graph={"access_token": "token"})


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def orchestrator(three_meetings, tmp_path, bus):
    return build_orchestrator(three_meetings, writer=ExcelReportWriter(tmp_path), event_bus=bus)


@pytest.fixture
def client(settings, orchestrator, bus):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_event_bus] = lambda: bus
    app.dependency_overrides[get_pipeline_lock] = lambda: asyncio.Lock()
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["health"] == "/api/v1/health"
        assert "x-process-time" in response.headers

    def test_health(self, client):
        response = client.get("/api/v1/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["analysis_enabled"] is True
        assert body["calendar_configured"] is True
        assert body["event_stream_connections"] == 0


class TestReports:
    """Test cases for report generation and download."""

    def test_generate_and_download(self, client):
        response = client.post("/api/v1/reports", json=REPORT_REQUEST)

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["filename"] == FILENAME
        assert body["meeting_count"] == 3
        assert body["analysis_status"] == "completed"

        download = client.get(f"/api/v1/reports/{FILENAME}")
        assert download.status_code == 200
        assert download.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert download.content[:2] == b"PK"

    def test_options_are_forwarded(self, client, orchestrator):
        response = client.post("/api/v1/reports", json={
            **REPORT_REQUEST, "include_analysis": False, "target_user": "alex@contoso.com"
        })

        assert response.json()["analysis_status"] == "not_requested"
        assert orchestrator.calendar_agent.calendar_source.requests[0]["target_user"] == "alex@contoso.com"

    def test_no_meetings_is_reported_not_raised(self, settings, bus):
        empty = build_orchestrator([], event_bus=bus)
        app.dependency_overrides[get_orchestrator] = lambda: empty
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_pipeline_lock] = lambda: asyncio.Lock()
        try:
            response = TestClient(app).post("/api/v1/reports", json=REPORT_REQUEST)
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["message"] == "No meetings found in the specified date range"

    def test_inverted_range_rejected(self, client):
        response = client.post("/api/v1/reports", json={"start_date": "2024-03-06", "end_date": "2024-03-04"})

        assert response.status_code == 422

    def test_download_rejects_other_files(self, client):
        assert client.get("/api/v1/reports/notes.txt").status_code == 400

    def test_download_missing_report(self, client):
        assert client.get("/api/v1/reports/absent.xlsx").status_code == 404


class TestCommands:
    """Test cases for command routing and reset."""

    def test_command(self, client):
        response = client.post("/api/v1/commands", json={"command": "Fetch events from 2024-03-04 to 2024-03-06"})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["agent_name"] == "CalendarAgent"
        assert body["iterations"] == 2
        assert body["meeting_count"] == 3
        assert body["analyzed_count"] == 0

    def test_blank_command_is_a_validation_error(self, client):
        response = client.post("/api/v1/commands", json={"command": "   "})

        body = response.json()
        assert response.status_code == 400
        assert body["error"] == "VALIDATION"
        assert body["details"]["error_id"]

    def test_empty_command_fails_schema(self, client):
        assert client.post("/api/v1/commands", json={"command": ""}).status_code == 422

    def test_reset(self, client, orchestrator):
        client.post("/api/v1/commands", json={"command": "Fetch events from 2024-03-04 to 2024-03-06"})

        response = client.post("/api/v1/reset")

        assert response.json() == {"success": True, "message": "All agents reset"}
        assert orchestrator.shared_context.is_empty()
        assert len(orchestrator.calendar_agent.conversation) == 1


class TestSharedCalendars:
    def graph_client(self, token):
        def handler(request):
            if request.url.path.endswith("/me/calendars"):
                return httpx.Response(200, json={"value": [
                    {"name": "Alex", "owner": {"name": "Alex", "address": "alex@contoso.com"}},
                ]})
            return httpx.Response(200, json={"mail": "me@contoso.com"})

        return GraphCalendarClient(GraphConfig(max_retries=0), access_token=token,
                                   transport=httpx.MockTransport(handler))

    def test_list(self, client):
        app.dependency_overrides[get_calendar_client] = lambda: self.graph_client("token")

        response = client.get("/api/v1/calendars/shared")

        assert response.status_code == 200
        assert response.json() == {"owners": [{"name": "Alex", "email": "alex@contoso.com"}]}

    def test_not_signed_in(self, client):
        app.dependency_overrides[get_calendar_client] = lambda: self.graph_client("")

        response = client.get("/api/v1/calendars/shared")

        assert response.status_code == 502
        assert response.json()["error"] == "EXTERNAL_API"
        assert response.json()["message"] == "Not authenticated. Please sign in first."


class TestEventStream:
    """Test cases for the WebSocket event stream."""

    def test_ping(self, client):
        with client.websocket_connect("/api/v1/ws/events") as websocket:
            assert websocket.receive_json() == {"type": "connected", "message": "Streaming agent events"}
            websocket.send_text("ping")
            assert websocket.receive_json() == {"type": "pong"}

    def test_events_are_streamed(self, client, bus):
        with client.websocket_connect("/api/v1/ws/events") as websocket:
            websocket.receive_json()

            bus.emit(AgentEventType.THINKING, "Orchestrator", "Starting report generation...")
            event = websocket.receive_json()

        assert event["type"] == "thinking"
        assert event["agent"] == "Orchestrator"
        assert event["message"] == "Starting report generation..."
        assert bus.handler_count == 0
