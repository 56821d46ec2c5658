"""
Pytest configuration and fixtures for Meeting Reporter tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from meeting_reporter.orchestration.events import EventBus
from meeting_reporter.utils.config import set_config
from meeting_reporter.utils.error_handler import error_handler

from doubles import build_event


@pytest.fixture(autouse=True)
def reset_global_state():
    """Keep global configuration and error statistics from leaking between tests."""
    set_config(None)
    error_handler.reset_error_stats()
    yield
    set_config(None)
    error_handler.reset_error_stats()


@pytest.fixture
def make_event():
    """Factory for calendar events with sensible defaults."""
    return build_event


@pytest.fixture
def three_meetings():
    base = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
    return [
        build_event("m1", "Weekly sync", base),
        build_event("m2", "Client kickoff", base + timedelta(days=1), 60,
                    organizer="carol@fabrikam.com", attendees=["alice@contoso.com", "dan@gmail.com"]),
        build_event("m3", "1:1 Alice / Bob", base + timedelta(days=2), 45, attendees=[]),
    ]


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def collected_events(event_bus):
    """Every event published on ``event_bus``, in order."""
    seen = []
    event_bus.subscribe(seen.append)
    return seen
