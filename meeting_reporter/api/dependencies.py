"""
Process-wide objects shared by the HTTP and WebSocket routes.
"""

import asyncio
from typing import Optional

from ..orchestration.events import EventBus
from ..orchestration.orchestrator import ReportOrchestrator
from ..tools.graph_client import GraphCalendarClient
from ..utils.config import SystemConfig, get_config

# Every orchestrator event is published here and streamed over WebSocket
event_bus = EventBus()

_orchestrator: Optional[ReportOrchestrator] = None
_pipeline_lock: Optional[asyncio.Lock] = None


def get_settings() -> SystemConfig:
    return get_config()


def get_event_bus() -> EventBus:
    return event_bus


def get_orchestrator() -> ReportOrchestrator:
    """Lazily build the single orchestrator from configuration."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ReportOrchestrator.from_config(get_config(), event_bus=event_bus)
    return _orchestrator


def get_pipeline_lock() -> asyncio.Lock:
    """Serialises pipeline requests; the orchestrator holds mutable shared state."""
    global _pipeline_lock
    if _pipeline_lock is None:
        _pipeline_lock = asyncio.Lock()
    return _pipeline_lock


def get_calendar_client() -> GraphCalendarClient:
    return GraphCalendarClient(get_config().graph)

