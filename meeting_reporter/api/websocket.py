"""
WebSocket endpoint streaming agent events for progress displays.
"""

import asyncio
import json
from typing import Set

from fastapi import Depends, WebSocket, WebSocketDisconnect
from fastapi.routing import APIRouter

from ..models.core import AgentEvent
from ..orchestration.events import EventBus
from ..utils.logging import get_logger
from .dependencies import get_event_bus

logger = get_logger(__name__)

# WebSocket router
ws_router = APIRouter()


class ConnectionManager:
    """Tracks open event-stream connections."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)
        logger.info(f"WebSocket connected ({len(self.active_connections)} open)")

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)
        logger.info("WebSocket disconnected")

    async def send_event(self, websocket: WebSocket, event: AgentEvent):
        await websocket.send_text(event.model_dump_json())

    async def send_personal_message(self, websocket: WebSocket, message: dict):
        await websocket.send_text(json.dumps(message))

    @property
    def connection_count(self) -> int:
        return len(self.active_connections)


# Global connection manager
manager = ConnectionManager()


@ws_router.websocket("/events")
async def websocket_events_endpoint(websocket: WebSocket, bus: EventBus = Depends(get_event_bus)):
    """
    Stream every ``AgentEvent`` as JSON.

    Clients may send ``ping`` to receive ``{"type": "pong"}``.
    """
    await manager.connect(websocket)

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()
    # Events may be published from another thread
    unsubscribe = bus.subscribe(lambda event: loop.call_soon_threadsafe(queue.put_nowait, event))

    async def pump():
        while True:
            event = await queue.get()
            await manager.send_event(websocket, event)

    sender = asyncio.create_task(pump())
    try:
        await manager.send_personal_message(websocket, {"type": "connected", "message": "Streaming agent events"})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await manager.send_personal_message(websocket, {"type": "pong"})
    except WebSocketDisconnect:
        logger.info("Client closed the event stream")
    finally:
        unsubscribe()
        sender.cancel()
        manager.disconnect(websocket)
