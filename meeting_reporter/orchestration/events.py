"""
Event bus that fans agent progress notifications out to subscribers.
"""

from typing import Any, Callable, List, Optional

from ..models.core import AgentEvent, AgentEventType
from ..utils.logging import get_logger

EventHandler = Callable[[AgentEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe channel for ``AgentEvent``s.

    Handlers run in subscription order on the publisher's call stack. A
    handler that raises is logged and skipped; the remaining handlers and the
    publisher are unaffected.
    """

    def __init__(self):
        self.logger = get_logger(f"{__name__}.EventBus")
        self._handlers: List[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler for every subsequent event.

        Args:
            handler: Callable receiving each ``AgentEvent``

        Returns:
            Callable that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: AgentEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Event handler failed for {event.type.value} from {event.agent}: {e}")

    def emit(self, event_type: AgentEventType, agent: str, message: str, data: Optional[Any] = None) -> AgentEvent:
        """Build an event and publish it."""
        event = AgentEvent(type=event_type, agent=agent, message=message, data=data)
        self.publish(event)
        return event

    @property
    def handler_count(self) -> int:
        return len(self._handlers)
