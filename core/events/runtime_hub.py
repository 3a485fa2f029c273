"""
Runtime message hub.

Carries the tagged ``{"type": ...}`` messages between screensaver pages
(windows) and the background orchestrator over two EventSystem channels:
pages send on ``runtime.message``, the orchestrator broadcasts on
``runtime.broadcast``. The orchestrator never receives its own broadcasts.
"""
from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from core.events.event_system import EventSystem
from core.events.event_types import EventType
from core.host import MessageDeliveryError, MessageHub
from core.logging.logger import get_logger

logger = get_logger(__name__)


class RuntimeMessageHub(MessageHub):
    """MessageHub backed by an in-process EventSystem."""

    def __init__(self, event_system: Optional[EventSystem] = None) -> None:
        self._events = event_system or EventSystem()

    @property
    def event_system(self) -> EventSystem:
        return self._events

    def send_message(self, message: Any, source: Any = None) -> None:
        """Deliver a message from a page to the orchestrator."""
        self._events.publish(EventType.RUNTIME_MESSAGE, message, source)

    async def broadcast(self, message: Mapping[str, Any]) -> None:
        event = self._events.publish(EventType.RUNTIME_BROADCAST, dict(message))
        logger.debug("Broadcast %s delivered to %d page(s)", message.get("type"), event.delivered)
        if event.delivered == 0:
            raise MessageDeliveryError(
                f"No listener for broadcast {message.get('type')!r}"
            )

    def on_message(self, callback: Callable[[Any], None]) -> str:
        return self._events.subscribe(
            EventType.RUNTIME_MESSAGE, lambda event: callback(event.data)
        )

    def on_broadcast(self, callback: Callable[[Any], None]) -> str:
        """Subscribe a page to orchestrator broadcasts."""
        return self._events.subscribe(
            EventType.RUNTIME_BROADCAST, lambda event: callback(event.data)
        )

    def unsubscribe(self, subscription_id: str) -> None:
        self._events.unsubscribe(subscription_id)

