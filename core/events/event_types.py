"""
Event type definitions for the screensaver orchestrator.
"""
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


@dataclass
class Event:
    """Base event class."""
    event_type: str
    data: Any = None
    source: Any = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    timestamp: float = field(default_factory=time.time)
    is_handled: bool = False
    delivered: int = 0  # subscribers that received the event

    def mark_handled(self):
        """Mark this event as handled."""
        self.is_handled = True


@dataclass
class Subscription:
    """Subscription to an event type."""
    callback: Callable[[Event], None]
    event_type: str
    priority: int = 0
    filter_fn: Optional[Callable[[Event], bool]] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    active: bool = True

    def __call__(self, event: Event) -> bool:
        """Call the subscription callback if filter passes."""
        if self.filter_fn is None or self.filter_fn(event):
            self.callback(event)
            return True
        return False

    def __lt__(self, other: 'Subscription') -> bool:
        """Sort by priority (higher first)."""
        return self.priority > other.priority


class EventType:
    """Event channel constants."""
    # Pages -> orchestrator
    RUNTIME_MESSAGE = "runtime.message"
    # Orchestrator -> pages
    RUNTIME_BROADCAST = "runtime.broadcast"


class MessageType:
    """Values of the ``type`` field of runtime messages."""
    SCREENSAVER_STARTED = "SCREENSAVER_STARTED"
    START_SCREENSAVER = "START_SCREENSAVER"
    UNLOCK_SCREENSAVER = "UNLOCK_SCREENSAVER"
