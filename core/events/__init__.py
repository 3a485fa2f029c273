"""Event system and runtime message hub."""

from .event_system import EventSystem
from .event_types import Event, EventType, MessageType, Subscription
from .runtime_hub import RuntimeMessageHub

__all__ = ['EventSystem', 'Event', 'EventType', 'MessageType', 'Subscription', 'RuntimeMessageHub']
