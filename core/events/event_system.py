"""
Event system implementation for the screensaver orchestrator.

Provides publish-subscribe pattern for inter-module communication. The
runtime message hub (pages <-> orchestrator) is built on top of it.
"""
from typing import Any, Callable, Dict, List, Optional
import threading
from collections import defaultdict
from core.logging.logger import get_logger
from core.events.event_types import Event, Subscription

logger = get_logger('EventSystem')


class EventSystem:
    """
    Centralized event system.

    Implements publish-subscribe pattern for loose coupling between components.
    Thread-safe with priority-based subscription ordering.
    """

    def __init__(self):
        """Initialize the event system."""
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)
        self._subscription_map: Dict[str, Subscription] = {}
        self._lock = threading.RLock()

        logger.info("EventSystem initialized")

    def subscribe(
        self,
        event_type: str,
        callback: Callable[[Event], None],
        priority: int = 50,
        filter_fn: Optional[Callable[[Event], bool]] = None,
    ) -> str:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Type of event to subscribe to
            callback: Function to call when event is published
            priority: Priority (higher = called earlier), default 50
            filter_fn: Optional filter function

        Returns:
            str: Subscription ID for unsubscribing

        Raises:
            ValueError: If callback is not callable
        """
        if not callable(callback):
            raise ValueError("Callback must be callable")

        if not isinstance(event_type, str) or not event_type.strip():
            raise ValueError("event_type must be a non-empty string")

        subscription = Subscription(callback, event_type, priority, filter_fn)

        with self._lock:
            self._subscriptions[event_type].append(subscription)
            self._subscription_map[subscription.id] = subscription
            self._subscriptions[event_type].sort()

        logger.debug(f"New subscription: {subscription.id} for {event_type} (priority={priority})")
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> None:
        """
        Unsubscribe from events.

        Args:
            subscription_id: ID returned from subscribe()
        """
        with self._lock:
            subscription = self._subscription_map.pop(subscription_id, None)
            if subscription is None:
                logger.warning(f"Unsubscribe called with unknown id: {subscription_id}")
                return

            subscription.active = False

            event_type = subscription.event_type
            if event_type in self._subscriptions:
                self._subscriptions[event_type] = [
                    s for s in self._subscriptions[event_type]
                    if s.id != subscription_id
                ]

                if not self._subscriptions[event_type]:
                    self._subscriptions.pop(event_type, None)

        logger.debug(f"Unsubscribed: {subscription_id}")

    def publish(
        self,
        event_type: str,
        data: Any = None,
        source: Any = None
    ) -> Event:
        """
        Publish an event to all subscribers.

        Args:
            event_type: Type of event
            data: Optional event data
            source: Optional event source

        Returns:
            Event: The published event object; ``delivered`` counts the
            subscribers that received it.
        """
        if not isinstance(event_type, str) or not event_type.strip():
            raise ValueError("event_type must be a non-empty string")

        event = Event(event_type, data, source)

        with self._lock:
            # Copy so handlers may (un)subscribe while we iterate.
            matching_subs = list(self._subscriptions.get(event_type, []))

        if not matching_subs:
            logger.debug(f"No subscribers for event: {event_type}")
            return event

        logger.debug(f"Publishing event: {event_type}, subscribers={len(matching_subs)}")

        for subscription in matching_subs:
            if event.is_handled:
                break
            if not subscription.active:
                continue

            try:
                if subscription(event):
                    event.delivered += 1
            except Exception as e:
                logger.error(f"Error in event handler for {event_type}: {e}", exc_info=True)

        return event
