"""
Tests for EventSystem and the runtime message hub built on it.
"""
import pytest

from core.events import Event, MessageType
from core.host import MessageDeliveryError


def test_subscribe_and_publish(event_system):
    """Subscribers receive the published payload and are counted."""
    received = []

    sub_id = event_system.subscribe("test.event", received.append)

    assert sub_id is not None

    event = event_system.publish("test.event", data="payload")

    assert [e.data for e in received] == ["payload"]
    assert event.delivered == 1


def test_unsubscribe(event_system):
    received = []
    sub_id = event_system.subscribe("test.event", received.append)

    event_system.publish("test.event", data="first")
    event_system.unsubscribe(sub_id)
    event = event_system.publish("test.event", data="second")

    assert [e.data for e in received] == ["first"]
    assert event.delivered == 0


def test_priority_ordering(event_system):
    """Higher priority handlers are called first."""
    call_order = []

    event_system.subscribe("test.event", lambda e: call_order.append("low"), priority=10)
    event_system.subscribe("test.event", lambda e: call_order.append("high"), priority=90)
    event_system.subscribe("test.event", lambda e: call_order.append("normal"), priority=50)

    event_system.publish("test.event")

    assert call_order == ["high", "normal", "low"]


def test_filtered_subscriber_is_not_counted(event_system):
    received = []
    event_system.subscribe("test.event", received.append,
                           filter_fn=lambda e: e.data == "accept")

    accepted = event_system.publish("test.event", data="accept")
    rejected = event_system.publish("test.event", data="reject")

    assert len(received) == 1
    assert accepted.delivered == 1
    assert rejected.delivered == 0


def test_failing_handler_does_not_stop_others(event_system):
    received = []

    def broken(event: Event):
        raise RuntimeError("handler bug")

    event_system.subscribe("test.event", broken, priority=90)
    event_system.subscribe("test.event", received.append, priority=10)

    event = event_system.publish("test.event", data=1)

    assert len(received) == 1
    assert event.delivered == 1


def test_handler_may_unsubscribe_during_publish(event_system):
    calls = []
    holder = {}

    def once(event: Event):
        calls.append(event.data)
        event_system.unsubscribe(holder["id"])

    holder["id"] = event_system.subscribe("test.event", once)

    event_system.publish("test.event", data="a")
    event_system.publish("test.event", data="b")

    assert calls == ["a"]


def test_invalid_subscriptions_rejected(event_system):
    with pytest.raises(ValueError):
        event_system.subscribe("test.event", "not callable")
    with pytest.raises(ValueError):
        event_system.subscribe("  ", lambda e: None)


class TestRuntimeMessageHub:
    def test_messages_reach_orchestrator_listener(self, hub):
        inbox = []
        hub.on_message(inbox.append)

        hub.send_message({"type": MessageType.UNLOCK_SCREENSAVER})

        assert inbox == [{"type": "UNLOCK_SCREENSAVER"}]

    async def test_broadcast_reaches_pages_only(self, hub):
        inbox, pages = [], []
        hub.on_message(inbox.append)
        hub.on_broadcast(pages.append)

        await hub.broadcast({"type": MessageType.SCREENSAVER_STARTED, "windowIds": [1]})

        assert pages == [{"type": "SCREENSAVER_STARTED", "windowIds": [1]}]
        assert inbox == []

    async def test_broadcast_without_listener_raises(self, hub):
        with pytest.raises(MessageDeliveryError):
            await hub.broadcast({"type": MessageType.SCREENSAVER_STARTED})

    async def test_unsubscribed_page_stops_receiving(self, hub):
        pages = []
        sub_id = hub.on_broadcast(pages.append)
        hub.unsubscribe(sub_id)

        with pytest.raises(MessageDeliveryError):
            await hub.broadcast({"type": MessageType.SCREENSAVER_STARTED})
        assert pages == []
