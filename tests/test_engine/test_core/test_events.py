import pytest
from enum import Enum, auto
from engine.core.events import EventBus, NarrativeEvent

class MockEvent(Enum):
    TEST_EVENT = auto()
    OTHER_EVENT = auto()

def test_event_bus_subscribe_publish(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event = event_bus.publish(MockEvent.TEST_EVENT, data="test")

    assert received == [event]
    assert event.type == MockEvent.TEST_EVENT
    assert event.data["data"] == "test"
    assert event["data"] == "test"
    assert event.get("missing", 3) == 3

def test_event_bus_unsubscribe(event_bus):
    received = []
    def handler(event):
        received.append(event)

    event_bus.subscribe(MockEvent.TEST_EVENT, handler)
    event_bus.unsubscribe(MockEvent.TEST_EVENT, handler)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 0
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0

def test_handlers_run_in_subscription_order(event_bus):
    order = []

    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("first"), weak=False)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: order.append("second"), weak=False)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda e: order.append("other"), weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first", "second"]

def test_events_published_during_dispatch_are_queued(event_bus):
    order = []

    def first(event):
        order.append("first:start")
        event_bus.publish(MockEvent.OTHER_EVENT)
        order.append("first:end")

    def second(event):
        order.append("second")

    def third(event):
        order.append("third")

    event_bus.subscribe(MockEvent.TEST_EVENT, first)
    event_bus.subscribe(MockEvent.OTHER_EVENT, second)
    event_bus.subscribe(MockEvent.TEST_EVENT, third)

    event_bus.publish(MockEvent.TEST_EVENT)

    assert order == ["first:start", "first:end", "third", "second"]

def test_failing_handler_does_not_stop_dispatch(event_bus, caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe(MockEvent.TEST_EVENT, broken)
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: received.append(e), weak=False)

    event_bus.publish(MockEvent.TEST_EVENT)
    event_bus.publish(MockEvent.TEST_EVENT)

    assert len(received) == 2
    assert "Error in event handler" in caplog.text

def test_weak_method_handler_is_dropped(event_bus):
    class Listener:
        def __init__(self):
            self.count = 0

        def on_event(self, event):
            self.count += 1

    listener = Listener()
    event_bus.subscribe(NarrativeEvent.MODAL_QUEUED, listener.on_event)
    event_bus.publish(NarrativeEvent.MODAL_QUEUED)
    assert listener.count == 1

    del listener
    event_bus.publish(NarrativeEvent.MODAL_QUEUED)

    assert event_bus.handler_count(NarrativeEvent.MODAL_QUEUED) == 0

def test_unsubscribe_bound_method(event_bus):
    class Listener:
        def on_event(self, event):
            pass

    listener = Listener()
    event_bus.subscribe(NarrativeEvent.MODAL_CLOSED, listener.on_event)
    assert event_bus.handler_count(NarrativeEvent.MODAL_CLOSED) == 1

    event_bus.unsubscribe(NarrativeEvent.MODAL_CLOSED, listener.on_event)

    assert event_bus.handler_count(NarrativeEvent.MODAL_CLOSED) == 0

def test_clear(event_bus):
    event_bus.subscribe(MockEvent.TEST_EVENT, lambda e: None, weak=False)
    event_bus.subscribe(MockEvent.OTHER_EVENT, lambda e: None, weak=False)

    event_bus.clear(MockEvent.TEST_EVENT)
    assert event_bus.handler_count(MockEvent.TEST_EVENT) == 0
    assert event_bus.handler_count(MockEvent.OTHER_EVENT) == 1

    event_bus.clear()
    assert event_bus.handler_count(MockEvent.OTHER_EVENT) == 0
