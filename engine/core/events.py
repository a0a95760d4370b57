"""
Typed event bus for decoupled communication.

Event types are Enum members, so collaborators subscribe to
``NarrativeEvent.CONVERSATION_ENDED`` rather than to a magic string.

Usage:
    bus = EventBus()
    bus.subscribe(NarrativeEvent.TUTORIAL_COMPLETED, on_tutorial_done)
    bus.publish(NarrativeEvent.TUTORIAL_COMPLETED, tutorial_id="welcome")
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Optional
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


class NarrativeEvent(Enum):
    """Events published by the narrative layer."""
    # Modal queue
    MODAL_QUEUED = auto()
    MODAL_CLOSED = auto()
    TUTORIAL_COMPLETED = auto()

    # Conversations
    CONVERSATION_STARTED = auto()
    CONVERSATION_ENDED = auto()

    # Dialog trees
    DIALOG_TREE_STARTED = auto()
    DIALOG_NODE_ENTERED = auto()
    RESPONSE_SELECTED = auto()
    DIALOG_TREE_ENDED = auto()

    # World facts owned by the narrative layer
    FEATURE_INTERACTED = auto()

    # Surfacing
    NOTIFICATION_POSTED = auto()
    CONTENT_LOAD_FAILED = auto()


@dataclass
class Event:
    """A published event: its type plus the keyword payload."""
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]


EventHandler = Callable[[Event], None]

# Resolves to the live handler, or None once a weakly held one is collected
HandlerRef = Callable[[], Optional[EventHandler]]


def _hold(handler: EventHandler, weak: bool) -> HandlerRef:
    if not weak:
        return lambda: handler
    if hasattr(handler, '__self__'):
        return WeakMethod(handler)
    return ref(handler)


class EventBus:
    """
    Publish/subscribe hub for narrative events.

    Handlers run in subscription order. They are held by weak reference
    unless subscribed with ``weak=False``, so a discarded listener simply
    stops hearing events. An event published from inside a handler is
    delivered once the current one has reached every subscriber. A handler
    that raises is logged and skipped.
    """

    def __init__(self):
        self._subscribers: dict[Enum, list[HandlerRef]] = defaultdict(list)
        self._pending: deque[Event] = deque()
        self._delivering = False

    def subscribe(self, event_type: Enum, handler: EventHandler, weak: bool = True) -> None:
        self._subscribers[event_type].append(_hold(handler, weak))

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        if event_type in self._subscribers:
            self._subscribers[event_type] = [
                held for held in self._subscribers[event_type] if held() != handler
            ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        event = Event(type=event_type, data=data)
        self._pending.append(event)
        if not self._delivering:
            self._drain()
        return event

    def clear(self, event_type: Enum | None = None) -> None:
        """Drop the subscribers of one event type, or of every type."""
        if event_type is None:
            self._subscribers.clear()
        else:
            self._subscribers.pop(event_type, None)

    def handler_count(self, event_type: Enum) -> int:
        """Live subscribers for an event type."""
        return sum(1 for held in self._subscribers.get(event_type, ()) if held() is not None)

    def _drain(self) -> None:
        self._delivering = True
        try:
            while self._pending:
                self._deliver(self._pending.popleft())
        finally:
            self._delivering = False

    def _deliver(self, event: Event) -> None:
        if event.type not in self._subscribers:
            return

        for held in list(self._subscribers[event.type]):
            handler = held()
            if handler is None:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler for {event.type}")

        self._subscribers[event.type] = [
            held for held in self._subscribers[event.type] if held() is not None
        ]
