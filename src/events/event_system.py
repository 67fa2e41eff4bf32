"""
Event system implementation using observer pattern.
"""

from enum import Enum, auto
from typing import Callable, Any, Dict, List, Optional
from dataclasses import dataclass, field


class EventType(Enum):
    """Event types for the application."""
    # Document events
    DOCUMENT_LOADED = auto()
    DOCUMENT_UPDATED = auto()
    DOCUMENT_SAVED = auto()
    DOCUMENT_CLOSED = auto()

    # Search events
    SEARCH_STATE_CHANGED = auto()
    SEARCH_QUERY_SETTLED = auto()

    # Layout events
    VIEW_MODE_CHANGED = auto()
    SIDEBAR_TOGGLED = auto()

    # Settings events
    SETTINGS_CHANGED = auto()

    # Error events
    ERROR_OCCURRED = auto()


@dataclass
class Event:
    """An event with type, data, and source."""
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    source: str = ""


class EventBus:
    """
    Publish/subscribe hub for the GTK main loop.

    Handlers run synchronously in subscription order, so events published
    in sequence are observed in that same sequence. Publishing iterates a
    snapshot, so handlers may subscribe or unsubscribe while being called.
    """

    def __init__(self):
        self._subscribers: Dict[EventType, List[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        """Register ``handler`` for ``event_type``; registering twice is a no-op."""
        handlers = self._subscribers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable[[Event], None]) -> None:
        handlers = self._subscribers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event) -> None:
        """
        Deliver ``event`` to every handler of its type.

        A failing handler is reported and skipped; the rest still run.
        """
        for handler in list(self._subscribers.get(event.type, ())):
            try:
                handler(event)
            except Exception as e:
                print(f"[EventBus] Error in handler for {event.type}: {e}")

    def clear(self, event_type: Optional[EventType] = None) -> None:
        """Drop the handlers of one event type, or of all types when None."""
        if event_type is None:
            self._subscribers.clear()
        else:
            self._subscribers.pop(event_type, None)

    def subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, ()))


# Global event bus instance
_global_event_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus instance."""
    global _global_event_bus
    if _global_event_bus is None:
        _global_event_bus = EventBus()
    return _global_event_bus
