"""Event bus for synchronous, typed event dispatch.

Decouples producers such as the scenario timeline from consumers such as
renderers, loggers or the pilot agent. Handlers are called synchronously in
priority order, inside the frame that published the event.

Typical usage example:
    from digitalatc.core.event_bus import Event, EventBus, EventPriority

    @dataclass
    class AtcMessageEvent(Event):
        text: str = ""

    bus = EventBus()
    bus.subscribe(AtcMessageEvent, handler, EventPriority.HIGH)
    bus.publish(AtcMessageEvent(text="turn left heading 270"))
"""

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventPriority(Enum):
    """Priority levels for event handlers, executed CRITICAL first."""

    CRITICAL = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


@dataclass
class Event:
    """Base class for all events.

    Attributes:
        timestamp: Unix timestamp when the event was created.
    """

    timestamp: float = field(default_factory=time.time)


class EventBus:
    """Central event bus for synchronous event dispatch.

    Handlers with equal priority run in subscription order. Exceptions
    raised by a handler propagate to the publisher.

    Examples:
        >>> bus = EventBus()
        >>> bus.subscribe(AtcMessageEvent, lambda e: print(e.text))
        >>> bus.publish(AtcMessageEvent(text="climb and maintain 5000"))
        climb and maintain 5000
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[tuple[Callable[[Any], None], EventPriority]]] = {}

    def subscribe(
        self,
        event_type: type[Event],
        handler: Callable[[Any], None],
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: The class of event to subscribe to.
            handler: Callable that accepts the event as its only parameter.
            priority: Priority level for this handler.
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append((handler, priority))
        # sort() is stable, so equal priorities keep subscription order
        handlers.sort(key=lambda x: x[1].value)

    def unsubscribe(self, event_type: type[Event], handler: Callable[[Any], None]) -> None:
        """Unsubscribe a handler. Unknown handlers are ignored."""
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [(h, p) for h, p in self._handlers[event_type] if h != handler]
        if not self._handlers[event_type]:
            del self._handlers[event_type]

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers of its exact type.

        Args:
            event: The event to publish.
        """
        for handler, _ in list(self._handlers.get(type(event), [])):
            handler(event)

    def clear(self) -> None:
        """Remove all event handlers."""
        self._handlers.clear()

    def get_subscriber_count(self, event_type: type[Event]) -> int:
        """Get the number of subscribers for an event type."""
        return len(self._handlers.get(event_type, []))
