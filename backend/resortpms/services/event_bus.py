"""
Domain event bus

Services publish only after their unit of work has committed, so a subscriber
never observes a change that was rolled back. Handlers run synchronously in
the publishing thread; a failing handler is logged and never reaches the
publisher or the remaining handlers.
"""
from typing import Callable, Dict, List, Any, Union
from dataclasses import dataclass, field
from datetime import datetime
import logging
import threading
import uuid

from resortpms.clock import utcnow
from resortpms.models.events import EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """A committed state change"""
    event_type: EventType
    data: Dict[str, Any]
    source: str  # publishing service
    occurred_at: datetime = field(default_factory=utcnow)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        object.__setattr__(self, "event_type", EventType(self.event_type))


Handler = Callable[[Event], None]


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__name__", repr(handler))


class EventBus:
    """
    Routes each event to the handlers subscribed to its EventType.

    Subscribing to a name that is not an EventType raises ValueError.
    """

    def __init__(self):
        self._handlers: Dict[EventType, List[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Union[EventType, str], handler: Handler) -> None:
        event_type = EventType(event_type)
        with self._lock:
            handlers = self._handlers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"{_handler_name(handler)} subscribed to {event_type.value}")

    def subscribe_all(self, handler: Handler) -> None:
        for event_type in EventType:
            self.subscribe(event_type, handler)

    def unsubscribe(self, event_type: Union[EventType, str], handler: Handler) -> None:
        event_type = EventType(event_type)
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: Event) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event.event_type, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.error(
                    f"{_handler_name(handler)} failed on {event.event_type.value} event {event.event_id}",
                    exc_info=True
                )


# Process-wide bus used when a service is built without a publisher
event_bus = EventBus()


def emit(publisher: Handler, event_type: EventType, data: Dict[str, Any], source: str) -> Event:
    """Wrap a committed change in an Event and hand it to `publisher`"""
    event = Event(event_type=event_type, data=data, source=source)
    publisher(event)
    return event
