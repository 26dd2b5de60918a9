"""
Default event subscribers
Domain events are written to the audit log; external consumers subscribe to
the same bus for notification and search indexing.
"""
import logging

from resortpms.services.event_bus import Event, EventBus, event_bus

audit_logger = logging.getLogger("resortpms.audit")


def log_event(event: Event) -> None:
    audit_logger.info(
        f"{event.event_type.value} from {event.source} at {event.occurred_at.isoformat()}: {event.data}"
    )


def register_event_handlers(bus: EventBus = event_bus) -> None:
    """Subscribe the audit logger to every domain event type"""
    bus.subscribe_all(log_event)
