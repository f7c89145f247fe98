from cqrsgen.events.event import Event
from cqrsgen.events.event_handler import NotificationHandler
from cqrsgen.events.publisher import EventPublisher

__all__ = (
    "Event",
    "EventPublisher",
    "NotificationHandler",
)
