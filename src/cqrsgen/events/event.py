import pydantic


class Event(pydantic.BaseModel, frozen=True):
    """
    The base class for notification events.

    Events are published through the generated ``EventPublisher`` and handled
    by every ``NotificationHandler`` subscribed to the exact event type.
    """
