import abc
import typing


class EventPublisher(abc.ABC):
    """
    The event publisher interface.

    The implementation is generated: it resolves every notification handler
    subscribed to the runtime type of the event and awaits them one by one.
    """

    @abc.abstractmethod
    async def publish(self, event: typing.Any) -> None:
        raise NotImplementedError
