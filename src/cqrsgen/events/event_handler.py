import abc
import typing

from cqrsgen.types import EventT


class NotificationHandler(abc.ABC, typing.Generic[EventT]):
    """
    The notification handler interface.

    Usage::

      class SendWelcomeEmailHandler(NotificationHandler[UserCreatedEvent]):
          def __init__(self, mailer: MailerProtocol) -> None:
              self._mailer = mailer

          async def handle(self, event: UserCreatedEvent) -> None:
              await self._mailer.send_welcome(event.email)

    """

    @abc.abstractmethod
    async def handle(self, event: EventT) -> None:
        raise NotImplementedError
