import abc
import typing

from cqrsgen.types import ReqT, ResT


class CommandHandler(abc.ABC, typing.Generic[ReqT, ResT]):
    """
    The command handler interface.

    The command handler gets a command as input and returns a result.
    Decorators generated through ``generate_decorator`` wrap command handlers
    by accepting a ``CommandHandler[ReqT, ResT]`` constructor parameter.

    Command handler example::

      class CreateUserHandler(CommandHandler[CreateUserCommand, uuid.UUID]):
          def __init__(self, users: UserRepositoryProtocol) -> None:
              self._users = users

          async def handle(self, request: CreateUserCommand) -> uuid.UUID:
              return await self._users.add(request.username, request.email)

    """

    @abc.abstractmethod
    async def handle(self, request: ReqT) -> ResT:
        raise NotImplementedError


class VoidCommandHandler(CommandHandler[ReqT, None], typing.Generic[ReqT]):
    """
    The command handler interface for commands without a result.

    It is a ``CommandHandler`` whose response type is ``None``, so command
    decorators wrap it as well.

    Command handler example::

      class DeleteUserHandler(VoidCommandHandler[DeleteUserCommand]):
          async def handle(self, request: DeleteUserCommand) -> None:
              await self._users.delete(request.user_id)

    """

    @abc.abstractmethod
    async def handle(self, request: ReqT) -> None:
        raise NotImplementedError


class QueryHandler(abc.ABC, typing.Generic[ReqT, ResT]):
    """
    The query handler interface.

    Query handler example::

      class GetUserHandler(QueryHandler[GetUserQuery, UserDto | None]):
          async def handle(self, request: GetUserQuery) -> UserDto | None:
              return await self._users.get(request.user_id)

    """

    @abc.abstractmethod
    async def handle(self, request: ReqT) -> ResT:
        raise NotImplementedError
