import typing

T = typing.TypeVar("T")
C = typing.TypeVar("C")


class Container(typing.Protocol[C]):
    """
    The container interface.

    Generated factories receive a container and call ``resolve`` with a type
    expression: a class, or a parameterized alias such as
    ``cqrsgen.CommandHandler[CreateUserCommand, uuid.UUID]``.
    """

    @property
    def external_container(self) -> C:
        raise NotImplementedError

    def attach_external_container(self, container: C) -> None:
        raise NotImplementedError

    async def resolve(self, type_: typing.Any) -> typing.Any:
        raise NotImplementedError
