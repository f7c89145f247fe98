import collections.abc
import dataclasses
import enum
import inspect
import logging
import typing

import di

from cqrsgen.container import di as di_container_impl, protocol

logger = logging.getLogger("cqrsgen")

Factory: typing.TypeAlias = typing.Callable[[protocol.Container], typing.Any]

_SEQUENCE_ORIGINS = (collections.abc.Sequence, list)


class Lifetime(str, enum.Enum):
    SCOPED = "scoped"


@dataclasses.dataclass(frozen=True)
class Registration:
    """One entry of the registration table."""

    service_type: typing.Any
    factory: Factory | None = None
    implementation_type: typing.Any = None
    lifetime: Lifetime = Lifetime.SCOPED


class ServiceRegistry(protocol.Container[di.Container]):
    """
    Explicit registration table populated by the generated ``register_handlers``.

    Usage::

      registry = ServiceRegistry()
      wiring.register_handlers(registry)
      registry.add_scoped_item(Validator[CreateUserCommand], CreateUserValidator)

      async with registry.create_scope() as scope:
          handler = await scope.resolve(CommandHandler[CreateUserCommand, uuid.UUID])
          await handler.handle(CreateUserCommand(username="jdoe", email="jdoe@example.com"))

    Types without a factory are autowired through the ``di`` library.
    """

    def __init__(self, external_container: di.Container | None = None) -> None:
        self._registrations: typing.Dict[typing.Any, Registration] = {}
        self._collections: typing.Dict[typing.Any, typing.List[Registration]] = {}
        self._autowire = di_container_impl.DIContainer(external_container)

    @property
    def external_container(self) -> di.Container:
        return self._autowire.external_container

    def attach_external_container(self, container: di.Container) -> None:
        self._autowire.attach_external_container(container)

    @property
    def registrations(self) -> typing.Mapping[typing.Any, Registration]:
        return self._registrations

    def __contains__(self, service_type: typing.Any) -> bool:
        return service_type in self._registrations

    def add_scoped(self, service_type: typing.Any, factory: Factory | None = None) -> None:
        if service_type in self._registrations:
            raise KeyError(f"{service_type} already exists in registry")
        self._registrations[service_type] = Registration(
            service_type=service_type,
            factory=factory,
        )

    def add_scoped_item(self, item_type: typing.Any, implementation_type: typing.Any) -> None:
        """Adds ``implementation_type`` to the list resolved for ``typing.Sequence[item_type]``."""
        items = self._collections.setdefault(item_type, [])
        if any(item.implementation_type is implementation_type for item in items):
            raise KeyError(f"{implementation_type} already bind to {item_type}")
        items.append(
            Registration(
                service_type=item_type,
                implementation_type=implementation_type,
            ),
        )

    def collection(self, type_: typing.Any) -> typing.Sequence[Registration] | None:
        if typing.get_origin(type_) not in _SEQUENCE_ORIGINS:
            return None
        args = typing.get_args(type_)
        if len(args) != 1:
            return None
        return self._collections.get(args[0], [])

    def create_scope(self) -> "ServiceScope":
        return ServiceScope(self, self._autowire)

    async def resolve(self, type_: typing.Any) -> typing.Any:
        async with self.create_scope() as scope:
            return await scope.resolve(type_)


class ServiceScope(protocol.Container[di.Container]):
    """
    A unit of work: scoped registrations are created once per scope.

    A scope must not be shared between concurrent requests.
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        autowire: di_container_impl.DIContainer,
    ) -> None:
        self._registry = registry
        self._autowire = autowire
        self._instances: typing.Dict[typing.Any, typing.Any] = {}

    @property
    def external_container(self) -> di.Container:
        return self._autowire.external_container

    def attach_external_container(self, container: di.Container) -> None:
        raise TypeError(f"{self.__class__.__name__} uses the container of its registry")

    async def __aenter__(self) -> "ServiceScope":
        return self

    async def __aexit__(self, *exc_info: typing.Any) -> None:
        self._instances.clear()

    async def resolve(self, type_: typing.Any) -> typing.Any:
        if type_ in self._instances:
            return self._instances[type_]

        registration = self._registry.registrations.get(type_)
        if registration is None:
            items = self._registry.collection(type_)
            if items is not None:
                return [await self.resolve(item.implementation_type) for item in items]
            logger.debug("Autowiring unregistered type %s", type_)
            return await self._autowire.resolve(type_)

        if registration.factory is None:
            instance = await self._autowire.resolve(type_)
        else:
            instance = registration.factory(self)
            # Factories may be plain callables (a class) or coroutine functions
            if inspect.isawaitable(instance):
                instance = await instance

        self._instances[type_] = instance
        return instance
