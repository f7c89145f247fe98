import typing

import di
from di import dependent, executors

from cqrsgen.container import protocol

T = typing.TypeVar("T")

SCOPE = "request"


class DIContainer(protocol.Container[di.Container]):
    """
    Autowiring container backed by the ``di`` library.

    ``ServiceRegistry`` falls back to it for every type without an explicit
    factory, so concrete handlers get their constructor dependencies injected
    the way ``di`` resolves them (bindings of the attached container first,
    then the annotations of ``__init__``).
    """

    def __init__(self, container: di.Container | None = None) -> None:
        self._external_container = container or di.Container()
        self._solved: typing.Dict[typing.Any, typing.Any] = {}

    @property
    def external_container(self) -> di.Container:
        return self._external_container

    def attach_external_container(self, container: di.Container) -> None:
        self._external_container = container
        self._solved.clear()

    async def resolve(self, type_: typing.Type[T]) -> T:
        solution = self._solved.get(type_)
        if solution is None:
            solution = self._external_container.solve(
                dependent.Dependent(type_, scope=SCOPE),
                scopes=[SCOPE],
            )
            self._solved[type_] = solution
        executor = executors.AsyncExecutor()
        with self._external_container.enter_scope(SCOPE) as state:
            return await solution.execute_async(executor=executor, state=state)
