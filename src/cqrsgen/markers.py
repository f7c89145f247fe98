"""
Runtime side of decorator markers.

Markers are generated classes (see ``cqrsgen.generator.synthesizer``) used as
class decorators on request types::

    @Logged(order=0)
    @Validated(order=1)
    class CreateUserCommand(cqrsgen.Command):
        username: str

The generator reads markers from the source text, so nothing here is consulted
when the wiring is built. ``get_markers`` exists for introspection only.
"""

import sys
import typing

_T = typing.TypeVar("_T", bound=type)

# Default order of a marker: applied last, i.e. closest to the handler.
ORDER_LAST: typing.Final[int] = sys.maxsize

_MARKERS_ATTRIBUTE = "__cqrsgen_markers__"
_MARKER_NAME_ATTRIBUTE = "__cqrsgen_marker_name__"


class Marker:
    """
    Base class of every generated marker.

    ``order`` decides the position of the decorator in the handler chain:
    the lowest order is the outermost wrapper and observes the call first.
    Markers with equal order keep the order in which they are written.
    """

    decorator: typing.ClassVar[str] = ""

    def __init__(self, *, order: int = ORDER_LAST) -> None:
        self.order = order

    def __call__(self, cls: _T) -> _T:
        declared = cls.__dict__.get(_MARKERS_ATTRIBUTE, ())
        setattr(cls, _MARKERS_ATTRIBUTE, (self, *declared))
        return cls

    def __repr__(self) -> str:
        return f"{type(self).__name__}(order={self.order})"


def get_markers(cls: type) -> typing.Tuple[Marker, ...]:
    """
    Returns the markers written on ``cls`` in source order (top-most first).

    Markers of base classes are not inherited.
    """
    return tuple(cls.__dict__.get(_MARKERS_ATTRIBUTE, ()))


def generate_decorator(
    name: str,
    *,
    request: str | None = None,
    response: str | None = None,
) -> typing.Callable[[_T], _T]:
    """
    Promotes a generic handler decorator to a generated marker named ``name``.

    ``request`` and ``response`` name the type parameters of the decorator that
    receive the request and the response type of the wrapped handler. They may
    be omitted when the decorator's inner handler parameter (or its own handler
    base) already spells them out, e.g. ``inner: CommandHandler[ReqT, ResT]``.

    Usage::

      @generate_decorator("Cached")
      class CachingDecorator(QueryHandler[ReqT, ResT]):
          def __init__(
              self,
              inner: QueryHandler[ReqT, ResT],
              cache: CacheProtocol,
              ttl_seconds: int = 60,
          ) -> None:
              ...

    """

    def decorator(cls: _T) -> _T:
        setattr(cls, _MARKER_NAME_ATTRIBUTE, name)
        return cls

    return decorator
