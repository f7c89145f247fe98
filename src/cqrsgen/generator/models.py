import dataclasses
import enum
import re
import typing

from cqrsgen.markers import ORDER_LAST

_IDENTIFIER_TEMPLATE = r"(?<![\w.])({names})(?!\w)"


@dataclasses.dataclass(frozen=True)
class Expr:
    """
    A Python expression rendered with fully qualified names.

    ``imports`` holds the modules that must be imported for ``text`` to evaluate.
    """

    text: str
    imports: typing.FrozenSet[str] = frozenset()

    def __str__(self) -> str:
        return self.text

    def substitute(self, mapping: typing.Mapping[str, "Expr"]) -> "Expr":
        """
        Replaces every whole-name occurrence of a key of ``mapping`` in one pass.

        A name is never replaced when it is the attribute part of a dotted name,
        so ``app.ReqT`` keeps its ``ReqT``.
        """
        if not mapping:
            return self
        names = "|".join(re.escape(name) for name in sorted(mapping, key=lambda n: (-len(n), n)))
        pattern = re.compile(_IDENTIFIER_TEMPLATE.format(names=names))
        used: typing.Set[str] = set()

        def replace(match: re.Match[str]) -> str:
            used.add(match.group(1))
            return mapping[match.group(1)].text

        text = pattern.sub(replace, self.text)
        imports = self.imports.union(*(mapping[name].imports for name in used))
        return Expr(text, frozenset(imports))


NONE_EXPR = Expr("None")
ANY_EXPR = Expr("typing.Any", frozenset({"typing"}))


class HandlerKind(str, enum.Enum):
    COMMAND = "command"
    COMMAND_VOID = "command_void"
    QUERY = "query"
    NOTIFICATION = "notification"

    @property
    def is_request(self) -> bool:
        return self is not HandlerKind.NOTIFICATION


class LiteralKind(str, enum.Enum):
    STRING = "str"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    ENUM = "enum"


@dataclasses.dataclass(frozen=True)
class DecoratorUsage:
    """A marker written on a request type, read from its source text."""

    marker_name: str
    order: int = ORDER_LAST
    arguments: typing.Tuple[Expr | None, ...] = ()
    keywords: typing.Tuple[typing.Tuple[str, Expr | None], ...] = ()
    position: int = 0
    subject: str = ""

    def keyword(self, name: str) -> Expr | None:
        for key, value in self.keywords:
            if key == name:
                return value
        return None

    def has_keyword(self, name: str) -> bool:
        return any(key == name for key, _ in self.keywords)


@dataclasses.dataclass(frozen=True)
class HandlerDescriptor:
    kind: HandlerKind
    concrete_type: Expr
    contract_type: Expr
    request_type: Expr
    response_type: Expr = NONE_EXPR
    decorators: typing.Tuple[DecoratorUsage, ...] = ()

    @property
    def key(self) -> typing.Tuple[str, str]:
        return self.concrete_type.text, self.contract_type.text

    @property
    def name(self) -> str:
        return self.concrete_type.text.rpartition(".")[2]


@dataclasses.dataclass(frozen=True)
class ConfigParam:
    name: str
    value_type: Expr
    kind: LiteralKind
    nullable: bool = False
    default: Expr | None = None
    positional_only: bool = False
    keyword_only: bool = False
    enum_members: typing.Tuple[str, ...] = ()

    @property
    def is_inner_handler(self) -> bool:
        return False


@dataclasses.dataclass(frozen=True)
class ServiceParam:
    name: str
    type: Expr | None = None
    is_inner_handler: bool = False
    positional_only: bool = False
    keyword_only: bool = False


Parameter: typing.TypeAlias = ConfigParam | ServiceParam


@dataclasses.dataclass(frozen=True)
class DecoratorDefinition:
    marker_name: str
    decorator_type: Expr
    type_params: typing.Tuple[str, ...] = ()
    request_param: str | None = None
    response_param: str | None = None
    parameters: typing.Tuple[Parameter, ...] = ()
    handler_contract: str | None = None
    has_constructor: bool = True
    source: str = ""

    @property
    def config_params(self) -> typing.Tuple[ConfigParam, ...]:
        return tuple(p for p in self.parameters if isinstance(p, ConfigParam))

    @property
    def service_params(self) -> typing.Tuple[ServiceParam, ...]:
        return tuple(p for p in self.parameters if isinstance(p, ServiceParam))

    @property
    def inner_handler(self) -> ServiceParam | None:
        for param in self.service_params:
            if param.is_inner_handler:
                return param
        return None


@dataclasses.dataclass(frozen=True)
class Argument:
    name: str
    value: Expr
    keyword: bool = True
    note: str | None = None


@dataclasses.dataclass(frozen=True)
class PlanStep:
    definition: DecoratorDefinition
    usage: DecoratorUsage
    constructed_type: Expr
    arguments: typing.Tuple[Argument, ...] = ()
    note: str | None = None


@dataclasses.dataclass(frozen=True)
class CompositionPlan:
    """
    Construction steps of one handler, innermost first.

    The last step is the outermost wrapper: it observes the call first.
    """

    handler: HandlerDescriptor
    steps: typing.Tuple[PlanStep, ...] = ()

    @property
    def execution_order(self) -> typing.Tuple[str, ...]:
        return tuple(step.usage.marker_name for step in reversed(self.steps))


@dataclasses.dataclass(frozen=True)
class GeneratedSource:
    name: str
    text: str
