import ast
import logging
import typing

from cqrsgen.generator import diagnostics as diag, model as model_module, models, synthesizer

logger = logging.getLogger("cqrsgen")

INNER_HANDLER = models.Expr("handler")

# Handler kinds an inner handler contract can wrap
_WRAPPABLE_KINDS: typing.Dict[str, typing.FrozenSet[models.HandlerKind]] = {
    "CommandHandler": frozenset({models.HandlerKind.COMMAND, models.HandlerKind.COMMAND_VOID}),
    "VoidCommandHandler": frozenset({models.HandlerKind.COMMAND_VOID}),
    "QueryHandler": frozenset({models.HandlerKind.QUERY}),
}


def resolve_expr(type_: models.Expr) -> models.Expr:
    return models.Expr(f"await container.resolve({type_.text})", type_.imports)


class CompositionPlanner:
    """
    Turns the markers of a handler into construction steps.

    Usages are sorted by ascending ``order``, equal orders keep the order in
    which they are written. The lowest order becomes the outermost wrapper,
    so the sorted usages are constructed from last to first.
    """

    def __init__(
        self,
        definitions: typing.Iterable[models.DecoratorDefinition],
        diagnostics: diag.Diagnostics,
    ) -> None:
        self._definitions = {definition.marker_name: definition for definition in definitions}
        self._diagnostics = diagnostics

    def plan(self, handler: models.HandlerDescriptor) -> models.CompositionPlan:
        if not handler.kind.is_request:
            return models.CompositionPlan(handler=handler)

        ordered = sorted(handler.decorators, key=lambda usage: (usage.order, usage.position))
        steps = []
        for usage in reversed(ordered):
            definition = self._definitions.get(usage.marker_name)
            if definition is None:
                self._diagnostics.report(
                    diag.UNKNOWN_MARKER,
                    usage.subject,
                    f"no decorator is generated for marker {usage.marker_name}; {handler.name} is built without it",
                )
                continue
            wrappable = _WRAPPABLE_KINDS.get(definition.handler_contract or "")
            if wrappable is not None and handler.kind not in wrappable:
                self._diagnostics.report(
                    diag.INCOMPATIBLE_DECORATOR,
                    usage.subject,
                    f"{definition.source} wraps a {definition.handler_contract}, "
                    f"{handler.name} is a {handler.kind.value} handler",
                )
                continue
            steps.append(self._step(handler, definition, usage))

        plan = models.CompositionPlan(handler=handler, steps=tuple(steps))
        if plan.steps:
            logger.debug("%s composed as %s", handler.name, " -> ".join(plan.execution_order))
        return plan

    def _step(
        self,
        handler: models.HandlerDescriptor,
        definition: models.DecoratorDefinition,
        usage: models.DecoratorUsage,
    ) -> models.PlanStep:
        mapping = self._mapping(handler, definition)
        constructed_type = definition.decorator_type
        if definition.type_params:
            type_arguments = [mapping[name] for name in definition.type_params]
            constructed_type = models.Expr(
                f"{constructed_type.text}[{', '.join(argument.text for argument in type_arguments)}]",
                constructed_type.imports.union(*(argument.imports for argument in type_arguments)),
            )

        if not definition.has_constructor:
            return models.PlanStep(
                definition=definition,
                usage=usage,
                constructed_type=constructed_type,
                note=f"CQG003 {definition.source} has no constructor, the wrapped handler is not passed",
            )

        arguments = []
        positional = list(usage.arguments)
        config_names = {
            param.name for param in definition.config_params if param.name not in synthesizer.RESERVED
        }
        for param in definition.parameters:
            if isinstance(param, models.ConfigParam) and param.name not in config_names:
                # the marker has no slot for it
                argument = self._fallback(param, usage)
            elif isinstance(param, models.ConfigParam):
                argument = self._config_argument(param, usage, positional)
            elif param.is_inner_handler:
                argument = models.Argument(name=param.name, value=INNER_HANDLER)
            elif param.type is None:
                argument = models.Argument(
                    name=param.name,
                    value=models.NONE_EXPR,
                    note=f"CQG010 type of {param.name} cannot be resolved",
                )
            else:
                argument = models.Argument(
                    name=param.name,
                    value=resolve_expr(param.type.substitute(mapping)),
                )
            if param.positional_only:
                argument = models.Argument(
                    name=argument.name,
                    value=argument.value,
                    keyword=False,
                    note=argument.note,
                )
            arguments.append(argument)

        if positional:
            self._diagnostics.report(
                diag.EXTRA_ARGUMENTS,
                usage.subject,
                f"{len(positional)} argument(s) left over after the parameters of {definition.source}",
            )
        for name, _ in usage.keywords:
            if name not in config_names:
                self._diagnostics.report(
                    diag.UNKNOWN_KEYWORD,
                    usage.subject,
                    f"{definition.source} has no configuration parameter {name}",
                )

        note = None
        if definition.inner_handler is None:
            note = f"CQG009 {definition.source} does not receive the wrapped handler"
        return models.PlanStep(
            definition=definition,
            usage=usage,
            constructed_type=constructed_type,
            arguments=tuple(arguments),
            note=note,
        )

    @staticmethod
    def _mapping(
        handler: models.HandlerDescriptor,
        definition: models.DecoratorDefinition,
    ) -> typing.Dict[str, models.Expr]:
        mapping = {name: models.ANY_EXPR for name in definition.type_params}
        if definition.request_param:
            mapping[definition.request_param] = handler.request_type
        if definition.response_param:
            mapping[definition.response_param] = handler.response_type
        return mapping

    def _config_argument(
        self,
        param: models.ConfigParam,
        usage: models.DecoratorUsage,
        positional: typing.List[models.Expr | None],
    ) -> models.Argument:
        if positional:
            value, given = positional.pop(0), True
        elif usage.has_keyword(param.name):
            value, given = usage.keyword(param.name), True
        else:
            value, given = None, False
        if value is not None:
            matched = _match_kind(param, value)
            if matched is not None:
                return models.Argument(name=param.name, value=matched)
            self._diagnostics.report(
                diag.NON_LITERAL_ARGUMENT,
                usage.subject,
                f"{value.text} is not a {param.kind.value} value for {param.name}",
            )
        note = None
        if given:
            note = f"CQG006 {param.name} cannot be read from the marker"
        return self._fallback(param, usage, note)

    def _fallback(
        self,
        param: models.ConfigParam,
        usage: models.DecoratorUsage,
        note: str | None = None,
    ) -> models.Argument:
        if param.default is not None:
            if note is not None:
                note = f"{note}, falls back to its default {param.default.text}"
            return models.Argument(name=param.name, value=param.default, note=note)

        value = synthesizer.sentinel(param)
        self._diagnostics.report(
            diag.DEFAULT_FALLBACK,
            usage.subject,
            f"{param.name} has no value and no default, {value.text} is used",
        )
        return models.Argument(
            name=param.name,
            value=value,
            note=f"CQG007 {param.name} falls back to {value.text}",
        )


def _match_kind(param: models.ConfigParam, value: models.Expr) -> models.Expr | None:
    """Returns ``value`` as the parameter's kind spells it, or ``None`` when it is another kind."""
    if value.text == models.NONE_EXPR.text:
        return value if param.nullable else None
    if param.kind is models.LiteralKind.ENUM:
        prefix = f"{param.value_type.text}."
        if value.text.startswith(prefix) and value.text[len(prefix):] in param.enum_members:
            return value
        return None
    if value.text.startswith("float("):
        return value if param.kind is models.LiteralKind.FLOAT else None
    try:
        literal = ast.literal_eval(value.text)
    except (ValueError, TypeError, SyntaxError):
        return None
    if isinstance(literal, bool):
        return value if param.kind is models.LiteralKind.BOOL else None
    if param.kind is models.LiteralKind.STRING and isinstance(literal, str):
        return value
    if param.kind is models.LiteralKind.INT and isinstance(literal, int):
        return value
    if param.kind is models.LiteralKind.FLOAT and isinstance(literal, (int, float)):
        return models.Expr(model_module.format_literal(float(literal)))
    return None
