import ast
import logging
import typing

from cqrsgen.generator import diagnostics as diag, model as model_module, models
from cqrsgen.generator.settings import GeneratorSettings
from cqrsgen.markers import ORDER_LAST

logger = logging.getLogger("cqrsgen")


class HandlerDiscoverer:
    """
    Finds every concrete handler of the model.

    Abstract classes and classes with type parameters are never handlers, so
    generic decorators implementing a contract themselves are skipped.
    """

    def __init__(
        self,
        model: model_module.DeclarationModel,
        settings: GeneratorSettings,
        definitions: typing.Iterable[models.DecoratorDefinition],
        diagnostics: diag.Diagnostics,
    ) -> None:
        self._model = model
        self._settings = settings
        self._marker_names = frozenset(definition.marker_name for definition in definitions)
        self._diagnostics = diagnostics
        self._usages: typing.Dict[str, typing.Tuple[models.DecoratorUsage, ...]] = {}

    def discover(self) -> typing.Tuple[models.HandlerDescriptor, ...]:
        handlers: typing.Dict[typing.Tuple[str, str], models.HandlerDescriptor] = {}
        for declaration in self._model.declarations:
            if self._model.is_abstract(declaration) or self._model.type_parameters(declaration):
                continue
            for match in self._model.contracts(declaration, self._settings.runtime_package):
                handler = self._describe(declaration, match)
                if handler is None:
                    continue
                if handler.key in handlers:
                    logger.debug("Handler %s for %s already discovered", handler.name, handler.contract_type)
                    continue
                handlers[handler.key] = handler
                logger.debug("Discovered %s handler %s", handler.kind.value, handler.concrete_type)
        return tuple(handlers.values())

    def _describe(
        self,
        declaration: model_module.TypeDeclaration,
        match: model_module.ContractMatch,
    ) -> models.HandlerDescriptor | None:
        arguments = [self._model.render(argument, match.scope) for argument in match.arguments]
        if match.name == "NotificationHandler" and len(arguments) == 1:
            kind = models.HandlerKind.NOTIFICATION
            response_type = models.NONE_EXPR
        elif match.name == "VoidCommandHandler" and len(arguments) == 1:
            kind = models.HandlerKind.COMMAND_VOID
            response_type = models.NONE_EXPR
        elif match.name == "CommandHandler" and len(arguments) == 2:
            response_type = arguments[1]
            void = response_type.text == models.NONE_EXPR.text
            kind = models.HandlerKind.COMMAND_VOID if void else models.HandlerKind.COMMAND
        elif match.name == "QueryHandler" and len(arguments) == 2:
            kind = models.HandlerKind.QUERY
            response_type = arguments[1]
        else:
            return None

        runtime = self._settings.runtime_package
        contract_type = models.Expr(
            f"{runtime}.{match.name}[{', '.join(argument.text for argument in arguments)}]",
            frozenset({runtime}).union(*(argument.imports for argument in arguments)),
        )
        decorators: typing.Tuple[models.DecoratorUsage, ...] = ()
        if kind.is_request:
            request = self._model.lookup(match.arguments[0], match.scope)
            if request is not None:
                decorators = self._read_usages(request)
        return models.HandlerDescriptor(
            kind=kind,
            concrete_type=declaration.reference,
            contract_type=contract_type,
            request_type=arguments[0],
            response_type=response_type,
            decorators=decorators,
        )

    def _is_marker(self, marker: model_module.MarkerSyntax) -> bool:
        if marker.name in self._marker_names:
            return True
        module = None if marker.reference is None else marker.reference.qualname.rpartition(".")[0]
        if not module:
            return False
        markers_module = self._settings.markers_module
        return module == markers_module or module.endswith(f".{markers_module}")

    def _read_usages(
        self,
        request: model_module.TypeDeclaration,
    ) -> typing.Tuple[models.DecoratorUsage, ...]:
        if request.qualname in self._usages:
            return self._usages[request.qualname]

        usages = []
        for marker in self._model.markers(request):
            if not self._is_marker(marker):
                continue
            subject = f"{request.qualname}@{marker.name}"
            if marker.call is None:
                self._diagnostics.report(
                    diag.MARKER_NOT_CALLED,
                    subject,
                    f"write @{marker.name}() so the marker is not applied to the class as a value",
                )
                continue
            usages.append(self._read_usage(request, marker, marker.call, subject))

        self._usages[request.qualname] = tuple(usages)
        return self._usages[request.qualname]

    def _read_usage(
        self,
        request: model_module.TypeDeclaration,
        marker: model_module.MarkerSyntax,
        call: ast.Call,
        subject: str,
    ) -> models.DecoratorUsage:
        scope = request.scope
        arguments: typing.List[models.Expr | None] = []
        for index, argument in enumerate(call.args):
            value = None if isinstance(argument, ast.Starred) else self._model.literal(argument, scope)
            if value is None:
                self._report_non_literal(subject, f"argument {index}", argument)
            arguments.append(value)

        order = ORDER_LAST
        keywords: typing.List[typing.Tuple[str, models.Expr | None]] = []
        for option in call.keywords:
            if option.arg is None:
                self._report_non_literal(subject, "**kwargs", option.value)
                continue
            if option.arg == "order":
                try:
                    value = ast.literal_eval(option.value)
                except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
                    value = None
                if isinstance(value, int) and not isinstance(value, bool):
                    order = value
                else:
                    self._report_non_literal(subject, "order", option.value)
                continue
            literal = self._model.literal(option.value, scope)
            if literal is None:
                self._report_non_literal(subject, option.arg, option.value)
            keywords.append((option.arg, literal))

        return models.DecoratorUsage(
            marker_name=marker.name,
            order=order,
            arguments=tuple(arguments),
            keywords=tuple(keywords),
            position=marker.position,
            subject=subject,
        )

    def _report_non_literal(self, subject: str, what: str, node: ast.expr) -> None:
        self._diagnostics.report(
            diag.NON_LITERAL_ARGUMENT,
            subject,
            f"{what} ({ast.unparse(node)}) is not a literal and cannot be read",
        )
