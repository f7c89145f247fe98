import ast
import keyword
import logging
import typing

from cqrsgen.generator import diagnostics as diag, model as model_module, models
from cqrsgen.generator.settings import GeneratorSettings

logger = logging.getLogger("cqrsgen")

_PROMOTION_NAME = "generate_decorator"
_SCALARS: typing.Dict[str, models.LiteralKind] = {
    "str": models.LiteralKind.STRING,
    "bool": models.LiteralKind.BOOL,
    "int": models.LiteralKind.INT,
    "float": models.LiteralKind.FLOAT,
}
_OPTIONAL_FORMS = frozenset({"typing.Optional", "typing_extensions.Optional"})
_UNION_FORMS = frozenset({"typing.Union", "typing_extensions.Union"})
_INFERRED_KINDS = (
    models.LiteralKind.BOOL,
    models.LiteralKind.INT,
    models.LiteralKind.FLOAT,
    models.LiteralKind.STRING,
)


def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _parse_annotation(node: ast.expr | None) -> ast.expr | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            return ast.parse(node.value, mode="eval").body
        except SyntaxError:
            return node
    return node


class DecoratorShapeAnalyzer:
    """
    Builds a ``DecoratorDefinition`` for every class promoted with
    ``@generate_decorator(name)``.

    Each constructor parameter is classified structurally:

    * a request-handling contract over the decorator's own type parameters
      is the inner handler slot;
    * ``str``, ``bool``, ``int``, ``float`` or an enum of the model, optionally
      nullable, is a configuration value read from the marker;
    * anything else is a service resolved from the container.
    """

    def __init__(
        self,
        model: model_module.DeclarationModel,
        settings: GeneratorSettings,
        diagnostics: diag.Diagnostics,
    ) -> None:
        self._model = model
        self._settings = settings
        self._diagnostics = diagnostics

    def analyze(self) -> typing.Tuple[models.DecoratorDefinition, ...]:
        definitions: typing.Dict[str, models.DecoratorDefinition] = {}
        for declaration in self._model.declarations:
            promotion = self._promotion(declaration)
            if promotion is None:
                continue
            marker_name = self._marker_name(promotion)
            if marker_name is None:
                self._diagnostics.report(
                    diag.INVALID_MARKER_NAME,
                    declaration.qualname,
                    "generate_decorator needs a string literal that is a valid class name",
                )
                continue
            if marker_name in definitions:
                self._diagnostics.report(
                    diag.DUPLICATE_MARKER,
                    declaration.qualname,
                    f"marker {marker_name} is already generated for {definitions[marker_name].source}",
                )
                continue
            definitions[marker_name] = self._definition(declaration, promotion, marker_name)
            logger.debug("Decorator %s promoted to marker %s", declaration.qualname, marker_name)
        return tuple(definitions.values())

    def _promotion(self, declaration: model_module.TypeDeclaration) -> ast.expr | None:
        for decorator in declaration.node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            reference = declaration.scope.resolve(target)
            if reference is None or reference.terminal != _PROMOTION_NAME:
                continue
            if reference.qualname.partition(".")[0] == self._settings.runtime_package:
                return decorator
        return None

    @staticmethod
    def _marker_name(promotion: ast.expr) -> str | None:
        if not isinstance(promotion, ast.Call):
            return None
        node: ast.expr | None = promotion.args[0] if promotion.args else None
        for option in promotion.keywords:
            if option.arg == "name":
                node = option.value
        if not isinstance(node, ast.Constant) or not isinstance(node.value, str):
            return None
        if not node.value.isidentifier() or keyword.iskeyword(node.value):
            return None
        return node.value

    def _definition(
        self,
        declaration: model_module.TypeDeclaration,
        promotion: ast.expr,
        marker_name: str,
    ) -> models.DecoratorDefinition:
        type_params = self._model.type_parameters(declaration)
        constructors = self._model.constructors(declaration)
        if not constructors:
            self._diagnostics.report(
                diag.NO_CONSTRUCTOR,
                declaration.qualname,
                f"marker {marker_name} will construct the decorator without arguments",
            )
            request_param, response_param = self._slot_mapping(declaration, promotion, type_params, None)
            return models.DecoratorDefinition(
                marker_name=marker_name,
                decorator_type=declaration.reference,
                type_params=type_params,
                request_param=request_param,
                response_param=response_param,
                has_constructor=False,
                source=declaration.qualname,
            )

        # Most parameters wins, the first declared wins a tie
        constructor = constructors[0]
        for candidate in constructors[1:]:
            if len(candidate.parameters) > len(constructor.parameters):
                constructor = candidate

        parameters: typing.List[models.Parameter] = []
        inner: typing.Tuple[str, ast.Subscript] | None = None
        for parameter in constructor.parameters:
            annotation = _parse_annotation(parameter.annotation)
            if inner is None:
                contract = self._inner_contract(annotation, constructor.scope, type_params)
                if contract is not None:
                    inner = contract
                    parameters.append(
                        models.ServiceParam(
                            name=parameter.name,
                            type=self._model.render(annotation, constructor.scope, type_params),
                            is_inner_handler=True,
                            positional_only=parameter.positional_only,
                            keyword_only=parameter.keyword_only,
                        ),
                    )
                    continue
            parameters.append(
                self._classify(declaration, parameter, annotation, constructor.scope, type_params),
            )

        if inner is None:
            self._diagnostics.report(
                diag.NO_INNER_HANDLER,
                declaration.qualname,
                f"no constructor parameter of {declaration.name} receives the wrapped handler",
            )
        request_param, response_param = self._slot_mapping(declaration, promotion, type_params, inner)
        return models.DecoratorDefinition(
            marker_name=marker_name,
            decorator_type=declaration.reference,
            type_params=type_params,
            request_param=request_param,
            response_param=response_param,
            parameters=tuple(parameters),
            handler_contract=None if inner is None else inner[0],
            source=declaration.qualname,
        )

    def _inner_contract(
        self,
        annotation: ast.expr | None,
        scope: model_module.ModuleScope,
        type_params: typing.Tuple[str, ...],
    ) -> typing.Tuple[str, ast.Subscript] | None:
        if not isinstance(annotation, ast.Subscript):
            return None
        reference = scope.resolve(annotation.value)
        if reference is None or not model_module.is_contract(reference, self._settings.runtime_package):
            return None
        if reference.terminal not in model_module.REQUEST_CONTRACT_NAMES:
            return None
        arguments = model_module.subscript_arguments(annotation)
        names = [argument.id for argument in arguments if isinstance(argument, ast.Name)]
        if len(names) != len(arguments) or len(set(names)) != len(names):
            return None
        if not all(name in type_params for name in names):
            return None
        return reference.terminal, annotation

    def _slot_mapping(
        self,
        declaration: model_module.TypeDeclaration,
        promotion: ast.expr,
        type_params: typing.Tuple[str, ...],
        inner: typing.Tuple[str, ast.Subscript] | None,
    ) -> typing.Tuple[str | None, str | None]:
        explicit = self._explicit_slots(promotion, type_params)
        if explicit != (None, None):
            return explicit
        if inner is not None:
            return self._contract_slots(inner[0], model_module.subscript_arguments(inner[1]))
        for match in self._model.contracts(declaration, self._settings.runtime_package):
            if match.name in model_module.REQUEST_CONTRACT_NAMES:
                slots = self._contract_slots(match.name, match.arguments)
                if all(slot is None or slot in type_params for slot in slots):
                    return slots
        request_param = type_params[0] if type_params else None
        response_param = type_params[1] if len(type_params) > 1 else None
        return request_param, response_param

    @staticmethod
    def _explicit_slots(
        promotion: ast.expr,
        type_params: typing.Tuple[str, ...],
    ) -> typing.Tuple[str | None, str | None]:
        slots: typing.Dict[str, str | None] = {"request": None, "response": None}
        if isinstance(promotion, ast.Call):
            for option in promotion.keywords:
                if option.arg not in slots:
                    continue
                value = option.value
                name = value.id if isinstance(value, ast.Name) else None
                if isinstance(value, ast.Constant) and isinstance(value.value, str):
                    name = value.value
                if name in type_params:
                    slots[option.arg] = name
        return slots["request"], slots["response"]

    @staticmethod
    def _contract_slots(
        contract: str,
        arguments: typing.Sequence[ast.expr],
    ) -> typing.Tuple[str | None, str | None]:
        names = [argument.id if isinstance(argument, ast.Name) else None for argument in arguments]
        request_param = names[0] if names else None
        response_param = names[1] if len(names) > 1 and contract != "VoidCommandHandler" else None
        return request_param, response_param

    def _classify(
        self,
        declaration: model_module.TypeDeclaration,
        parameter: model_module.ParameterInfo,
        annotation: ast.expr | None,
        scope: model_module.ModuleScope,
        type_params: typing.Tuple[str, ...],
    ) -> models.Parameter:
        subject = f"{declaration.qualname}.{parameter.name}"
        if annotation is None:
            config = self._config_from_default(parameter, scope)
            if config is not None:
                return config
            self._diagnostics.report(
                diag.UNRESOLVED_PARAMETER,
                subject,
                "parameter has neither an annotation nor a literal default",
            )
            return models.ServiceParam(
                name=parameter.name,
                positional_only=parameter.positional_only,
                keyword_only=parameter.keyword_only,
            )

        unwrapped, nullable = self._unwrap_optional(annotation, scope)
        config_type = self._literal_type(unwrapped, scope)
        if config_type is None:
            return models.ServiceParam(
                name=parameter.name,
                type=self._model.render(annotation, scope, type_params),
                positional_only=parameter.positional_only,
                keyword_only=parameter.keyword_only,
            )

        kind, value_type, members = config_type
        default = None
        if parameter.has_default:
            default = self._format_default(parameter.default, kind, nullable, value_type, scope)
            if default is None and parameter.default is not None:
                default = self._model.render(parameter.default, scope, annotation=False)
                self._diagnostics.report(
                    diag.NON_LITERAL_ARGUMENT,
                    subject,
                    f"default {default.text} is not a {kind.value} literal and is kept as written",
                )
        return models.ConfigParam(
            name=parameter.name,
            value_type=value_type,
            kind=kind,
            nullable=nullable,
            default=default,
            positional_only=parameter.positional_only,
            keyword_only=parameter.keyword_only,
            enum_members=members,
        )

    def _unwrap_optional(
        self,
        annotation: ast.expr,
        scope: model_module.ModuleScope,
    ) -> typing.Tuple[ast.expr, bool]:
        if isinstance(annotation, ast.BinOp) and isinstance(annotation.op, ast.BitOr):
            if _is_none(annotation.right):
                return annotation.left, True
            if _is_none(annotation.left):
                return annotation.right, True
        if isinstance(annotation, ast.Subscript):
            reference = scope.resolve(annotation.value)
            qualname = None if reference is None else reference.qualname
            if qualname in _OPTIONAL_FORMS:
                return annotation.slice, True
            if qualname in _UNION_FORMS:
                members = model_module.subscript_arguments(annotation)
                others = [member for member in members if not _is_none(member)]
                if len(members) == 2 and len(others) == 1:
                    return others[0], True
        return annotation, False

    def _literal_type(
        self,
        node: ast.expr,
        scope: model_module.ModuleScope,
    ) -> typing.Tuple[models.LiteralKind, models.Expr, typing.Tuple[str, ...]] | None:
        reference = scope.resolve(node)
        if reference is None:
            return None
        if reference.module is None and reference.qualname in _SCALARS:
            return _SCALARS[reference.qualname], models.Expr(reference.qualname), ()
        declaration = self._model.get(reference.qualname)
        if declaration is not None and self._model.is_enum(declaration):
            return models.LiteralKind.ENUM, declaration.reference, self._model.enum_members(declaration)
        return None

    def _format_default(
        self,
        node: ast.expr | None,
        kind: models.LiteralKind,
        nullable: bool,
        value_type: models.Expr,
        scope: model_module.ModuleScope,
    ) -> models.Expr | None:
        if node is None:
            return None
        if kind is models.LiteralKind.ENUM:
            member = self._model.literal(node, scope)
            if member is not None and member.text.startswith(f"{value_type.text}."):
                return member
            return models.NONE_EXPR if nullable and _is_none(node) else None
        try:
            value = ast.literal_eval(node)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            return None
        if value is None:
            return models.NONE_EXPR if nullable else None
        if kind is models.LiteralKind.BOOL and isinstance(value, bool):
            return models.Expr(repr(value))
        if isinstance(value, bool):
            return None
        if kind is models.LiteralKind.STRING and isinstance(value, str):
            return models.Expr(model_module.format_literal(value))
        if kind is models.LiteralKind.INT and isinstance(value, int):
            return models.Expr(str(value))
        if kind is models.LiteralKind.FLOAT and isinstance(value, (int, float)):
            return models.Expr(model_module.format_literal(float(value)))
        return None

    def _config_from_default(
        self,
        parameter: model_module.ParameterInfo,
        scope: model_module.ModuleScope,
    ) -> models.ConfigParam | None:
        if parameter.default is None:
            return None
        member = self._model.literal(parameter.default, scope)
        if member is not None and member.imports:
            # an enum member of the model
            owner = member.text.rpartition(".")[0]
            declaration = self._model.get(owner)
            if declaration is not None:
                return models.ConfigParam(
                    name=parameter.name,
                    value_type=declaration.reference,
                    kind=models.LiteralKind.ENUM,
                    default=member,
                    positional_only=parameter.positional_only,
                    keyword_only=parameter.keyword_only,
                    enum_members=self._model.enum_members(declaration),
                )
        try:
            value = ast.literal_eval(parameter.default)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            return None
        for kind in _INFERRED_KINDS:
            if type(value).__name__ == kind.value:
                return models.ConfigParam(
                    name=parameter.name,
                    value_type=models.Expr(kind.value),
                    kind=kind,
                    default=models.Expr(typing.cast(str, model_module.format_literal(value))),
                    positional_only=parameter.positional_only,
                    keyword_only=parameter.keyword_only,
                )
        return None
