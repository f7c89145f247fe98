"""
Read-only model of the class declarations of a set of Python modules.

The model is built from source text with the standard library ``ast`` parser;
nothing is imported or executed. It answers the questions the generator asks
about a class:

* does it implement one of the handler contracts, and with which generic
  arguments (``contracts``)?
* which class decorators are written on it (``markers``)?
* what are its constructor candidates, their parameters, annotations and
  defaults (``constructors``)?
* is it abstract, generic, an enum, a dataclass?

Names are resolved through each module's imports so that every type can be
rendered as a fully qualified, importable expression (``render``).
"""

import ast
import builtins
import copy
import dataclasses
import hashlib
import json
import logging
import math
import pathlib
import typing

from cqrsgen.generator.models import Expr

logger = logging.getLogger("cqrsgen")

RUNTIME_PACKAGE = "cqrsgen"

CONTRACT_NAMES = frozenset(
    {
        "CommandHandler",
        "VoidCommandHandler",
        "QueryHandler",
        "NotificationHandler",
        "EventPublisher",
    },
)
REQUEST_CONTRACT_NAMES = frozenset({"CommandHandler", "VoidCommandHandler", "QueryHandler"})

_ENUM_BASES = frozenset({"enum.Enum", "enum.IntEnum", "enum.StrEnum", "enum.Flag", "enum.IntFlag"})
_ABSTRACT_BASES = frozenset({"abc.ABC", "typing.Protocol", "typing_extensions.Protocol"})
_GENERIC_BASES = frozenset(
    {"typing.Generic", "typing.Protocol", "typing_extensions.Generic", "typing_extensions.Protocol"},
)
_TYPEVAR_FACTORIES = frozenset({"typing.TypeVar", "typing_extensions.TypeVar"})
_LIBRARY_TYPEVARS = frozenset(
    f"{RUNTIME_PACKAGE}{path}.{name}" for path in ("", ".types") for name in ("ReqT", "ResT", "EventT")
)
_LITERAL_FORMS = frozenset({"typing.Literal", "typing_extensions.Literal"})
_ANNOTATED_FORMS = frozenset({"typing.Annotated", "typing_extensions.Annotated"})
_CLASSVAR_FORMS = frozenset({"typing.ClassVar", "typing_extensions.ClassVar"})
_KW_ONLY_FORMS = frozenset({"dataclasses.KW_ONLY"})
_DATACLASS_DECORATORS = frozenset({"dataclasses.dataclass", "pydantic.dataclasses.dataclass"})
_FIELD_FACTORIES = frozenset({"dataclasses.field"})
_ABSTRACT_METHOD_DECORATORS = frozenset({"abc.abstractmethod"})
_ABC_META = frozenset({"abc.ABCMeta"})


@dataclasses.dataclass(frozen=True)
class SourceModule:
    name: str
    source: str
    is_package: bool = False


@dataclasses.dataclass(frozen=True)
class Reference:
    """A name resolved to its qualified path and the module that provides it."""

    qualname: str
    module: str | None = None

    @property
    def terminal(self) -> str:
        return self.qualname.rpartition(".")[2]

    def to_expr(self) -> Expr:
        return Expr(self.qualname, frozenset({self.module}) if self.module else frozenset())


def _dotted(node: ast.AST) -> typing.List[str] | None:
    """Returns ``["a", "b", "c"]`` for ``a.b.c`` and ``None`` for anything else."""
    parts: typing.List[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    return parts[::-1]


class ModuleScope:
    """Module-level bindings of one source module."""

    def __init__(
        self,
        module: SourceModule,
        tree: ast.Module,
        known_modules: typing.AbstractSet[str],
    ) -> None:
        self.name = module.name
        self.package = module.name if module.is_package else module.name.rpartition(".")[0]
        self._known_modules = known_modules
        self._bindings: typing.Dict[str, Reference] = {}
        self._imported_modules: typing.Set[str] = set()
        self.type_vars: typing.Set[str] = set()
        for statement in tree.body:
            self._bind(statement)

    def _bind(self, statement: ast.stmt) -> None:
        if isinstance(statement, ast.Import):
            for alias in statement.names:
                self._imported_modules.add(alias.name)
                if alias.asname:
                    self._bindings[alias.asname] = Reference(alias.name, alias.name)
                else:
                    head = alias.name.partition(".")[0]
                    self._bindings[head] = Reference(head, head)
        elif isinstance(statement, ast.ImportFrom):
            source = self._absolute(statement)
            for alias in statement.names:
                if alias.name == "*":
                    continue
                qualname = f"{source}.{alias.name}" if source else alias.name
                module = qualname if qualname in self._known_modules else source
                self._bindings[alias.asname or alias.name] = Reference(qualname, module)
        elif isinstance(statement, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            self._bindings[statement.name] = Reference(f"{self.name}.{statement.name}", self.name)
        elif isinstance(statement, (ast.Assign, ast.AnnAssign)):
            targets = statement.targets if isinstance(statement, ast.Assign) else [statement.target]
            for target in targets:
                if not isinstance(target, ast.Name):
                    continue
                self._bindings[target.id] = Reference(f"{self.name}.{target.id}", self.name)
                if isinstance(statement.value, ast.Call):
                    factory = self.resolve(statement.value.func)
                    if factory is not None and factory.qualname in _TYPEVAR_FACTORIES:
                        self.type_vars.add(f"{self.name}.{target.id}")

    def _absolute(self, statement: ast.ImportFrom) -> str:
        if not statement.level:
            return statement.module or ""
        parts = self.package.split(".") if self.package else []
        if statement.level > 1:
            parts = parts[: len(parts) - (statement.level - 1)]
        if statement.module:
            parts.append(statement.module)
        return ".".join(parts)

    def resolve(self, node: ast.AST) -> Reference | None:
        parts = _dotted(node)
        if parts is None:
            return None
        head, rest = parts[0], parts[1:]
        binding = self._bindings.get(head)
        if binding is None:
            if hasattr(builtins, head) and not rest:
                return Reference(head)
            return None
        qualname = ".".join([binding.qualname, *rest])
        candidates = self._imported_modules | self._known_modules
        if binding.module:
            candidates = candidates | {binding.module}
        module = binding.module
        segments = qualname.split(".")
        for size in range(len(segments) - 1, 0, -1):
            prefix = ".".join(segments[:size])
            if prefix in candidates:
                module = prefix
                break
        return Reference(qualname, module)


@dataclasses.dataclass(frozen=True, eq=False)
class TypeDeclaration:
    name: str
    module: str
    node: ast.ClassDef
    scope: ModuleScope

    @property
    def qualname(self) -> str:
        return f"{self.module}.{self.name}"

    @property
    def reference(self) -> Expr:
        return Expr(self.qualname, frozenset({self.module}))


@dataclasses.dataclass(frozen=True, eq=False)
class ParameterInfo:
    name: str
    annotation: ast.expr | None = None
    default: ast.expr | None = None
    has_default: bool = False
    positional_only: bool = False
    keyword_only: bool = False


@dataclasses.dataclass(frozen=True, eq=False)
class Constructor:
    parameters: typing.Tuple[ParameterInfo, ...]
    lineno: int
    scope: ModuleScope
    synthesized: bool = False


@dataclasses.dataclass(frozen=True, eq=False)
class MarkerSyntax:
    """A class decorator as written in the source."""

    name: str
    reference: Reference | None
    call: ast.Call | None
    position: int


@dataclasses.dataclass(frozen=True, eq=False)
class ContractMatch:
    name: str
    arguments: typing.Tuple[ast.expr, ...]
    scope: ModuleScope


class DeclarationModel:
    """
    The declarations of a set of modules.

    Two models are equal when their modules have the same names and sources,
    which makes a model usable as a memoization key.
    """

    def __init__(self, modules: typing.Iterable[SourceModule]) -> None:
        self._modules = tuple(sorted(modules, key=lambda m: m.name))
        known_modules = frozenset(m.name for m in self._modules)
        self.parse_errors: typing.List[typing.Tuple[str, str]] = []
        self._scopes: typing.Dict[str, ModuleScope] = {}
        declarations: typing.List[TypeDeclaration] = []
        for module in self._modules:
            try:
                tree = ast.parse(module.source, filename=module.name)
            except SyntaxError as error:
                self.parse_errors.append((module.name, f"line {error.lineno}: {error.msg}"))
                continue
            scope = ModuleScope(module, tree, known_modules)
            self._scopes[module.name] = scope
            declarations.extend(
                TypeDeclaration(name=statement.name, module=module.name, node=statement, scope=scope)
                for statement in tree.body
                if isinstance(statement, ast.ClassDef)
            )
        self.declarations: typing.Tuple[TypeDeclaration, ...] = tuple(declarations)
        self._by_qualname = {declaration.qualname: declaration for declaration in declarations}
        self._type_vars = frozenset().union(*(scope.type_vars for scope in self._scopes.values()))
        digest = hashlib.sha256()
        for module in self._modules:
            digest.update(json.dumps([module.name, module.source, module.is_package]).encode())
        self.fingerprint = digest.hexdigest()

    @classmethod
    def from_sources(cls, sources: typing.Mapping[str, str]) -> "DeclarationModel":
        return cls(SourceModule(name=name, source=source) for name, source in sources.items())

    @classmethod
    def from_directory(cls, root: pathlib.Path | str, package: str = "") -> "DeclarationModel":
        """Reads every ``*.py`` file below ``root``; ``package`` is the import path of ``root``."""
        root = pathlib.Path(root)
        modules = []
        for path in sorted(root.rglob("*.py")):
            relative = path.relative_to(root)
            if "__pycache__" in relative.parts:
                continue
            parts = [package] if package else []
            is_package = path.name == "__init__.py"
            parts.extend(relative.parts[:-1])
            if not is_package:
                parts.append(path.stem)
            name = ".".join(parts)
            if not name:
                continue
            logger.debug("Reading module %s from %s", name, path)
            modules.append(
                SourceModule(name=name, source=path.read_text(encoding="utf-8"), is_package=is_package),
            )
        return cls(modules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeclarationModel):
            return NotImplemented
        return self.fingerprint == other.fingerprint

    def __hash__(self) -> int:
        return hash(self.fingerprint)

    @property
    def modules(self) -> typing.Tuple[SourceModule, ...]:
        return self._modules

    def get(self, qualname: str) -> TypeDeclaration | None:
        return self._by_qualname.get(qualname)

    def lookup(self, node: ast.AST, scope: ModuleScope) -> TypeDeclaration | None:
        reference = scope.resolve(node)
        return None if reference is None else self.get(reference.qualname)

    def is_type_var(self, node: ast.AST, scope: ModuleScope) -> bool:
        if not isinstance(node, ast.Name):
            return False
        reference = scope.resolve(node)
        if reference is None:
            return False
        return reference.qualname in self._type_vars or reference.qualname in _LIBRARY_TYPEVARS

    # -- rendering ---------------------------------------------------------

    def render(
        self,
        node: ast.expr,
        scope: ModuleScope,
        placeholders: typing.Collection[str] = (),
        annotation: bool = True,
    ) -> Expr:
        """
        Renders ``node`` with every resolvable name replaced by its qualified path.

        In an annotation, string constants are forward references and are
        qualified too. Values keep their strings as written.
        """
        transformer = _Qualifier(scope, frozenset(placeholders), forward_refs=annotation)
        qualified = transformer.visit(copy.deepcopy(node))
        return Expr(ast.unparse(qualified), frozenset(transformer.imports))

    def literal(self, node: ast.expr, scope: ModuleScope) -> Expr | None:
        """
        Renders a literal-representable expression, or returns ``None``.

        Constants, negative numbers, tuples of literals and members of enums
        declared in the model are supported. Computed values are not.
        """
        try:
            value = ast.literal_eval(node)
        except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
            value = node
        if value is not node:
            text = format_literal(value)
            return None if text is None else Expr(text)
        parts = _dotted(node)
        if parts is None or len(parts) < 2:
            return None
        owner = scope.resolve(node.value) if isinstance(node, ast.Attribute) else None
        declaration = None if owner is None else self.get(owner.qualname)
        if declaration is None or not self.is_enum(declaration):
            return None
        if parts[-1] not in self.enum_members(declaration):
            return None
        return Expr(f"{declaration.qualname}.{parts[-1]}", frozenset({declaration.module}))

    # -- declaration queries -----------------------------------------------

    def is_abstract(self, declaration: TypeDeclaration) -> bool:
        scope = declaration.scope
        for base in declaration.node.bases:
            target = base.value if isinstance(base, ast.Subscript) else base
            reference = scope.resolve(target)
            if reference is not None and reference.qualname in _ABSTRACT_BASES:
                return True
        for keyword in declaration.node.keywords:
            if keyword.arg == "metaclass":
                reference = scope.resolve(keyword.value)
                if reference is not None and reference.qualname in _ABC_META:
                    return True
        for statement in declaration.node.body:
            if not isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            for decorator in statement.decorator_list:
                reference = scope.resolve(decorator)
                if reference is not None and reference.qualname in _ABSTRACT_METHOD_DECORATORS:
                    return True
        return False

    def type_parameters(self, declaration: TypeDeclaration) -> typing.Tuple[str, ...]:
        """
        Returns the names of the type parameters of a class.

        PEP 695 parameters win, then the arguments of a ``Generic[...]`` base,
        then every ``TypeVar`` used in the bases in order of appearance.
        """
        pep695 = getattr(declaration.node, "type_params", None) or []
        if pep695:
            return tuple(parameter.name for parameter in pep695)
        scope = declaration.scope
        for base in declaration.node.bases:
            if not isinstance(base, ast.Subscript):
                continue
            reference = scope.resolve(base.value)
            if reference is not None and reference.qualname in _GENERIC_BASES:
                return tuple(
                    argument.id for argument in subscript_arguments(base) if isinstance(argument, ast.Name)
                )
        names: typing.List[str] = []
        for base in declaration.node.bases:
            for node in ast.walk(base):
                if isinstance(node, ast.Name) and node.id not in names and self.is_type_var(node, scope):
                    names.append(node.id)
        return tuple(names)

    def is_enum(self, declaration: TypeDeclaration, _seen: typing.Set[str] | None = None) -> bool:
        seen = _seen if _seen is not None else set()
        if declaration.qualname in seen:
            return False
        seen.add(declaration.qualname)
        for base in declaration.node.bases:
            reference = declaration.scope.resolve(base)
            if reference is None:
                continue
            if reference.qualname in _ENUM_BASES:
                return True
            parent = self.get(reference.qualname)
            if parent is not None and self.is_enum(parent, seen):
                return True
        return False

    def enum_members(self, declaration: TypeDeclaration) -> typing.Tuple[str, ...]:
        members: typing.List[str] = []
        for statement in declaration.node.body:
            if not isinstance(statement, ast.Assign):
                continue
            for target in statement.targets:
                if isinstance(target, ast.Name) and not target.id.startswith("_"):
                    members.append(target.id)
        return tuple(members)

    def is_dataclass(self, declaration: TypeDeclaration) -> bool:
        return self._dataclass_decorator(declaration) is not None

    def _dataclass_decorator(self, declaration: TypeDeclaration) -> ast.expr | None:
        for decorator in declaration.node.decorator_list:
            target = decorator.func if isinstance(decorator, ast.Call) else decorator
            reference = declaration.scope.resolve(target)
            if reference is not None and reference.qualname in _DATACLASS_DECORATORS:
                return decorator
        return None

    def markers(self, declaration: TypeDeclaration) -> typing.Tuple[MarkerSyntax, ...]:
        """Returns the class decorators of ``declaration`` in source order (top-most first)."""
        markers: typing.List[MarkerSyntax] = []
        for position, decorator in enumerate(declaration.node.decorator_list):
            call = decorator if isinstance(decorator, ast.Call) else None
            target = decorator.func if call is not None else decorator
            parts = _dotted(target)
            if parts is None:
                continue
            markers.append(
                MarkerSyntax(
                    name=parts[-1],
                    reference=declaration.scope.resolve(target),
                    call=call,
                    position=position,
                ),
            )
        return tuple(markers)

    def contracts(
        self,
        declaration: TypeDeclaration,
        runtime_package: str = RUNTIME_PACKAGE,
    ) -> typing.Tuple[ContractMatch, ...]:
        """
        Returns the handler contracts implemented by ``declaration``.

        Contracts are found on the written bases and, transitively, on in-model
        bases that are not generic themselves.
        """
        matches: typing.List[ContractMatch] = []
        self._collect_contracts(declaration, runtime_package, matches, set())
        return tuple(matches)

    def _collect_contracts(
        self,
        declaration: TypeDeclaration,
        runtime_package: str,
        matches: typing.List[ContractMatch],
        seen: typing.Set[str],
    ) -> None:
        if declaration.qualname in seen:
            return
        seen.add(declaration.qualname)
        for base in declaration.node.bases:
            target = base.value if isinstance(base, ast.Subscript) else base
            reference = declaration.scope.resolve(target)
            if reference is None:
                continue
            if is_contract(reference, runtime_package):
                arguments = subscript_arguments(base) if isinstance(base, ast.Subscript) else ()
                matches.append(
                    ContractMatch(name=reference.terminal, arguments=arguments, scope=declaration.scope),
                )
                continue
            parent = self.get(reference.qualname)
            if parent is not None and not self.type_parameters(parent):
                self._collect_contracts(parent, runtime_package, matches, seen)

    def constructors(
        self,
        declaration: TypeDeclaration,
        _seen: typing.Set[str] | None = None,
    ) -> typing.Tuple[Constructor, ...]:
        """
        Returns the constructor candidates of ``declaration`` in declaration order.

        Every ``__init__`` written in the class body is a candidate (overloads
        included). A dataclass without ``__init__`` has its synthesized one.
        Otherwise the candidates of the first in-model base that has any are used.
        """
        seen = _seen if _seen is not None else set()
        seen.add(declaration.qualname)
        scope = declaration.scope
        inits = [
            statement
            for statement in declaration.node.body
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef)) and statement.name == "__init__"
        ]
        if inits:
            return tuple(_function_constructor(function, scope) for function in inits)
        if self.is_dataclass(declaration):
            return (self._dataclass_constructor(declaration),)
        for base in declaration.node.bases:
            target = base.value if isinstance(base, ast.Subscript) else base
            parent = self.lookup(target, scope)
            if parent is None or parent.qualname in seen:
                continue
            inherited = self.constructors(parent, seen)
            if inherited:
                return inherited
        return ()

    def _dataclass_constructor(self, declaration: TypeDeclaration) -> Constructor:
        scope = declaration.scope
        decorator = self._dataclass_decorator(declaration)
        keyword_only = False
        if isinstance(decorator, ast.Call):
            for keyword in decorator.keywords:
                if keyword.arg == "kw_only" and isinstance(keyword.value, ast.Constant):
                    keyword_only = bool(keyword.value.value)
        parameters: typing.List[ParameterInfo] = []
        for statement in declaration.node.body:
            if not isinstance(statement, ast.AnnAssign) or not isinstance(statement.target, ast.Name):
                continue
            annotation_target = (
                statement.annotation.value if isinstance(statement.annotation, ast.Subscript) else statement.annotation
            )
            form = scope.resolve(annotation_target)
            if form is not None and form.qualname in _KW_ONLY_FORMS:
                keyword_only = True
                continue
            if form is not None and form.qualname in _CLASSVAR_FORMS:
                continue
            default = statement.value
            has_default = default is not None
            if isinstance(default, ast.Call):
                factory = scope.resolve(default.func)
                if factory is not None and factory.qualname in _FIELD_FACTORIES:
                    options = {keyword.arg: keyword.value for keyword in default.keywords}
                    init = options.get("init")
                    if isinstance(init, ast.Constant) and init.value is False:
                        continue
                    default = options.get("default")
                    has_default = default is not None or "default_factory" in options
            parameters.append(
                ParameterInfo(
                    name=statement.target.id,
                    annotation=statement.annotation,
                    default=default,
                    has_default=has_default,
                    keyword_only=keyword_only,
                ),
            )
        return Constructor(
            parameters=tuple(parameters),
            lineno=declaration.node.lineno,
            scope=scope,
            synthesized=True,
        )


def is_contract(reference: Reference, runtime_package: str = RUNTIME_PACKAGE) -> bool:
    return reference.qualname.partition(".")[0] == runtime_package and reference.terminal in CONTRACT_NAMES


def format_literal(value: typing.Any) -> str | None:
    """Formats a Python literal the way generated code spells it."""
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return f'float("{value}")'
        return repr(value)
    if isinstance(value, tuple):
        items = [format_literal(item) for item in value]
        if any(item is None for item in items):
            return None
        if len(items) == 1:
            return f"({items[0]},)"
        return f"({', '.join(typing.cast(typing.List[str], items))})"
    return None


def subscript_arguments(node: ast.Subscript) -> typing.Tuple[ast.expr, ...]:
    if isinstance(node.slice, ast.Tuple):
        return tuple(node.slice.elts)
    return (node.slice,)


def _function_constructor(
    function: ast.FunctionDef | ast.AsyncFunctionDef,
    scope: ModuleScope,
) -> Constructor:
    arguments = function.args
    positional = [*arguments.posonlyargs, *arguments.args]
    defaults: typing.List[ast.expr | None] = [None] * (len(positional) - len(arguments.defaults))
    defaults.extend(arguments.defaults)
    parameters: typing.List[ParameterInfo] = []
    for index, (argument, default) in enumerate(zip(positional, defaults)):
        if index == 0:
            # the instance
            continue
        parameters.append(
            ParameterInfo(
                name=argument.arg,
                annotation=argument.annotation,
                default=default,
                has_default=default is not None,
                positional_only=index < len(arguments.posonlyargs),
            ),
        )
    for argument, default in zip(arguments.kwonlyargs, arguments.kw_defaults):
        parameters.append(
            ParameterInfo(
                name=argument.arg,
                annotation=argument.annotation,
                default=default,
                has_default=default is not None,
                keyword_only=True,
            ),
        )
    return Constructor(parameters=tuple(parameters), lineno=function.lineno, scope=scope)


class _Qualifier(ast.NodeTransformer):
    """Rewrites resolvable names into ``ast.Name`` nodes holding the qualified path."""

    def __init__(
        self,
        scope: ModuleScope,
        placeholders: typing.FrozenSet[str],
        forward_refs: bool = True,
    ) -> None:
        self._scope = scope
        self._placeholders = placeholders
        self._forward_refs = forward_refs
        self.imports: typing.Set[str] = set()

    def _qualify(self, node: ast.Name | ast.Attribute) -> ast.expr:
        if isinstance(node, ast.Name) and node.id in self._placeholders:
            return node
        reference = self._scope.resolve(node)
        if reference is None:
            return node
        if reference.module:
            self.imports.add(reference.module)
        return ast.copy_location(ast.Name(id=reference.qualname, ctx=ast.Load()), node)

    def visit_Name(self, node: ast.Name) -> ast.expr:
        return self._qualify(node)

    def visit_Attribute(self, node: ast.Attribute) -> ast.expr:
        if _dotted(node) is None:
            return self.generic_visit(node)
        return self._qualify(node)

    def visit_Subscript(self, node: ast.Subscript) -> ast.expr:
        reference = self._scope.resolve(node.value)
        qualname = None if reference is None else reference.qualname
        node.value = self.visit(node.value)
        if qualname in _LITERAL_FORMS:
            return node
        if qualname in _ANNOTATED_FORMS and isinstance(node.slice, ast.Tuple) and node.slice.elts:
            first, *metadata = node.slice.elts
            node.slice.elts = [self.visit(first), *(self._value(item) for item in metadata)]
            return node
        node.slice = self.visit(node.slice)
        return node

    def visit_Call(self, node: ast.Call) -> ast.expr:
        node.func = self.visit(node.func)
        node.args = [self._value(argument) for argument in node.args]
        for keyword in node.keywords:
            keyword.value = self._value(keyword.value)
        return node

    def _value(self, node: ast.expr) -> ast.expr:
        forward_refs, self._forward_refs = self._forward_refs, False
        try:
            return self.visit(node)
        finally:
            self._forward_refs = forward_refs

    def visit_Constant(self, node: ast.Constant) -> ast.expr:
        # strings are forward references only where a type is expected
        if not self._forward_refs or not isinstance(node.value, str):
            return node
        try:
            parsed = ast.parse(node.value, mode="eval").body
        except SyntaxError:
            return node
        return self.visit(parsed)
