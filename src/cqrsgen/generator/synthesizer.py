import logging
import typing

from cqrsgen.generator import models
from cqrsgen.generator.settings import GeneratorSettings

logger = logging.getLogger("cqrsgen")

HEADER = "# Generated by cqrsgen. Do not edit."
RESERVED = frozenset({"order", "self", "decorator"})


def sentinel(param: models.ConfigParam) -> models.Expr:
    """The value a configuration parameter takes when nothing else is known."""
    if param.nullable:
        return models.NONE_EXPR
    if param.kind is models.LiteralKind.STRING:
        return models.Expr('""')
    if param.kind is models.LiteralKind.BOOL:
        return models.Expr("False")
    if param.kind is models.LiteralKind.INT:
        return models.Expr("0")
    if param.kind is models.LiteralKind.FLOAT:
        return models.Expr("0.0")
    if param.enum_members:
        return models.Expr(
            f"{param.value_type.text}.{param.enum_members[0]}",
            param.value_type.imports,
        )
    return models.NONE_EXPR


def _annotation(param: models.ConfigParam) -> str:
    return f"{param.value_type.text} | None" if param.nullable else param.value_type.text


class MarkerSynthesizer:
    """
    Renders the markers module: one ``Marker`` subclass per decorator definition.

    Configuration parameters become positional constructor parameters and
    read-only properties. ``order`` is keyword-only and defaults to
    ``ORDER_LAST``. Parameters named ``order``, ``self`` or ``decorator``
    are left out of the marker and keep their default in the wiring.

    Properties keep the snake_case parameter name (``ttl_seconds``) instead
    of a capitalised accessor name.
    """

    def __init__(self, settings: GeneratorSettings) -> None:
        self._runtime = settings.runtime_package

    def synthesize(self, definitions: typing.Iterable[models.DecoratorDefinition]) -> models.GeneratedSource:
        ordered = sorted(definitions, key=lambda definition: definition.marker_name)
        imports: typing.Set[str] = set()
        blocks = []
        for definition in ordered:
            blocks.append(self._marker(definition, imports))
            logger.debug("Marker %s synthesized for %s", definition.marker_name, definition.source)

        lines = [
            HEADER,
            '"""Markers of the generated request decorators."""',
            "",
            "import typing",
            "",
            f"import {self._runtime}",
        ]
        lines.extend(f"import {module}" for module in sorted(imports - {"typing", self._runtime}))
        lines.append("")
        names = ", ".join(f'"{definition.marker_name}"' for definition in ordered)
        lines.append(f"__all__ = [{names}]")
        for block in blocks:
            lines.extend(["", ""])
            lines.extend(block)
        return models.GeneratedSource(name="markers", text="\n".join(lines) + "\n")

    def _marker(
        self,
        definition: models.DecoratorDefinition,
        imports: typing.Set[str],
    ) -> typing.List[str]:
        runtime = self._runtime
        params = [param for param in definition.config_params if param.name not in RESERVED]
        lines = [
            f"class {definition.marker_name}({runtime}.Marker):",
            f'    """Wraps the handler of the marked request in ``{definition.source}``."""',
            "",
            f'    decorator: typing.ClassVar[str] = "{definition.source}"',
            "",
        ]
        for param in definition.config_params:
            if param.name in RESERVED:
                lines.append(f"    # cqrsgen: parameter {param.name} of {definition.source} cannot be set by the marker")

        signature = ["self"]
        notes = []
        defaulted = False
        for param in params:
            imports.update(param.value_type.imports)
            default = param.default
            if default is None and defaulted:
                default = sentinel(param)
                notes.append(f"    # cqrsgen: CQG007 {param.name} defaults to {default.text}")
            if default is not None:
                defaulted = True
                imports.update(default.imports)
                signature.append(f"{param.name}: {_annotation(param)} = {default.text}")
            else:
                signature.append(f"{param.name}: {_annotation(param)}")
        signature.append(f"*, order: int = {runtime}.ORDER_LAST")
        lines.extend(notes)
        lines.append(f"    def __init__({', '.join(signature)}) -> None:")
        lines.append("        super().__init__(order=order)")
        lines.extend(f"        self._{param.name} = {param.name}" for param in params)

        for param in params:
            lines.extend(
                [
                    "",
                    "    @property",
                    f"    def {param.name}(self) -> {param.value_type.text}:",
                    f"        return self._{param.name}",
                ],
            )
        return lines
