import logging
import re
import typing

from cqrsgen.generator import models
from cqrsgen.generator.settings import GeneratorSettings
from cqrsgen.generator.synthesizer import HEADER

logger = logging.getLogger("cqrsgen")

_INDENT = "    "


def snake_case(name: str) -> str:
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


class WiringEmitter:
    """
    Renders composition plans into the wiring module.

    The module holds one factory per request handler, the generated event
    publisher and the registration function that populates a
    ``ServiceRegistry``.
    """

    def __init__(self, settings: GeneratorSettings) -> None:
        self._settings = settings
        self._runtime = settings.runtime_package

    def emit(self, plans: typing.Sequence[models.CompositionPlan]) -> models.GeneratedSource:
        imports: typing.Set[str] = set()
        factories: typing.List[typing.Tuple[models.CompositionPlan, str]] = []
        used_names: typing.Set[str] = set()
        blocks: typing.List[typing.List[str]] = []

        for plan in plans:
            if not plan.handler.kind.is_request:
                continue
            name = self._factory_name(plan.handler, used_names)
            factories.append((plan, name))
            blocks.append(self._factory(plan, name, imports))

        blocks.append(self._publisher([plan.handler for plan in plans], imports))
        blocks.append(self._register(plans, factories, imports))

        lines = [
            HEADER,
            '"""Handler registrations and the generated event publisher."""',
            "",
            "import logging",
            "import typing",
            "",
            f"import {self._runtime}",
        ]
        lines.extend(
            f"import {module}" for module in sorted(imports - {"logging", "typing", self._runtime})
        )
        lines.extend(
            [
                "",
                'logger = logging.getLogger("cqrsgen")',
                "",
                f'__all__ = ["{self._settings.publisher_name}", "{self._settings.register_function}"]',
            ],
        )
        for block in blocks:
            lines.extend(["", ""])
            lines.extend(block)
        return models.GeneratedSource(name="wiring", text="\n".join(lines) + "\n")

    @staticmethod
    def _factory_name(handler: models.HandlerDescriptor, used_names: typing.Set[str]) -> str:
        base = f"_create_{snake_case(handler.name)}"
        name, index = base, 1
        while name in used_names:
            index += 1
            name = f"{base}_{index}"
        used_names.add(name)
        return name

    def _factory(
        self,
        plan: models.CompositionPlan,
        name: str,
        imports: typing.Set[str],
    ) -> typing.List[str]:
        handler = plan.handler
        imports.update(handler.concrete_type.imports)
        lines = [
            f"async def {name}(container: {self._runtime}.Container) -> typing.Any:",
            f'{_INDENT}"""Builds {handler.name} for {handler.contract_type.text}."""',
            f"{_INDENT}handler = await container.resolve({handler.concrete_type.text})",
        ]
        for step in plan.steps:
            imports.update(step.constructed_type.imports)
            if step.note:
                lines.append(f"{_INDENT}# cqrsgen: {step.note}")
            if not step.arguments:
                lines.append(f"{_INDENT}handler = {step.constructed_type.text}()")
                continue
            lines.append(f"{_INDENT}handler = {step.constructed_type.text}(")
            for argument in step.arguments:
                imports.update(argument.value.imports)
                text = f"{argument.name}={argument.value.text}" if argument.keyword else argument.value.text
                comment = f"  # cqrsgen: {argument.note}" if argument.note else ""
                lines.append(f"{_INDENT * 2}{text},{comment}")
            lines.append(f"{_INDENT})")
        lines.append(f"{_INDENT}return handler")
        return lines

    def _publisher(
        self,
        handlers: typing.Sequence[models.HandlerDescriptor],
        imports: typing.Set[str],
    ) -> typing.List[str]:
        groups: typing.Dict[str, typing.List[models.HandlerDescriptor]] = {}
        for handler in handlers:
            if handler.kind is models.HandlerKind.NOTIFICATION:
                groups.setdefault(handler.request_type.text, []).append(handler)
                imports.update(handler.request_type.imports)
                imports.update(handler.concrete_type.imports)

        lines = [
            f"class {self._settings.publisher_name}({self._runtime}.EventPublisher):",
            f'{_INDENT}"""Publishes an event to its handlers one after another, in discovery order."""',
            "",
            f"{_INDENT}def __init__(self, container: {self._runtime}.Container) -> None:",
            f"{_INDENT * 2}self._container = container",
            "",
            f"{_INDENT}async def publish(self, event: typing.Any) -> None:",
            f"{_INDENT * 2}event_type = type(event)",
        ]
        warning = 'logger.warning("Handlers for event %s not found", event_type.__name__)'
        if groups:
            for index, (event_type, group) in enumerate(groups.items()):
                keyword = "if" if index == 0 else "elif"
                lines.append(f"{_INDENT * 2}{keyword} event_type is {event_type}:")
                lines.extend(
                    f"{_INDENT * 3}await self._dispatch({handler.concrete_type.text}, event)" for handler in group
                )
            lines.append(f"{_INDENT * 2}else:")
            lines.append(f"{_INDENT * 3}{warning}")
        else:
            lines.append(f"{_INDENT * 2}{warning}")
        lines.extend(
            [
                "",
                f"{_INDENT}async def _dispatch(self, handler_type: typing.Any, event: typing.Any) -> None:",
                f"{_INDENT * 2}handler = await self._container.resolve(handler_type)",
                f"{_INDENT * 2}await handler.handle(event)",
            ],
        )
        return lines

    def _register(
        self,
        plans: typing.Sequence[models.CompositionPlan],
        factories: typing.Sequence[typing.Tuple[models.CompositionPlan, str]],
        imports: typing.Set[str],
    ) -> typing.List[str]:
        lines = [
            f"def {self._settings.register_function}(registry: {self._runtime}.ServiceRegistry) -> None:",
            f"{_INDENT}registry.add_scoped({self._runtime}.EventPublisher, {self._settings.publisher_name})",
        ]
        registered: typing.Set[str] = set()
        for plan, name in factories:
            handler = plan.handler
            imports.update(handler.contract_type.imports)
            if handler.concrete_type.text not in registered:
                registered.add(handler.concrete_type.text)
                lines.append(f"{_INDENT}registry.add_scoped({handler.concrete_type.text})")
            lines.append(f"{_INDENT}registry.add_scoped({handler.contract_type.text}, {name})")
        for plan in plans:
            handler = plan.handler
            if handler.kind is models.HandlerKind.NOTIFICATION and handler.concrete_type.text not in registered:
                registered.add(handler.concrete_type.text)
                lines.append(f"{_INDENT}registry.add_scoped({handler.concrete_type.text})")
        logger.debug("%s registrations emitted", len(lines) - 1)
        return lines
