import dataclasses
import functools
import logging
import pathlib
import typing

from cqrsgen.generator import (
    analyzer,
    diagnostics as diag,
    discovery,
    emitter,
    model as model_module,
    models,
    planner,
    synthesizer,
)
from cqrsgen.generator.settings import GeneratorSettings

logger = logging.getLogger("cqrsgen")


@dataclasses.dataclass(frozen=True)
class GenerationResult:
    markers: models.GeneratedSource
    wiring: models.GeneratedSource
    definitions: typing.Tuple[models.DecoratorDefinition, ...]
    handlers: typing.Tuple[models.HandlerDescriptor, ...]
    plans: typing.Tuple[models.CompositionPlan, ...]
    diagnostics: typing.Tuple[diag.Diagnostic, ...]

    @property
    def sources(self) -> typing.Tuple[models.GeneratedSource, ...]:
        return self.markers, self.wiring

    @property
    def errors(self) -> typing.Tuple[diag.Diagnostic, ...]:
        return tuple(item for item in self.diagnostics if item.severity is diag.Severity.ERROR)


@functools.lru_cache(maxsize=32)
def generate(
    model: model_module.DeclarationModel,
    settings: GeneratorSettings = GeneratorSettings(),
) -> GenerationResult:
    """
    Runs a generation pass over ``model``.

    The pass is pure and never raises for malformed declarations: problems are
    returned as diagnostics and the affected registration is degraded or
    dropped. Results are memoized by the content of the model and the settings.
    """
    logger.debug("Generating wiring for %s modules", len(model.modules))
    collector = diag.Diagnostics()
    for module, message in model.parse_errors:
        collector.report(diag.SYNTAX_ERROR, module, message)

    definitions = analyzer.DecoratorShapeAnalyzer(model, settings, collector).analyze()
    handlers = discovery.HandlerDiscoverer(model, settings, definitions, collector).discover()
    composition = planner.CompositionPlanner(definitions, collector)
    plans = tuple(composition.plan(handler) for handler in handlers)

    result = GenerationResult(
        markers=synthesizer.MarkerSynthesizer(settings).synthesize(definitions),
        wiring=emitter.WiringEmitter(settings).emit(plans),
        definitions=definitions,
        handlers=handlers,
        plans=plans,
        diagnostics=collector.freeze(),
    )
    logger.debug(
        "Generated %s markers and %s handlers with %s diagnostics",
        len(definitions),
        len(handlers),
        len(result.diagnostics),
    )
    return result


def write_sources(result: GenerationResult, output_dir: pathlib.Path | str) -> typing.List[pathlib.Path]:
    """Writes ``markers.py`` and ``wiring.py`` to ``output_dir``, and an ``__init__.py`` when it is missing."""
    output_dir = pathlib.Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    package = output_dir / "__init__.py"
    if not package.exists():
        package.write_text("", encoding="utf-8")
    written = []
    for source in result.sources:
        path = output_dir / f"{source.name}.py"
        path.write_text(source.text, encoding="utf-8")
        logger.debug("Written %s", path)
        written.append(path)
    return written
