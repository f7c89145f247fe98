from cqrsgen.generator.diagnostics import Diagnostic, Severity
from cqrsgen.generator.model import DeclarationModel, SourceModule
from cqrsgen.generator.models import (
    CompositionPlan,
    DecoratorDefinition,
    DecoratorUsage,
    GeneratedSource,
    HandlerDescriptor,
    HandlerKind,
)
from cqrsgen.generator.pipeline import generate, GenerationResult, write_sources
from cqrsgen.generator.settings import GeneratorSettings

__all__ = (
    "generate",
    "write_sources",
    "GenerationResult",
    "GeneratorSettings",
    "DeclarationModel",
    "SourceModule",
    "Diagnostic",
    "Severity",
    "CompositionPlan",
    "DecoratorDefinition",
    "DecoratorUsage",
    "GeneratedSource",
    "HandlerDescriptor",
    "HandlerKind",
)
