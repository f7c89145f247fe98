import dataclasses
import os

import dotenv

dotenv.load_dotenv()

DEFAULT_MARKERS_MODULE = os.getenv("CQRSGEN_MARKERS_MODULE", "generated.markers")
DEFAULT_RUNTIME_PACKAGE = os.getenv("CQRSGEN_RUNTIME_PACKAGE", "cqrsgen")
DEFAULT_PUBLISHER_NAME = os.getenv("CQRSGEN_PUBLISHER_NAME", "GeneratedEventPublisher")
DEFAULT_REGISTER_FUNCTION = os.getenv("CQRSGEN_REGISTER_FUNCTION", "register_handlers")


@dataclasses.dataclass(frozen=True)
class GeneratorSettings:
    """
    Settings of a generation pass.

    ``markers_module`` is the import path the generated markers are written to.
    Request decorators imported from it are always treated as marker usages.
    ``runtime_package`` is the package that provides the handler contracts.
    """

    markers_module: str = DEFAULT_MARKERS_MODULE
    runtime_package: str = DEFAULT_RUNTIME_PACKAGE
    publisher_name: str = DEFAULT_PUBLISHER_NAME
    register_function: str = DEFAULT_REGISTER_FUNCTION

    @classmethod
    def from_env(cls) -> "GeneratorSettings":
        dotenv.load_dotenv()
        return cls(
            markers_module=os.getenv("CQRSGEN_MARKERS_MODULE", DEFAULT_MARKERS_MODULE),
            runtime_package=os.getenv("CQRSGEN_RUNTIME_PACKAGE", DEFAULT_RUNTIME_PACKAGE),
            publisher_name=os.getenv("CQRSGEN_PUBLISHER_NAME", DEFAULT_PUBLISHER_NAME),
            register_function=os.getenv("CQRSGEN_REGISTER_FUNCTION", DEFAULT_REGISTER_FUNCTION),
        )
