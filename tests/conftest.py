import importlib
import pathlib
import sys
import types

import di
import pytest
from di import dependent

import cqrsgen
from cqrsgen.generator import models, pipeline
from tests.fixtures.sample_app import behaviors

SAMPLE_APP = pathlib.Path(__file__).parent / "fixtures" / "sample_app"
SAMPLE_PACKAGE = "tests.fixtures.sample_app"
GENERATED_PACKAGE = f"{SAMPLE_PACKAGE}.generated"


def load_source(name: str, source: models.GeneratedSource) -> types.ModuleType:
    """Imports generated source text as the module ``name``."""
    package_name, _, attribute = name.rpartition(".")
    package = importlib.import_module(package_name)
    module = types.ModuleType(name)
    module.__file__ = f"<{name}>"
    sys.modules[name] = module
    exec(compile(source.text, module.__file__, "exec"), module.__dict__)
    setattr(package, attribute, module)
    return module


# The request modules of the sample app import the generated markers, so both
# generated modules are loaded before any test module is collected.
SAMPLE_RESULT = cqrsgen.generate(cqrsgen.DeclarationModel.from_directory(SAMPLE_APP, SAMPLE_PACKAGE))
SAMPLE_MARKERS = load_source(f"{GENERATED_PACKAGE}.markers", SAMPLE_RESULT.markers)
SAMPLE_WIRING = load_source(f"{GENERATED_PACKAGE}.wiring", SAMPLE_RESULT.wiring)

from tests.fixtures.sample_app.features import users  # noqa: E402


@pytest.fixture(autouse=True)
def clear_trace():
    behaviors.TRACE.clear()
    yield
    behaviors.TRACE.clear()


@pytest.fixture
def sample_result() -> pipeline.GenerationResult:
    return SAMPLE_RESULT


@pytest.fixture
def wiring() -> types.ModuleType:
    return SAMPLE_WIRING


@pytest.fixture
def markers() -> types.ModuleType:
    return SAMPLE_MARKERS


@pytest.fixture
def repository() -> users.UserRepository:
    return users.UserRepository()


@pytest.fixture
def cache() -> behaviors.Cache:
    return behaviors.Cache()


@pytest.fixture
def registry(repository: users.UserRepository, cache: behaviors.Cache) -> cqrsgen.ServiceRegistry:
    container = di.Container()
    container.bind(
        di.bind_by_type(
            dependent.Dependent(lambda: repository, scope="request"),
            users.UserRepository,
        ),
    )
    container.bind(
        di.bind_by_type(
            dependent.Dependent(lambda: cache, scope="request"),
            behaviors.Cache,
        ),
    )
    registry = cqrsgen.ServiceRegistry(container)
    SAMPLE_WIRING.register_handlers(registry)
    registry.add_scoped_item(behaviors.Validator[users.CreateUserCommand], users.CreateUserValidator)
    return registry
