from cqrsgen.container.di import DIContainer
from cqrsgen.container.protocol import Container
from cqrsgen.container.registry import Lifetime, Registration, ServiceRegistry, ServiceScope

__all__ = (
    "Container",
    "DIContainer",
    "Lifetime",
    "Registration",
    "ServiceRegistry",
    "ServiceScope",
)
