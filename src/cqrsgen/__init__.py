from cqrsgen.container import Container, DIContainer, ServiceRegistry, ServiceScope
from cqrsgen.events import Event, EventPublisher, NotificationHandler
from cqrsgen.generator import DeclarationModel, generate, GenerationResult, GeneratorSettings, write_sources
from cqrsgen.markers import generate_decorator, get_markers, Marker, ORDER_LAST
from cqrsgen.requests import (
    Command,
    CommandHandler,
    Query,
    QueryHandler,
    Request,
    VoidCommandHandler,
)
from cqrsgen.response import Response
from cqrsgen.types import EventT, ReqT, ResT

__all__ = (
    "Request",
    "Command",
    "Query",
    "Response",
    "Event",
    "CommandHandler",
    "VoidCommandHandler",
    "QueryHandler",
    "NotificationHandler",
    "EventPublisher",
    "Marker",
    "ORDER_LAST",
    "generate_decorator",
    "get_markers",
    "Container",
    "DIContainer",
    "ServiceRegistry",
    "ServiceScope",
    "ReqT",
    "ResT",
    "EventT",
    "generate",
    "write_sources",
    "GenerationResult",
    "GeneratorSettings",
    "DeclarationModel",
)
