from cqrsgen.requests.request import Command, Query, Request
from cqrsgen.requests.request_handler import (
    CommandHandler,
    QueryHandler,
    VoidCommandHandler,
)

__all__ = (
    "Command",
    "CommandHandler",
    "Query",
    "QueryHandler",
    "Request",
    "VoidCommandHandler",
)
