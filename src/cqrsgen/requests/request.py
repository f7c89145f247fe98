import pydantic


class Request(pydantic.BaseModel):
    """
    Base class for request-type objects.

    The request is an input of the request handler.
    Markers generated by cqrsgen are attached to request classes.
    """


class Command(Request):
    """
    Base class for commands.

    A command changes state and is handled by a ``CommandHandler``
    or a ``VoidCommandHandler``.
    """


class Query(Request):
    """
    Base class for queries.

    A query reads state and is handled by a ``QueryHandler``.
    """
