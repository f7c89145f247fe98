import pydantic


class Response(pydantic.BaseModel):
    """
    Base class for response type objects.

    The response is a result of the query or command handling.
    """
