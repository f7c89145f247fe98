"""
Type definitions for cqrsgen.

This module contains common type variables used by the handler contracts.
It is placed at the bottom of the dependency hierarchy to avoid circular imports.
The generator recognises these names as type parameters when decorators import them.
"""

import typing

# Type variable for request types (contravariant - can accept subtypes)
ReqT = typing.TypeVar("ReqT", contravariant=True)

# Type variable for response types (covariant - can return subtypes)
ResT = typing.TypeVar("ResT", covariant=True)

# Type variable for notification event types
EventT = typing.TypeVar("EventT", contravariant=True)
