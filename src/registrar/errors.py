"""Errors raised by registrar operations besides protean's own.

``ValidationError`` and ``ObjectNotFoundError`` come from protean and keep
their usual meaning.
"""

from protean.exceptions import InvalidOperationError


class AccessDenied(Exception):
    """The caller may not act on this organizer or resource."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)
        self.message = message


class ConflictError(InvalidOperationError):
    """The target is no longer in a state that allows the operation."""
