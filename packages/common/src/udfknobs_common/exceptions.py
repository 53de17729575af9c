"""Common exception hierarchy for all udfknobs packages.

Every error raised by a udfknobs package derives from ``UdfknobsError`` and
may carry a ``context`` dictionary naming the function, package, path or
setting involved. Operators see the message; callers that need structure
read the context.

Example:
    ```python
    from udfknobs_common.exceptions import NotFoundError

    raise NotFoundError(
        "Function not found: sum",
        context={"name": "sum", "available": ["avg"]},
    )
    ```

Package-specific errors extend one of the categories below:
    ```python
    class DuplicateNameError(ValidationError):
        '''A function with the same name is already registered.'''
    ```
"""

from typing import Any, Dict


class UdfknobsError(Exception):
    """Base exception for all udfknobs packages.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Args:
        message: Human-readable error message
        context: Optional dictionary with error context
        details: Alternative to context (takes precedence when both are given)
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context

    @property
    def message(self) -> str:
        """The message the error was raised with."""
        return str(self.args[0]) if self.args else ""


class ValidationError(UdfknobsError):
    """Raised when a precondition or constraint check fails.

    The rejected operation must not have changed any state.
    """

    pass


class ConfigurationError(UdfknobsError):
    """Raised when configuration is invalid or missing."""

    pass


class NotFoundError(UdfknobsError):
    """Raised when a requested item is not found."""

    pass


class OperationError(UdfknobsError):
    """Raised when an operation fails, typically because of I/O."""

    pass


class ConcurrencyError(UdfknobsError):
    """Raised on lock misuse or when a lock cannot be acquired in time."""

    pass


class SerializationError(UdfknobsError):
    """Raised when serialization or deserialization fails."""

    pass


__all__ = [
    "UdfknobsError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
    "ConcurrencyError",
    "SerializationError",
]
