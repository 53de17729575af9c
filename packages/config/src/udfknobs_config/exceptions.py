"""Exceptions for the config package, built on udfknobs_common."""

from udfknobs_common import (
    ConfigurationError,
    NotFoundError,
)

ConfigError = ConfigurationError


class ConfigNotFoundError(NotFoundError):
    """Raised when a requested configuration section or file is not found."""

    pass


class InvalidOverrideError(ConfigurationError):
    """Raised when an environment override variable is malformed."""

    pass
