"""udfknobs Config Package

Sectioned configuration with environment substitution and overrides.
"""

from .config import Config
from .environment import EnvironmentOverrides
from .exceptions import (
    ConfigError,
    ConfigNotFoundError,
    InvalidOverrideError,
)
from .substitution import VariableSubstitution

__version__ = "0.1.0"
__all__ = [
    "Config",
    "ConfigError",
    "ConfigNotFoundError",
    "EnvironmentOverrides",
    "InvalidOverrideError",
    "VariableSubstitution",
]
