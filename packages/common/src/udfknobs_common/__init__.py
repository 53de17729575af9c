"""Common utilities and base classes for udfknobs packages.

- **Exceptions**: Unified exception hierarchy with context support
- **Serialization**: Protocol and helpers for to_dict/from_dict patterns
"""

from udfknobs_common.exceptions import (
    ConcurrencyError,
    ConfigurationError,
    NotFoundError,
    OperationError,
    SerializationError,
    UdfknobsError,
    ValidationError,
)
from udfknobs_common.serialization import (
    Serializable,
    deserialize,
    deserialize_list,
    serialize,
    serialize_list,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Exceptions
    "UdfknobsError",
    "ValidationError",
    "ConfigurationError",
    "NotFoundError",
    "OperationError",
    "ConcurrencyError",
    "SerializationError",
    # Serialization
    "Serializable",
    "serialize",
    "deserialize",
    "serialize_list",
    "deserialize_list",
]
