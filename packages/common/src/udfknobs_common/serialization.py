"""Serialization protocol and helpers for udfknobs packages.

Objects that persist through snapshots implement ``to_dict``/``from_dict``.
The helpers here wrap those calls so that any failure surfaces as a
``SerializationError`` with the offending type in its context.

Example:
    ```python
    from dataclasses import dataclass
    from udfknobs_common.serialization import serialize, deserialize

    @dataclass
    class Entry:
        name: str

        def to_dict(self) -> dict:
            return {"name": self.name}

        @classmethod
        def from_dict(cls, data: dict) -> "Entry":
            return cls(name=data["name"])

    data = serialize(Entry("sum"))
    entry = deserialize(Entry, data)
    ```
"""

from typing import Any, Dict, Protocol, Type, TypeVar, runtime_checkable

from udfknobs_common.exceptions import SerializationError

T = TypeVar("T")


@runtime_checkable
class Serializable(Protocol):
    """Protocol for objects that can be serialized to/from dict."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert object to dictionary representation."""
        ...

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create object from dictionary representation."""
        ...


def serialize(obj: Any) -> Dict[str, Any]:
    """Serialize an object to a dictionary via its ``to_dict`` method.

    Raises:
        SerializationError: If the object has no ``to_dict`` or it fails
    """
    if not hasattr(obj, "to_dict"):
        raise SerializationError(
            f"Object of type {type(obj).__name__} is not serializable (missing to_dict method)",
            context={"type": type(obj).__name__},
        )

    try:
        result = obj.to_dict()
    except Exception as e:
        raise SerializationError(
            f"Failed to serialize {type(obj).__name__}: {e}",
            context={"type": type(obj).__name__, "error": str(e)},
        ) from e

    if not isinstance(result, dict):
        raise SerializationError(
            f"to_dict() must return a dict, got {type(result).__name__}",
            context={"type": type(obj).__name__, "result_type": type(result).__name__},
        )
    return result


def deserialize(cls: Type[T], data: Dict[str, Any]) -> T:
    """Build an instance of ``cls`` from a dictionary via ``from_dict``.

    Raises:
        SerializationError: If ``cls`` has no ``from_dict``, ``data`` is not a
            dict, or construction fails
    """
    if not hasattr(cls, "from_dict"):
        raise SerializationError(
            f"Class {cls.__name__} is not deserializable (missing from_dict classmethod)",
            context={"class": cls.__name__},
        )

    if not isinstance(data, dict):
        raise SerializationError(
            f"Data must be a dict, got {type(data).__name__}",
            context={"class": cls.__name__, "data_type": type(data).__name__},
        )

    try:
        return cls.from_dict(data)  # type: ignore[attr-defined, no-any-return]
    except SerializationError:
        raise
    except Exception as e:
        raise SerializationError(
            f"Failed to deserialize {cls.__name__}: {e}",
            context={"class": cls.__name__, "error": str(e), "data": data},
        ) from e


def serialize_list(items: list[Any]) -> list[Dict[str, Any]]:
    """Serialize a list of objects to a list of dictionaries."""
    return [serialize(item) for item in items]


def deserialize_list(cls: Type[T], data_list: list[Dict[str, Any]]) -> list[T]:
    """Deserialize a list of dictionaries into objects.

    Raises:
        SerializationError: If ``data_list`` is not a list or any item fails
    """
    if not isinstance(data_list, list):
        raise SerializationError(
            f"Data must be a list, got {type(data_list).__name__}",
            context={"class": cls.__name__, "data_type": type(data_list).__name__},
        )
    return [deserialize(cls, data) for data in data_list]


__all__ = [
    "Serializable",
    "serialize",
    "deserialize",
    "serialize_list",
    "deserialize_list",
]
