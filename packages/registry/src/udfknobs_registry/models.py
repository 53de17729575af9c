"""Data models for the function registry.

``FunctionMetadata`` is the record stored per function. Requests wrap the
metadata with the optional package payload, and every mutating operation
answers with a ``Status`` rather than raising.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from udfknobs_common.exceptions import SerializationError, ValidationError

from .exceptions import (
    ArtifactWriteError,
    ChecksumConflictError,
    DuplicateNameError,
    FunctionNotFoundError,
)

DEFAULT_CHECKSUM_ALGORITHM = "md5"


def _find_non_json_value(value: Any, path: str) -> str | None:
    """Return the path of the first value that would not survive a JSON round trip."""
    if value is None or isinstance(value, (str, bool, int)):
        return None
    if isinstance(value, float):
        return None if math.isfinite(value) else path
    if isinstance(value, list):
        for i, item in enumerate(value):
            found = _find_non_json_value(item, f"{path}[{i}]")
            if found is not None:
                return found
        return None
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                return f"{path} key {key!r}"
            found = _find_non_json_value(item, f"{path}.{key}")
            if found is not None:
                return found
        return None
    return path


class FunctionType(str, Enum):
    """Kind of user-defined function. Opaque to the registry protocol."""

    SCALAR = "scalar"
    UDTF = "udtf"
    UDAF = "udaf"


class StatusCode(str, Enum):
    SUCCESS = "success"
    DUPLICATE_NAME = "duplicate_name"
    CHECKSUM_CONFLICT = "checksum_conflict"
    ARTIFACT_WRITE_ERROR = "artifact_write_error"
    NOT_FOUND = "not_found"
    EXECUTE_ERROR = "execute_error"


@dataclass(frozen=True)
class FunctionMetadata:
    """Metadata for one registered function.

    Attributes:
        name: Unique function name, compared by exact string equality
        package_name: Name of the package (artifact) implementing the function
        package_checksum: Content digest of the package asserted by the caller
        class_name: Entry point inside the package
        function_type: Kind of function
        attributes: Opaque payload passed through unchanged; must be
            JSON-native (str keys; dict, list, str, int, finite float, bool, None)
    """

    name: str
    package_name: str
    package_checksum: str
    class_name: str = ""
    function_type: FunctionType = FunctionType.UDTF
    attributes: dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        for attr in ("name", "package_name", "package_checksum"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value:
                raise ValidationError(
                    f"FunctionMetadata.{attr} must be a non-empty string",
                    context={"field": attr, "value": value},
                )
        if not isinstance(self.function_type, FunctionType):
            try:
                object.__setattr__(self, "function_type", FunctionType(self.function_type))
            except ValueError as e:
                raise ValidationError(
                    f"Unknown function type: {self.function_type}",
                    context={"field": "function_type", "value": self.function_type},
                ) from e
        # Snapshots store attributes as JSON and must restore them unchanged.
        if not isinstance(self.attributes, dict):
            raise ValidationError(
                "FunctionMetadata.attributes must be a dict",
                context={"field": "attributes", "value": self.attributes},
            )
        bad_path = _find_non_json_value(self.attributes, "attributes")
        if bad_path is not None:
            raise ValidationError(
                f"FunctionMetadata.{bad_path} is not a JSON value "
                "(allowed: dict with str keys, list, str, int, float, bool, None)",
                context={"field": "attributes", "path": bad_path},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "package_name": self.package_name,
            "package_checksum": self.package_checksum,
            "class_name": self.class_name,
            "function_type": self.function_type.value,
            "attributes": dict(self.attributes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionMetadata:
        try:
            return cls(
                name=data["name"],
                package_name=data["package_name"],
                package_checksum=data["package_checksum"],
                class_name=data.get("class_name", ""),
                function_type=data.get("function_type", FunctionType.UDTF.value),
                attributes=dict(data.get("attributes") or {}),
            )
        except KeyError as e:
            raise SerializationError(
                f"Missing function metadata field: {e.args[0]}",
                context={"field": e.args[0], "data": data},
            ) from e


@dataclass(frozen=True)
class CreateFunctionRequest:
    """A registration: the metadata plus, unless deduplicated, the package bytes."""

    metadata: FunctionMetadata
    package_bytes: bytes | None = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def has_package(self) -> bool:
        return self.package_bytes is not None


@dataclass(frozen=True)
class DropFunctionRequest:
    name: str


@dataclass(frozen=True)
class Status:
    """Outcome of a registry operation.

    Attributes:
        code: Outcome code
        message: Human-readable message naming the function/package involved
        error: The exception behind a failure, if any
    """

    code: StatusCode = StatusCode.SUCCESS
    message: str = ""
    error: Exception | None = field(default=None, compare=False)

    @property
    def success(self) -> bool:
        return self.code is StatusCode.SUCCESS

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "") -> Status:
        return cls(StatusCode.SUCCESS, message)

    @classmethod
    def failure(cls, code: StatusCode, message: str, error: Exception | None = None) -> Status:
        return cls(code, message, error)

    @classmethod
    def from_error(cls, error: Exception, message: str | None = None) -> Status:
        """Map an exception onto the matching failure code."""
        if isinstance(error, DuplicateNameError):
            code = StatusCode.DUPLICATE_NAME
        elif isinstance(error, ChecksumConflictError):
            code = StatusCode.CHECKSUM_CONFLICT
        elif isinstance(error, ArtifactWriteError):
            code = StatusCode.ARTIFACT_WRITE_ERROR
        elif isinstance(error, FunctionNotFoundError):
            code = StatusCode.NOT_FOUND
        else:
            code = StatusCode.EXECUTE_ERROR
        return cls(code, message if message is not None else str(error), error)


def compute_checksum(data: bytes, algorithm: str = DEFAULT_CHECKSUM_ALGORITHM) -> str:
    """Hex digest of ``data``, as asserted by callers when registering a package.

    Raises:
        ValidationError: If ``algorithm`` is not supported by hashlib
    """
    try:
        digest = hashlib.new(algorithm)
    except ValueError as e:
        raise ValidationError(
            f"Unsupported checksum algorithm: {algorithm}",
            context={"algorithm": algorithm},
        ) from e
    digest.update(data)
    return digest.hexdigest()
