"""Exceptions raised by the function registry.

Validation errors (``DuplicateNameError``, ``ChecksumConflictError``) reject
a registration before any state changes. Commit-time errors are converted
into failure statuses by the registry; snapshot errors always propagate.
"""

from udfknobs_common.exceptions import (
    NotFoundError,
    OperationError,
    SerializationError,
    UdfknobsError,
    ValidationError,
)


class RegistryError(UdfknobsError):
    """Base exception for registry-specific failures."""

    pass


class DuplicateNameError(ValidationError, RegistryError):
    """A function with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(
            f"Failed to create function [{name}], the same name function has been created",
            context={"name": name},
        )
        self.name = name


class ChecksumConflictError(ValidationError, RegistryError):
    """A package is on record with a different checksum than the one supplied."""

    def __init__(self, name: str, package_name: str, checksum: str, existing: str):
        super().__init__(
            f"Failed to create function [{name}], the same name package "
            f"[{package_name}] but different checksum [{checksum}] has existed",
            context={
                "name": name,
                "package_name": package_name,
                "checksum": checksum,
                "existing_checksum": existing,
            },
        )
        self.name = name
        self.package_name = package_name


class ChecksumMismatchError(ChecksumConflictError):
    """Uploaded package bytes do not hash to the asserted checksum."""

    def __init__(self, name: str, package_name: str, checksum: str, actual: str):
        ValidationError.__init__(
            self,
            f"Failed to create function [{name}], package [{package_name}] has "
            f"checksum [{actual}] but [{checksum}] was asserted",
            context={
                "name": name,
                "package_name": package_name,
                "checksum": checksum,
                "actual_checksum": actual,
            },
        )
        self.name = name
        self.package_name = package_name


class FunctionNotFoundError(NotFoundError, RegistryError):
    """No function is registered under the requested name."""

    def __init__(self, name: str, available: list[str] | None = None):
        super().__init__(
            f"Function not found: {name}",
            context={"name": name, "available": available or []},
        )
        self.name = name


class ArtifactWriteError(OperationError, RegistryError):
    """Package bytes could not be persisted to the artifact store."""

    pass


class SnapshotIOError(OperationError, RegistryError):
    """A snapshot file could not be read or written."""

    pass


class SnapshotNotFoundError(SnapshotIOError):
    """No snapshot file exists yet (expected on first boot)."""

    pass


class SnapshotCorruptError(SerializationError, RegistryError):
    """A snapshot file exists but its content is invalid."""

    pass


__all__ = [
    "RegistryError",
    "DuplicateNameError",
    "ChecksumConflictError",
    "ChecksumMismatchError",
    "FunctionNotFoundError",
    "ArtifactWriteError",
    "SnapshotIOError",
    "SnapshotNotFoundError",
    "SnapshotCorruptError",
]
