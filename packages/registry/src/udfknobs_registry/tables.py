"""In-memory tables owned by the function registry.

Neither table locks on its own; ``FunctionRegistry`` guards both with a
single lock so that they change together.
"""

from __future__ import annotations

from typing import Dict, Iterator, List

from .exceptions import ChecksumConflictError, DuplicateNameError
from .models import FunctionMetadata


class FunctionTable:
    """Function name -> metadata."""

    def __init__(self, entries: Dict[str, FunctionMetadata] | None = None):
        self._functions: Dict[str, FunctionMetadata] = dict(entries or {})

    def add(self, metadata: FunctionMetadata) -> None:
        """Insert a new entry.

        Raises:
            DuplicateNameError: If the name is already taken
        """
        if metadata.name in self._functions:
            raise DuplicateNameError(metadata.name)
        self._functions[metadata.name] = metadata

    def remove(self, name: str) -> FunctionMetadata | None:
        return self._functions.pop(name, None)

    def get(self, name: str) -> FunctionMetadata | None:
        return self._functions.get(name)

    def contains(self, name: str) -> bool:
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)

    def values(self) -> List[FunctionMetadata]:
        return [self._functions[name] for name in self.names()]

    def references(self, package_name: str) -> List[str]:
        """Names of the functions backed by ``package_name``."""
        return sorted(
            name
            for name, metadata in self._functions.items()
            if metadata.package_name == package_name
        )

    def replace_all(self, entries: Dict[str, FunctionMetadata]) -> None:
        self._functions = dict(entries)

    def snapshot(self) -> Dict[str, FunctionMetadata]:
        return dict(self._functions)

    def clear(self) -> None:
        self._functions.clear()

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FunctionTable):
            return NotImplemented
        return self._functions == other._functions

    def __repr__(self) -> str:
        return f"FunctionTable({self.names()!r})"


class ChecksumIndex:
    """Package name -> checksum, used for dedup decisions.

    A package name keeps the checksum it was first recorded with.
    """

    def __init__(self, entries: Dict[str, str] | None = None):
        self._checksums: Dict[str, str] = dict(entries or {})

    def conflicts(self, package_name: str, checksum: str) -> bool:
        """True when ``package_name`` is on record with a different checksum."""
        existing = self._checksums.get(package_name)
        return existing is not None and existing != checksum

    def record(self, package_name: str, checksum: str, function_name: str = "") -> None:
        """Record (or re-confirm) the checksum of a package.

        Raises:
            ChecksumConflictError: If a different checksum is already on record
        """
        existing = self._checksums.get(package_name)
        if existing is not None and existing != checksum:
            raise ChecksumConflictError(function_name, package_name, checksum, existing)
        self._checksums[package_name] = checksum

    def get(self, package_name: str) -> str | None:
        return self._checksums.get(package_name)

    def contains(self, package_name: str) -> bool:
        return package_name in self._checksums

    def packages(self) -> List[str]:
        return sorted(self._checksums)

    def replace_all(self, entries: Dict[str, str]) -> None:
        self._checksums = dict(entries)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._checksums)

    def clear(self) -> None:
        self._checksums.clear()

    def __len__(self) -> int:
        return len(self._checksums)

    def __contains__(self, package_name: object) -> bool:
        return package_name in self._checksums

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChecksumIndex):
            return NotImplemented
        return self._checksums == other._checksums

    def __repr__(self) -> str:
        return f"ChecksumIndex({self._checksums!r})"
