"""Artifact stores holding the package bytes behind registered functions.

Stores are addressed by package name and overwrite idempotently. The
registry only ever calls ``write``; the remaining operations serve
operators, loaders and tests.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from udfknobs_common.exceptions import NotFoundError

from .exceptions import ArtifactWriteError

logger = logging.getLogger(__name__)


def check_package_name(package_name: str) -> str:
    """Ensure a package name is a plain file name.

    Raises:
        ArtifactWriteError: If the name is empty, ``.``/``..`` or contains
            a path separator
    """
    if (
        not isinstance(package_name, str)
        or package_name in ("", ".", "..")
        or "/" in package_name
        or "\\" in package_name
        or "\0" in package_name
    ):
        raise ArtifactWriteError(
            f"Invalid package name: {package_name!r}",
            context={"package_name": package_name},
        )
    return package_name


class ArtifactStore(ABC):
    """Durable byte storage for uploaded packages."""

    @abstractmethod
    def write(self, data: bytes, package_name: str) -> None:
        """Store ``data`` under ``package_name``, replacing any previous bytes.

        Raises:
            ArtifactWriteError: If the bytes could not be persisted
        """

    @abstractmethod
    def read(self, package_name: str) -> bytes:
        """Return the bytes of a package.

        Raises:
            NotFoundError: If the package is not stored
        """

    @abstractmethod
    def exists(self, package_name: str) -> bool:
        pass

    @abstractmethod
    def remove(self, package_name: str) -> bool:
        """Delete a package. Returns True if something was deleted."""

    @abstractmethod
    def list_packages(self) -> List[str]:
        pass


class LocalArtifactStore(ArtifactStore):
    """Stores packages as files in a library directory.

    Bytes are first written to a file in ``temporary_lib_dir`` and then moved
    onto ``lib_dir/<package_name>`` with ``os.replace``, so readers never see
    a partially written package. Both directories must live on the same
    filesystem for the move to be atomic.
    """

    def __init__(self, lib_dir: str | Path, temporary_lib_dir: str | Path | None = None):
        self.lib_dir = Path(lib_dir)
        self.temporary_lib_dir = (
            Path(temporary_lib_dir) if temporary_lib_dir is not None else self.lib_dir / "tmp"
        )
        self.lib_dir.mkdir(parents=True, exist_ok=True)
        self.temporary_lib_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> LocalArtifactStore:
        """Create from a config dict with ``lib_dir`` and optional ``temporary_lib_dir``."""
        return cls(config["lib_dir"], config.get("temporary_lib_dir"))

    def path_for(self, package_name: str) -> Path:
        return self.lib_dir / check_package_name(package_name)

    def write(self, data: bytes, package_name: str) -> None:
        target = self.path_for(package_name)
        temp_path: str | None = None
        try:
            temp_fd, temp_path = tempfile.mkstemp(
                prefix=f".{package_name}.", suffix=".part", dir=self.temporary_lib_dir
            )
            with os.fdopen(temp_fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, target)
        except OSError as e:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)
            raise ArtifactWriteError(
                f"Failed to write package [{package_name}] to {target}: {e}",
                context={"package_name": package_name, "path": str(target)},
            ) from e
        logger.info("Wrote package '%s' (%d bytes) to %s", package_name, len(data), target)

    def read(self, package_name: str) -> bytes:
        path = self.path_for(package_name)
        if not path.is_file():
            raise NotFoundError(
                f"Package not found: {package_name}",
                context={"package_name": package_name, "path": str(path)},
            )
        return path.read_bytes()

    def exists(self, package_name: str) -> bool:
        return self.path_for(package_name).is_file()

    def remove(self, package_name: str) -> bool:
        path = self.path_for(package_name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Removed package '%s' from %s", package_name, self.lib_dir)
        return True

    def list_packages(self) -> List[str]:
        return sorted(p.name for p in self.lib_dir.iterdir() if p.is_file())


class MemoryArtifactStore(ArtifactStore):
    """Thread-safe in-memory store for tests and ephemeral registries."""

    def __init__(self) -> None:
        self._packages: Dict[str, bytes] = {}
        self._write_counts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def write(self, data: bytes, package_name: str) -> None:
        check_package_name(package_name)
        with self._lock:
            self._packages[package_name] = bytes(data)
            self._write_counts[package_name] = self._write_counts.get(package_name, 0) + 1

    def read(self, package_name: str) -> bytes:
        with self._lock:
            if package_name not in self._packages:
                raise NotFoundError(
                    f"Package not found: {package_name}",
                    context={"package_name": package_name},
                )
            return self._packages[package_name]

    def exists(self, package_name: str) -> bool:
        with self._lock:
            return package_name in self._packages

    def remove(self, package_name: str) -> bool:
        with self._lock:
            return self._packages.pop(package_name, None) is not None

    def list_packages(self) -> List[str]:
        with self._lock:
            return sorted(self._packages)

    def write_count(self, package_name: str) -> int:
        """How many times ``package_name`` has been written."""
        with self._lock:
            return self._write_counts.get(package_name, 0)
