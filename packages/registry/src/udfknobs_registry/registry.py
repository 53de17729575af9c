"""Function registry: the state machine behind CREATE/DROP FUNCTION.

The registry maps function names to metadata and package names to
checksums, and writes uploaded packages to an artifact store. Both maps are
guarded by one exclusive lock. A caller applying a registration holds the
lock across ``validate`` and ``register`` so nothing can change between the
check and the commit:

    ```python
    registry = FunctionRegistry(LocalArtifactStore("/var/lib/udf"))

    with registry.locked():
        registry.validate("sum", "sum.jar", md5)
        payload = jar_bytes if registry.needs_upload("sum.jar") else None
        status = registry.register(
            CreateFunctionRequest(FunctionMetadata("sum", "sum.jar", md5), payload)
        )
    ```

``create_function`` runs that sequence in one call. Every method also takes
the (reentrant) lock itself, so stand-alone calls are consistent too.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Union

from udfknobs_common.exceptions import ConcurrencyError, ValidationError
from udfknobs_config import Config

from .exceptions import (
    ArtifactWriteError,
    ChecksumConflictError,
    ChecksumMismatchError,
    DuplicateNameError,
    FunctionNotFoundError,
    SnapshotNotFoundError,
)
from .models import (
    CreateFunctionRequest,
    DropFunctionRequest,
    FunctionMetadata,
    Status,
    StatusCode,
    compute_checksum,
)
from .settings import RegistrySettings
from .snapshot import SnapshotManager
from .store import ArtifactStore, LocalArtifactStore, check_package_name
from .tables import ChecksumIndex, FunctionTable

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """Registry of user-defined functions and the packages implementing them.

    Args:
        store: Artifact store receiving uploaded package bytes
        settings: Registry settings (defaults apply when omitted)
    """

    def __init__(self, store: ArtifactStore, settings: RegistrySettings | None = None):
        self._store = store
        self._settings = settings or RegistrySettings()
        self._functions = FunctionTable()
        self._checksums = ChecksumIndex()
        self._lock = threading.RLock()
        self._snapshots = SnapshotManager(self._settings.snapshot_file_name)

    @classmethod
    def from_config(cls, config: Union[Config, Dict[str, Any]]) -> FunctionRegistry:
        """Create a registry backed by a LocalArtifactStore from configuration."""
        settings = RegistrySettings.from_config(config)
        store = LocalArtifactStore(settings.lib_dir, settings.temporary_lib_dir)
        return cls(store, settings)

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def snapshot_manager(self) -> SnapshotManager:
        return self._snapshots

    # --- Locking ---

    def acquire_lock(self, blocking: bool = True, timeout: float = -1) -> bool:
        """Acquire the registry lock. Returns False if it was not acquired."""
        logger.debug("Acquiring function registry lock")
        return self._lock.acquire(blocking, timeout)

    def release_lock(self) -> None:
        """Release the registry lock.

        Raises:
            ConcurrencyError: If the calling thread does not hold the lock
        """
        logger.debug("Releasing function registry lock")
        try:
            self._lock.release()
        except RuntimeError as e:
            raise ConcurrencyError(
                "Function registry lock released by a thread that does not hold it",
                context={"thread": threading.current_thread().name},
            ) from e

    @contextmanager
    def locked(self, timeout: float | None = None) -> Iterator[FunctionRegistry]:
        """Hold the registry lock for the duration of a ``with`` block.

        Raises:
            ConcurrencyError: If ``timeout`` seconds pass without acquiring it
        """
        if not self.acquire_lock(timeout=-1 if timeout is None else timeout):
            raise ConcurrencyError(
                f"Timed out after {timeout}s waiting for the function registry lock",
                context={"timeout": timeout},
            )
        try:
            yield self
        finally:
            self.release_lock()

    # --- Validation ---

    def validate(self, name: str, package_name: str, checksum: str) -> None:
        """Check that a function could be registered. Changes nothing.

        Raises:
            DuplicateNameError: If ``name`` is already registered
            ArtifactWriteError: If ``package_name`` is not a plain file name
                an artifact store could hold
            ChecksumConflictError: If ``package_name`` is on record with a
                different checksum
        """
        with self._lock:
            if self._functions.contains(name):
                raise DuplicateNameError(name)
            check_package_name(package_name)
            existing = self._checksums.get(package_name)
            if existing is not None and existing != checksum:
                raise ChecksumConflictError(name, package_name, checksum, existing)

    def needs_upload(self, package_name: str) -> bool:
        """True iff no checksum is on record for ``package_name``."""
        with self._lock:
            return not self._checksums.contains(package_name)

    # --- Commit ---

    def register(self, request: CreateFunctionRequest) -> Status:
        """Commit a registration.

        Validation is repeated inside the critical section. Package bytes, when
        present and not already on record, are written before either map
        changes, so a failed write leaves the registry untouched. Without
        bytes the caller asserts the package is already stored.
        """
        metadata = request.metadata
        with self._lock:
            try:
                self.validate(metadata.name, metadata.package_name, metadata.package_checksum)
                uploaded = self._write_package(request)
                self._functions.add(metadata)
                try:
                    self._checksums.record(
                        metadata.package_name, metadata.package_checksum, metadata.name
                    )
                except Exception:
                    self._functions.remove(metadata.name)
                    raise
            except ValidationError as e:
                logger.warning("Rejected function '%s': %s", metadata.name, e)
                return Status.from_error(e)
            except Exception as e:
                message = (
                    f"Failed to add function [{metadata.name}] in function table, "
                    f"because of {e}"
                )
                logger.warning("%s", message, exc_info=True)
                return Status.from_error(e, message)

        logger.info(
            "Registered function '%s' (package=%s, checksum=%s, uploaded=%s)",
            metadata.name,
            metadata.package_name,
            metadata.package_checksum,
            uploaded,
        )
        return Status.ok(f"Function [{metadata.name}] created")

    def _write_package(self, request: CreateFunctionRequest) -> bool:
        if request.package_bytes is None:
            return False

        metadata = request.metadata
        if self._settings.verify_checksums:
            actual = compute_checksum(request.package_bytes, self._settings.checksum_algorithm)
            if actual != metadata.package_checksum:
                raise ChecksumMismatchError(
                    metadata.name, metadata.package_name, metadata.package_checksum, actual
                )

        if self._checksums.contains(metadata.package_name):
            logger.debug(
                "Package '%s' already stored with the same checksum, skipping upload",
                metadata.package_name,
            )
            return False

        self._store.write(request.package_bytes, metadata.package_name)
        return True

    def create_function(self, request: CreateFunctionRequest) -> Status:
        """Validate and register in one critical section."""
        metadata = request.metadata
        with self.locked():
            try:
                self.validate(metadata.name, metadata.package_name, metadata.package_checksum)
            except (DuplicateNameError, ChecksumConflictError, ArtifactWriteError) as e:
                logger.warning("Rejected function '%s': %s", metadata.name, e)
                return Status.from_error(e)
            return self.register(request)

    # --- Removal ---

    def unregister(self, name: str) -> Status:
        """Remove a function. Answers NOT_FOUND, without raising, if absent.

        The package and its checksum stay on record; see ``orphaned_packages``.
        """
        with self._lock:
            removed = self._functions.remove(name)

        if removed is None:
            logger.info("Function '%s' is not registered, nothing to drop", name)
            return Status.failure(
                StatusCode.NOT_FOUND,
                f"Failed to drop function [{name}], the function is not registered",
                FunctionNotFoundError(name),
            )

        logger.info("Dropped function '%s' (package=%s)", name, removed.package_name)
        return Status.ok(f"Function [{name}] dropped")

    def drop_function(self, request: DropFunctionRequest) -> Status:
        return self.unregister(request.name)

    def orphaned_packages(self) -> List[str]:
        """Packages on record that no registered function references."""
        with self._lock:
            return [
                package
                for package in self._checksums.packages()
                if not self._functions.references(package)
            ]

    # --- Queries ---

    def get_function(self, name: str) -> FunctionMetadata:
        """Get a function's metadata.

        Raises:
            FunctionNotFoundError: If ``name`` is not registered
        """
        with self._lock:
            metadata = self._functions.get(name)
            if metadata is None:
                raise FunctionNotFoundError(name, self._functions.names())
            return metadata

    def get_function_optional(self, name: str) -> FunctionMetadata | None:
        with self._lock:
            return self._functions.get(name)

    def has_function(self, name: str) -> bool:
        with self._lock:
            return self._functions.contains(name)

    def list_functions(self) -> List[FunctionMetadata]:
        """All registered functions, sorted by name."""
        with self._lock:
            return self._functions.values()

    def functions_using(self, package_name: str) -> List[str]:
        with self._lock:
            return self._functions.references(package_name)

    def get_checksum(self, package_name: str) -> str | None:
        with self._lock:
            return self._checksums.get(package_name)

    def count(self) -> int:
        with self._lock:
            return len(self._functions)

    def function_table_copy(self) -> Dict[str, FunctionMetadata]:
        with self._lock:
            return self._functions.snapshot()

    def checksum_index_copy(self) -> Dict[str, str]:
        with self._lock:
            return self._checksums.snapshot()

    def clear(self) -> None:
        """Forget every function and checksum. Stored packages are kept."""
        with self._lock:
            self._functions.clear()
            self._checksums.clear()

    # --- Snapshots ---

    def take_snapshot(self, directory: str | Path) -> bool:
        """Write a snapshot of the registry into ``directory``.

        Returns:
            True on success; False if the write failed (the previous snapshot
            file, if any, is left intact)
        """
        with self._lock:
            return self._snapshots.take_snapshot(
                directory, self._functions.snapshot(), self._checksums.snapshot()
            )

    def load_snapshot(self, directory: str | Path, allow_missing: bool = False) -> bool:
        """Replace the registry state with the snapshot in ``directory``.

        Args:
            directory: Directory holding the snapshot file
            allow_missing: Treat a missing file as first boot: start empty and
                return False instead of raising

        Returns:
            True if a snapshot was loaded

        Raises:
            SnapshotNotFoundError: If there is no snapshot and ``allow_missing`` is False
            SnapshotIOError: If the snapshot cannot be read
            SnapshotCorruptError: If the snapshot content is invalid
        """
        with self._lock:
            try:
                functions, checksums = self._snapshots.load_snapshot(directory)
            except SnapshotNotFoundError:
                if not allow_missing:
                    raise
                logger.info("No registry snapshot in %s, starting empty", directory)
                self._functions.clear()
                self._checksums.clear()
                return False

            self._functions.replace_all(functions)
            self._checksums.replace_all(checksums)
            return True

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._functions

    def __repr__(self) -> str:
        return f"FunctionRegistry(functions={self.count()}, store={type(self._store).__name__})"
