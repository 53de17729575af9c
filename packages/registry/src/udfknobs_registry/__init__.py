"""Registry of user-defined functions backed by uploaded packages.

- **FunctionRegistry**: name -> metadata and package -> checksum under one lock
- **Artifact stores**: where package bytes live (local directory or memory)
- **SnapshotManager**: atomic, digest-checked recovery file

Example:
    ```python
    from udfknobs_registry import (
        CreateFunctionRequest,
        FunctionMetadata,
        FunctionRegistry,
        MemoryArtifactStore,
    )

    registry = FunctionRegistry(MemoryArtifactStore())
    status = registry.create_function(
        CreateFunctionRequest(FunctionMetadata("sum", "sum.jar", "abc"), b"...")
    )
    assert status.success
    ```
"""

from udfknobs_registry.exceptions import (
    ArtifactWriteError,
    ChecksumConflictError,
    ChecksumMismatchError,
    DuplicateNameError,
    FunctionNotFoundError,
    RegistryError,
    SnapshotCorruptError,
    SnapshotIOError,
    SnapshotNotFoundError,
)
from udfknobs_registry.models import (
    CreateFunctionRequest,
    DropFunctionRequest,
    FunctionMetadata,
    FunctionType,
    Status,
    StatusCode,
    compute_checksum,
)
from udfknobs_registry.registry import FunctionRegistry
from udfknobs_registry.settings import RegistrySettings
from udfknobs_registry.snapshot import SnapshotManager
from udfknobs_registry.store import ArtifactStore, LocalArtifactStore, MemoryArtifactStore
from udfknobs_registry.tables import ChecksumIndex, FunctionTable

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Registry
    "FunctionRegistry",
    "RegistrySettings",
    "SnapshotManager",
    "FunctionTable",
    "ChecksumIndex",
    # Stores
    "ArtifactStore",
    "LocalArtifactStore",
    "MemoryArtifactStore",
    # Models
    "FunctionMetadata",
    "FunctionType",
    "CreateFunctionRequest",
    "DropFunctionRequest",
    "Status",
    "StatusCode",
    "compute_checksum",
    # Exceptions
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
