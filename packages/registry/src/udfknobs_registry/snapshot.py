"""Snapshot manager for crash recovery of the function registry.

A snapshot is one JSON file with a fixed name. The registry state sits in
``payload``; the envelope records a format tag, a version and the SHA-256 of
the canonical payload encoding so a truncated or edited file is detected on
load::

    {
      "format": "udfknobs.function-registry",
      "version": 1,
      "sha256": "<hex>",
      "payload": {
        "functions": [{"name": ..., "package_name": ..., ...}, ...],
        "packages": {"<package_name>": "<checksum>", ...}
      }
    }

Files are written to a temporary name in the target directory, flushed to
disk and moved into place with ``os.replace``, so a crash never exposes a
partial snapshot and a failed write leaves the previous one intact.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple

from udfknobs_common.exceptions import SerializationError
from udfknobs_common.serialization import deserialize_list, serialize_list

from .exceptions import SnapshotCorruptError, SnapshotIOError, SnapshotNotFoundError
from .models import FunctionMetadata
from .settings import DEFAULT_SNAPSHOT_FILE_NAME

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT = "udfknobs.function-registry"
SNAPSHOT_VERSION = 1

FunctionEntries = Dict[str, FunctionMetadata]
ChecksumEntries = Dict[str, str]


def _canonical(payload: Dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def _digest(payload: Dict[str, Any]) -> str:
    return hashlib.sha256(_canonical(payload)).hexdigest()


class SnapshotManager:
    """Writes and reads registry snapshots.

    The manager never touches registry state itself: ``take_snapshot`` is
    handed the two maps and ``load_snapshot`` returns freshly built ones.

    Args:
        file_name: Fixed name of the snapshot file inside a directory
    """

    def __init__(self, file_name: str = DEFAULT_SNAPSHOT_FILE_NAME):
        self.file_name = file_name

    def snapshot_path(self, directory: str | Path) -> Path:
        return Path(directory) / self.file_name

    def exists(self, directory: str | Path) -> bool:
        return self.snapshot_path(directory).is_file()

    def encode(self, functions: FunctionEntries, checksums: ChecksumEntries) -> bytes:
        """Encode both maps into snapshot file content.

        Raises:
            SerializationError: If a record holds values JSON cannot encode
        """
        payload = {
            "functions": serialize_list([functions[name] for name in sorted(functions)]),
            "packages": {name: checksums[name] for name in sorted(checksums)},
        }
        try:
            # Digest the payload as load will parse it back, not as held in memory.
            payload = json.loads(_canonical(payload))
            document = {
                "format": SNAPSHOT_FORMAT,
                "version": SNAPSHOT_VERSION,
                "sha256": _digest(payload),
                "payload": payload,
            }
            return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Registry state is not JSON-encodable: {e}", context={"error": str(e)}
            ) from e

    def decode(self, content: bytes, source: str = "<bytes>") -> Tuple[FunctionEntries, ChecksumEntries]:
        """Decode snapshot file content into ``(functions, checksums)``.

        Raises:
            SnapshotCorruptError: If the content is malformed, fails its
                digest check, or breaks a registry invariant
        """

        def corrupt(reason: str) -> SnapshotCorruptError:
            return SnapshotCorruptError(
                f"Corrupt snapshot {source}: {reason}",
                context={"path": source, "reason": reason},
            )

        try:
            document = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise corrupt(f"not valid JSON ({e})") from e

        if not isinstance(document, dict) or document.get("format") != SNAPSHOT_FORMAT:
            raise corrupt("unrecognized snapshot format")
        if document.get("version") != SNAPSHOT_VERSION:
            raise corrupt(f"unsupported snapshot version {document.get('version')!r}")

        payload = document.get("payload")
        if not isinstance(payload, dict):
            raise corrupt("missing payload")
        if document.get("sha256") != _digest(payload):
            raise corrupt("payload digest mismatch")

        packages = payload.get("packages")
        if not isinstance(packages, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in packages.items()
        ):
            raise corrupt("packages must map package names to checksums")

        try:
            entries = deserialize_list(FunctionMetadata, payload.get("functions"))  # type: ignore[arg-type]
        except SerializationError as e:
            raise corrupt(f"invalid function record ({e})") from e

        functions: FunctionEntries = {}
        for metadata in entries:
            if metadata.name in functions:
                raise corrupt(f"duplicate function name [{metadata.name}]")
            recorded = packages.get(metadata.package_name)
            if recorded != metadata.package_checksum:
                raise corrupt(
                    f"function [{metadata.name}] checksum does not match package "
                    f"[{metadata.package_name}]"
                )
            functions[metadata.name] = metadata

        return functions, dict(packages)

    def take_snapshot(
        self, directory: str | Path, functions: FunctionEntries, checksums: ChecksumEntries
    ) -> bool:
        """Atomically write a snapshot of both maps into ``directory``.

        Returns:
            True on success, False on failure (logged; prior snapshot kept)
        """
        target = self.snapshot_path(directory)
        temp_path: str | None = None
        try:
            content = self.encode(functions, checksums)
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                prefix=f".{self.file_name}.", suffix=".tmp", dir=target.parent
            )
            with os.fdopen(temp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, target)
            temp_path = None
        except (OSError, SerializationError) as e:
            logger.error("Failed to take registry snapshot in %s: %s", target.parent, e, exc_info=True)
            return False
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.remove(temp_path)

        logger.info(
            "Took registry snapshot %s (%d functions, %d packages)",
            target,
            len(functions),
            len(checksums),
        )
        return True

    def load_snapshot(self, directory: str | Path) -> Tuple[FunctionEntries, ChecksumEntries]:
        """Read the snapshot in ``directory``.

        Raises:
            SnapshotNotFoundError: If there is no snapshot file
            SnapshotIOError: If the file cannot be read
            SnapshotCorruptError: If the content is invalid
        """
        path = self.snapshot_path(directory)
        if not path.is_file():
            raise SnapshotNotFoundError(
                f"Snapshot not found: {path}", context={"path": str(path)}
            )
        try:
            content = path.read_bytes()
        except OSError as e:
            raise SnapshotIOError(
                f"Failed to read snapshot {path}: {e}", context={"path": str(path)}
            ) from e

        functions, checksums = self.decode(content, source=str(path))
        logger.info(
            "Loaded registry snapshot %s (%d functions, %d packages)",
            path,
            len(functions),
            len(checksums),
        )
        return functions, checksums
