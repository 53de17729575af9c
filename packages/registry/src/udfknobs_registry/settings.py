"""Registry settings, read from the ``registry`` section of a Config."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from udfknobs_common.exceptions import ConfigurationError
from udfknobs_config import Config

from .models import DEFAULT_CHECKSUM_ALGORITHM

SECTION = "registry"
DEFAULT_SNAPSHOT_FILE_NAME = "udf_info.snapshot"


@dataclass
class RegistrySettings:
    """Settings for a function registry.

    Attributes:
        lib_dir: Directory holding package files
        temporary_lib_dir: Staging directory for package writes
            (defaults to ``<lib_dir>/tmp``)
        snapshot_file_name: Fixed name of the recovery file
        checksum_algorithm: hashlib algorithm callers use for checksums
        verify_checksums: Check uploaded bytes against the asserted checksum
    """

    lib_dir: str = "ext/udf"
    temporary_lib_dir: str | None = None
    snapshot_file_name: str = DEFAULT_SNAPSHOT_FILE_NAME
    checksum_algorithm: str = DEFAULT_CHECKSUM_ALGORITHM
    verify_checksums: bool = False

    def __post_init__(self) -> None:
        if self.temporary_lib_dir is None:
            self.temporary_lib_dir = str(Path(self.lib_dir) / "tmp")
        if not self.snapshot_file_name or Path(self.snapshot_file_name).name != self.snapshot_file_name:
            raise ConfigurationError(
                f"snapshot_file_name must be a plain file name: {self.snapshot_file_name!r}",
                context={"setting": "snapshot_file_name", "value": self.snapshot_file_name},
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RegistrySettings:
        """Build settings from a plain dictionary.

        Raises:
            ConfigurationError: On unknown keys
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown registry settings: {', '.join(unknown)}",
                context={"unknown": unknown, "known": sorted(known)},
            )
        values = dict(data)
        for key in ("lib_dir", "temporary_lib_dir"):
            if values.get(key) is not None:
                values[key] = str(values[key])
        return cls(**values)

    @classmethod
    def from_config(cls, config: Union[Config, Dict[str, Any]]) -> RegistrySettings:
        """Build settings from a Config's ``registry`` section or a dict.

        A Config without a ``registry`` section yields the defaults.
        """
        if isinstance(config, Config):
            data = config.get(SECTION) if config.has_section(SECTION) else {}
        else:
            data = config[SECTION] if SECTION in config else config
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)
