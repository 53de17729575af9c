"""Core Config class implementation."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml  # type: ignore[import-untyped]

from .environment import EnvironmentOverrides
from .exceptions import ConfigError, ConfigNotFoundError
from .substitution import VariableSubstitution


class Config:
    """Sectioned configuration assembled from files, dicts and the environment.

    Each top-level key of a source is a section holding a dictionary of
    settings. Later sources update earlier ones key by key. After loading,
    ``${VAR}`` references are substituted and ``UDFKNOBS_<SECTION>__<KEY>``
    variables override individual keys.
    """

    def __init__(self, *sources: Union[str, Path, dict], **kwargs: Any) -> None:
        """Initialize a Config object from one or more sources.

        Args:
            *sources: File paths (YAML or JSON) or dictionaries
            **kwargs: ``use_env`` (default True) toggles environment handling;
                ``environ`` supplies an alternate environment mapping
        """
        self._data: Dict[str, Dict[str, Any]] = {}
        environ = kwargs.get("environ")
        self._use_env = kwargs.get("use_env", True)
        self._substitution = VariableSubstitution(environ)
        self._environment_overrides = EnvironmentOverrides(
            prefix=kwargs.get("env_prefix"), environ=environ
        )

        for source in sources:
            self.load(source)

        if self._use_env:
            self._apply_environment_overrides()

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "Config":
        """Create a Config object from a YAML or JSON file."""
        return cls(path, **kwargs)

    @classmethod
    def from_dict(cls, data: dict, **kwargs: Any) -> "Config":
        """Create a Config object from a dictionary."""
        return cls(data, **kwargs)

    def load(self, source: Union[str, Path, dict]) -> None:
        """Merge one more source into the configuration."""
        if isinstance(source, dict):
            self._load_dict(source)
        elif isinstance(source, (str, Path)):
            self._load_file(source)
        else:
            raise ConfigError(
                f"Invalid source type: {type(source).__name__}",
                context={"source_type": type(source).__name__},
            )

    def _load_file(self, path: Union[str, Path]) -> None:
        path = Path(path).resolve()

        if not path.exists():
            raise ConfigNotFoundError(
                f"Configuration file not found: {path}", context={"path": str(path)}
            )

        suffix = path.suffix.lower()
        with open(path, encoding="utf-8") as f:
            try:
                if suffix in [".yaml", ".yml"]:
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigError(
                        f"Unsupported file format: {suffix}", context={"path": str(path)}
                    )
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigError(
                    f"Failed to parse configuration file {path}: {e}",
                    context={"path": str(path)},
                ) from e

        if data:
            self._load_dict(data)

    def _load_dict(self, data: dict) -> None:
        for section, values in data.items():
            if values is None:
                values = {}
            if not isinstance(values, dict):
                raise ConfigError(
                    f"Section '{section}' must be a mapping, got {type(values).__name__}",
                    context={"section": section},
                )
            if self._use_env:
                values = self._substitution.substitute(values)
            self._data.setdefault(section, {}).update(copy.deepcopy(values))

    def _apply_environment_overrides(self) -> None:
        for (section, key), value in self._environment_overrides.get_overrides().items():
            self._data.setdefault(section, {})[key] = value

    def get_sections(self) -> List[str]:
        """Get all section names."""
        return list(self._data.keys())

    def has_section(self, section: str) -> bool:
        return section in self._data

    def get(self, section: str) -> Dict[str, Any]:
        """Get a copy of a section.

        Raises:
            ConfigNotFoundError: If the section does not exist
        """
        if section not in self._data:
            raise ConfigNotFoundError(
                f"Section not found: {section}",
                context={"section": section, "available": self.get_sections()},
            )
        return copy.deepcopy(self._data[section])

    def get_value(self, section: str, key: str, default: Any = None) -> Any:
        """Get one setting, falling back to ``default``."""
        return copy.deepcopy(self._data.get(section, {}).get(key, default))

    def set(self, section: str, key: str, value: Any) -> None:
        self._data.setdefault(section, {})[key] = value

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        """Export the full configuration as a dictionary."""
        return copy.deepcopy(self._data)
