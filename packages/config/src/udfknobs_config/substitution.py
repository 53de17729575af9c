"""Environment variable substitution for configuration values."""

import os
import re
from typing import Any, Dict

from .exceptions import ConfigError


def convert_type(value: str) -> Any:
    """Convert a string from the environment to bool, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            pass

    return value


class VariableSubstitution:
    """Replaces ``${VAR}`` references in configuration values.

    Supported patterns:
    - ``${VAR}``: value of VAR, error if unset
    - ``${VAR:default}`` and ``${VAR:-default}``: value of VAR or the default

    A value that is exactly one reference is type-converted, so
    ``"${VERIFY:false}"`` yields ``False``. Mixed text always stays a string.
    """

    VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::(-)?([^}]*))?\}")

    def __init__(self, environ: Dict[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def substitute(self, value: Any) -> Any:
        """Recursively substitute variables in strings, dicts and lists.

        Raises:
            ConfigError: If a referenced variable is unset and has no default
        """
        if isinstance(value, str):
            return self._substitute_string(value)
        if isinstance(value, dict):
            return {key: self.substitute(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.substitute(item) for item in value]
        return value

    def has_variables(self, value: Any) -> bool:
        """Check whether a value contains any ``${...}`` reference."""
        if isinstance(value, str):
            return bool(self.VAR_PATTERN.search(value))
        if isinstance(value, dict):
            return any(self.has_variables(v) for v in value.values())
        if isinstance(value, list):
            return any(self.has_variables(item) for item in value)
        return False

    def _resolve(self, match: re.Match) -> str:
        var_name = match.group(1)
        if var_name in self._environ:
            return self._environ[var_name]
        if match.group(2) is not None or match.group(3) is not None:
            return match.group(3) or ""
        raise ConfigError(
            f"Environment variable '{var_name}' not found",
            context={"variable": var_name},
        )

    def _substitute_string(self, text: str) -> Any:
        whole = self.VAR_PATTERN.fullmatch(text)
        if whole is not None:
            return convert_type(self._resolve(whole))
        return self.VAR_PATTERN.sub(self._resolve, text)
