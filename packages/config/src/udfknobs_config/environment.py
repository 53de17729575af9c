"""Environment variable override system."""

import logging
import os
from typing import Any, Dict, Tuple

from .exceptions import InvalidOverrideError
from .substitution import convert_type

logger = logging.getLogger(__name__)


class EnvironmentOverrides:
    """Collects configuration overrides from environment variables.

    Variable format: ``UDFKNOBS_<SECTION>__<KEY>``

    Examples:
        - ``UDFKNOBS_REGISTRY__LIB_DIR=/var/lib/udf`` -> registry.lib_dir
        - ``UDFKNOBS_REGISTRY__VERIFY_CHECKSUMS=true`` -> registry.verify_checksums
    """

    ENV_PREFIX = "UDFKNOBS_"
    ENV_SEPARATOR = "__"

    def __init__(
        self, prefix: str | None = None, environ: Dict[str, str] | None = None
    ) -> None:
        self.prefix = prefix or self.ENV_PREFIX
        self._environ = os.environ if environ is None else environ

    def get_overrides(self) -> Dict[Tuple[str, str], Any]:
        """Return ``{(section, key): typed_value}`` for every prefixed variable.

        Malformed variables are skipped with a warning.
        """
        overrides: Dict[Tuple[str, str], Any] = {}
        for name, value in self._environ.items():
            if not name.startswith(self.prefix):
                continue
            try:
                overrides[self.parse_name(name)] = convert_type(value)
            except InvalidOverrideError as e:
                logger.warning("Ignoring environment override %s: %s", name, e)
        return overrides

    def parse_name(self, env_var: str) -> Tuple[str, str]:
        """Split a variable name into lower-cased ``(section, key)``.

        Raises:
            InvalidOverrideError: If the name lacks a section or a key
        """
        if not env_var.startswith(self.prefix):
            raise InvalidOverrideError(
                f"Environment variable must start with {self.prefix}",
                context={"variable": env_var},
            )
        section, sep, key = env_var[len(self.prefix):].partition(self.ENV_SEPARATOR)
        if not sep or not section or not key:
            raise InvalidOverrideError(
                f"Invalid environment variable format: {env_var}",
                context={"variable": env_var},
            )
        return section.lower(), key.lower()

    def to_env_var(self, section: str, key: str) -> str:
        """Build the variable name that overrides ``section.key``."""
        return f"{self.prefix}{section.upper()}{self.ENV_SEPARATOR}{key.upper()}"
