"""
Environment-driven configuration.

Settings are read from the process environment, after loading a ``.env``
file with python-dotenv. Existing environment variables take precedence over
the file.

Variables:
    KMS_OAEP_KEY_NAMES: Comma-separated, ordered KMS key references
    KMS_OAEP_LOG_LEVEL: Log level (default: info)
    KMS_OAEP_VERIFY_RESPONSE_CRC32C: Verify plaintext checksums returned by
        the backend (default: true)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple, Union

from dotenv import load_dotenv

from .errors import ConfigError

ENV_KEY_NAMES = "KMS_OAEP_KEY_NAMES"
ENV_LOG_LEVEL = "KMS_OAEP_LOG_LEVEL"
ENV_VERIFY_RESPONSE_CRC32C = "KMS_OAEP_VERIFY_RESPONSE_CRC32C"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def parse_key_names(value: str) -> Tuple[str, ...]:
    """Split a comma-separated key reference list, dropping blanks."""
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Process configuration for an identity."""

    key_names: Tuple[str, ...] = ()
    log_level: str = "info"
    verify_response_checksum: bool = True

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> Settings:
        """
        Load settings from the environment.

        Args:
            env_file: Path of a .env file; searched for when omitted
            environ: Mapping to read instead of os.environ (no .env loading)

        Returns:
            Settings instance

        Raises:
            ConfigError: If a variable has an invalid value
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        verify = environ.get(ENV_VERIFY_RESPONSE_CRC32C)
        return cls(
            key_names=parse_key_names(environ.get(ENV_KEY_NAMES, "")),
            log_level=environ.get(ENV_LOG_LEVEL, "info").strip().lower() or "info",
            verify_response_checksum=(
                True if verify is None else _parse_bool(ENV_VERIFY_RESPONSE_CRC32C, verify)
            ),
        )

    def require_key_names(self) -> Tuple[str, ...]:
        """Get key names, failing if none are configured."""
        if not self.key_names:
            raise ConfigError(f"{ENV_KEY_NAMES} must list at least one KMS key")
        return self.key_names
