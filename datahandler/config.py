"""Resolve client configuration from a yaml file, environment and CLI overrides."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from datahandler.const import (
    CHUNK_SIZE,
    CONFIG_DIR,
    CONFIG_ENCODING,
    CONFIG_FILE,
    HTTP_TIMEOUT_SECONDS,
    MIN_MULTIPART_UPLOAD_SIZE,
)
from datahandler.exceptions import ConfigError

_ENV_MAP: dict[str, str] = {
    "api_url": "DATAHANDLER_API_URL",
    "token": "DATAHANDLER_TOKEN",
    "chunk_size": "DATAHANDLER_CHUNK_SIZE",
    "multipart_threshold": "DATAHANDLER_MULTIPART_THRESHOLD",
    "http_timeout": "DATAHANDLER_HTTP_TIMEOUT",
    "verify_tls": "DATAHANDLER_VERIFY_TLS",
}

YES_CONFIRMATION = {"1", "true", "yes", "y"}


_BYTE_UNITS: dict[str, int] = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
}

_BYTE_VALUE = re.compile(r"(\d+)\s*([a-z]*)")


def parse_bytes(value: int | str) -> int:
    """Parse a byte quantity such as ``10mb`` or ``512k``.

    Units are binary and case-insensitive: b, k, kb, m, mb, g, gb. A bare
    number is a count of bytes.

    Raises:
        ValueError: If the value is malformed or uses an unknown unit.
    """
    if isinstance(value, int):
        return value

    match = _BYTE_VALUE.fullmatch(str(value).strip().lower())
    if match is None:
        raise ValueError(f"Invalid byte value: {value!r}")

    number, unit = match.groups()
    if unit not in _BYTE_UNITS:
        raise ValueError(f"Unknown byte unit in value: {value!r}")
    return int(number) * _BYTE_UNITS[unit]


class DatahandlerConfig(BaseModel):
    """Configuration for talking to the load service and object storage.

    Attributes:
        api_url: base URL of the load/dataset service.
        token: API token sent with every backend call.
        chunk_size: size of multipart parts, in bytes.
        multipart_threshold: files larger than this use multipart upload.
        http_timeout: timeout applied to every HTTP call, in seconds.
        verify_tls: whether TLS certificates of the backend are verified.
    """

    api_url: str | None = None
    token: str | None = None
    chunk_size: int = Field(default=CHUNK_SIZE, gt=0)
    multipart_threshold: int = Field(default=MIN_MULTIPART_UPLOAD_SIZE, ge=0)
    http_timeout: float = Field(default=HTTP_TIMEOUT_SECONDS, gt=0)
    verify_tls: bool = True

    @field_validator("chunk_size", "multipart_threshold", mode="before")
    @classmethod
    def _parse_byte_sizes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_bytes(value)
        return value

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.rstrip("/") or None

    def require_api_url(self) -> str:
        """Return the backend URL, failing when it is not configured.

        Raises:
            ConfigError: If no API URL was configured.
        """
        if not self.api_url:
            raise ConfigError(
                "The load service endpoint needs to be set "
                f"(config file or {_ENV_MAP['api_url']})"
            )
        return self.api_url


class ConfigManager:
    """Build the effective configuration from file, env, and CLI overrides."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialise ConfigManager.

        Args:
            config_path: yaml file holding the base configuration. Defaults to
                ``~/.datahandler/config.yaml``; a missing file is not an error.
        """
        self.config_path = config_path or CONFIG_DIR / CONFIG_FILE

    def _read_config_file(self) -> dict[str, Any]:
        """Read the base configuration from the yaml file.

        Returns:
            Field values found in the file, empty when the file is absent.

        Raises:
            ConfigError: If the file is not valid yaml or not a mapping.
        """
        try:
            with self.config_path.open("r", encoding=CONFIG_ENCODING) as config_file:
                data = yaml.safe_load(config_file) or {}
        except FileNotFoundError:
            return {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid config file {self.config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {self.config_path} must hold a mapping")
        return data

    def _read_env_overrides(self) -> dict[str, Any]:
        """Read configuration overrides from environment variables.

        Returns:
            A dictionary of configuration field names to override values.
        """
        overrides: dict[str, Any] = {}

        for field_name, env_var_name in _ENV_MAP.items():
            env_value = os.getenv(env_var_name)
            if env_value is None:
                continue

            if field_name == "verify_tls":
                overrides[field_name] = env_value.lower() in YES_CONFIRMATION
            else:
                overrides[field_name] = env_value

        return overrides

    def resolve_effective_config(
        self, cli_config: dict[str, Any] | None = None
    ) -> DatahandlerConfig:
        """Resolve the effective configuration for this run.

        Args:
            cli_config: Optional CLI-provided overrides. ``None`` values are
                ignored.

        Returns:
            The resolved ``DatahandlerConfig``.

        Raises:
            ConfigError: If the merged values do not form a valid configuration.
        """
        merged: dict[str, Any] = self._read_config_file()
        merged.update(self._read_env_overrides())

        if cli_config is not None:
            merged.update(
                {name: value for name, value in cli_config.items() if value is not None}
            )

        try:
            return DatahandlerConfig(**merged)
        except (ValidationError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
