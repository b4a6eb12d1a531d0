"""Configuration management for passrunner."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import ActionSettings, PassRunnerConfig
from .resolver import ENV_PREFIX, deep_merge, env_layer, flatten_for_env, resolve_with_precedence
from .settings import DEFAULT_STORE_DIR, RuntimeSettings, SettingsLoader

DEFAULT_CONFIG_PATH = Path("~/.passrunner/config.yaml")
_HEADER_LINES = (
    "# passrunner configuration file",
    "# Edit with `passrunner config edit` or `passrunner config set KEY VALUE`.",
)


class ConfigManager:
    """Read, write and resolve the YAML configuration file.

    The effective configuration layers, from lowest to highest priority: model
    defaults, the file, ``PASSRUNNER__SECTION__KEY`` variables, the
    ``PASSWORD_STORE_*`` variables understood by ``pass``, and CLI overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        """Return the expanded configuration file path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> PassRunnerConfig:
        """Return the validated configuration.

        Args:
            cli_overrides: Highest-priority overrides, nested or dotted.
            include_env: Whether environment variables participate.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Environment to read instead of the process environment.

        Raises:
            ConfigError: If the file cannot be parsed or the values are invalid.
        """
        if ensure_file:
            self.ensure_exists()

        environment: dict[str, Any] | None = None
        if include_env:
            source = self._env if env_overrides is None else env_overrides
            environment = env_layer(source) or None

        return resolve_with_precedence(
            defaults=PassRunnerConfig(),
            file_overrides=self._read_file(),
            env_overrides=environment,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the configuration file."""
        return self._read_file()

    def save(self, config: PassRunnerConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the configuration file."""
        if isinstance(config, PassRunnerConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Write a default configuration file unless one is already present."""
        if not self._config_path.exists():
            self.save(PassRunnerConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the raw file contents, or an empty string when absent."""
        try:
            return self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def _read_file(self) -> dict[str, Any]:
        try:
            text = self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise ConfigError(f"Failed to read configuration file: {exc}") from exc

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def _write_file(self, data: Mapping[str, Any]) -> None:
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        header = "\n".join((*_HEADER_LINES, f"# Last updated: {stamp}")) + "\n"
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(header + body, encoding="utf-8")


__all__ = [
    "ActionSettings",
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_STORE_DIR",
    "ENV_PREFIX",
    "PassRunnerConfig",
    "RuntimeSettings",
    "SettingsLoader",
    "deep_merge",
    "env_layer",
    "flatten_for_env",
    "resolve_with_precedence",
]
