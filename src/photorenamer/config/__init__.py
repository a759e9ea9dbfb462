"""User configuration: a YAML file layered under environment and CLI overrides."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import RenamerConfig
from .resolver import (
    ENV_PREFIX,
    assign_path,
    flatten_for_env,
    parse_env,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.photorenamer/config.yaml")
_HEADER_LINES = (
    "# photorenamer configuration",
    "# Edit with `photorenamer config edit` or `photorenamer config set KEY --value VALUE`.",
    f"# Environment variables named {ENV_PREFIX}SECTION__KEY override these values.",
)


class ConfigManager:
    """Own the configuration file and resolve it into a :class:`RenamerConfig`.

    Args:
        config_path: File location; ``~/.photorenamer/config.yaml`` by default.
        env: Environment used for ``PHOTORENAMER__`` overrides (``os.environ``
            when omitted).
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
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> RenamerConfig:
        """Resolve defaults, file values, environment, and CLI overrides.

        Args:
            cli_overrides: Dotted-key overrides supplied by command options.
            include_env: Whether ``PHOTORENAMER__`` variables are applied.
            ensure_file: Create the file with defaults when missing.

        Returns:
            RenamerConfig: The validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()
        return resolve_with_precedence(
            defaults=RenamerConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=parse_env(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored on disk (empty when there is no file).

        Raises:
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        text = self.read_text()
        if not text:
            return {}
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def set_value(self, key: str, value: Any) -> None:
        """Validate and persist one dotted ``key`` such as ``archive.folder_name``.

        Raises:
            ConfigError: If the key is empty, collides with a scalar, or the
                resulting configuration is invalid.
        """
        segments = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not segments:
            raise ConfigError("KEY must be a dotted path such as 'rename.template'.")
        data = self.load_file_overrides()
        assign_path(data, segments, value, source_name="file")
        self.replace(data)

    def replace(self, data: Mapping[str, Any]) -> None:
        """Validate ``data`` as the complete file contents and write it.

        Raises:
            ConfigError: If ``data`` does not produce a valid configuration.
        """
        resolve_with_precedence(defaults=RenamerConfig(), file_overrides=data)
        self.save(data)

    def save(self, config: RenamerConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to disk below the standard header."""
        if isinstance(config, RenamerConfig):
            data: dict[str, Any] = config.model_dump(mode="python")
        else:
            data = dict(config)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        lines = [*_HEADER_LINES, f"# Last updated: {stamp}"]
        body = yaml.safe_dump(data, sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text("\n".join(lines) + "\n" + body, encoding="utf-8")

    def ensure_exists(self) -> Path:
        """Create the file with default values if it does not exist yet."""
        if not self._config_path.exists():
            self.save(RenamerConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the file contents, or an empty string when it is missing."""
        try:
            return self._config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "RenamerConfig",
    "flatten_for_env",
    "resolve_with_precedence",
]
