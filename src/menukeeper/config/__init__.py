"""Settings management for menukeeper."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import MenuKeeperConfig
from .resolver import (
    ENV_PREFIX,
    parse_override_pairs,
    resolve_with_precedence,
)

DEFAULT_CONFIG_PATH = Path("~/.menukeeper/config.yaml")
_CONFIG_HEADER = textwrap.dedent(
    """\
    # menukeeper settings file
    # Generated automatically; update values with `menukeeper config set KEY --value VALUE`.
    """
)


class ConfigManager:
    """Load and persist settings, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved settings path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = True,
    ) -> MenuKeeperConfig:
        """Load settings from disk and layer environment and CLI overrides on top."""
        if ensure_file:
            self.ensure_exists()

        env_data = self._extract_env(self._env) if include_env else None
        return resolve_with_precedence(
            defaults=MenuKeeperConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_data or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: MenuKeeperConfig | Mapping[str, Any]) -> None:
        """Persist settings to disk."""
        if isinstance(config, MenuKeeperConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a settings file with defaults if one does not exist."""
        if not self._config_path.exists():
            self._write_file(MenuKeeperConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        """Return the current settings file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        self._config_path.write_text(
            f"{_CONFIG_HEADER}# Last updated: {stamp}\n{serialized}", encoding="utf-8"
        )

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            dotted = ".".join(segment.lower() for segment in key[len(ENV_PREFIX) :].split("__"))
            if not dotted:
                continue
            try:
                overrides[dotted] = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                overrides[dotted] = raw_value
        return overrides


def expand_path(value: str | os.PathLike[str]) -> Path:
    """Return an absolute path with `~` and environment variables expanded."""
    return Path(os.path.expandvars(str(value))).expanduser()


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "MenuKeeperConfig",
    "resolve_with_precedence",
    "parse_override_pairs",
    "expand_path",
    "ConfigError",
]
