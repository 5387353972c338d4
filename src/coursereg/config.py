"""Configuration loading for coursereg."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_FILE = "coursereg.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass
class Settings:
    """Runtime settings for a registration store.

    Environment variables override file values:
    COURSEREG_DB_PATH, COURSEREG_LOG_DIR and COURSEREG_LOG_LEVEL.
    """

    db_path: str = "coursereg.db"
    log_dir: str = "logs"
    log_level: str = "INFO"
    seed_defaults: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Raises:
            ConfigError: If a key is unknown or a value has the wrong type.
        """
        known = {"db_path", "log_dir", "log_level", "seed_defaults"}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

        settings = cls()
        for key in ("db_path", "log_dir", "log_level"):
            if key in data:
                value = data[key]
                if not isinstance(value, str) or not value.strip():
                    raise ConfigError(f"'{key}' must be a non-empty string")
                setattr(settings, key, value.strip())
        if "seed_defaults" in data:
            if not isinstance(data["seed_defaults"], bool):
                raise ConfigError("'seed_defaults' must be true or false")
            settings.seed_defaults = data["seed_defaults"]
        return settings

    def apply_env(self, environ: dict[str, str] | None = None) -> Settings:
        """Apply environment overrides in place and return self."""
        env = os.environ if environ is None else environ
        self.db_path = env.get("COURSEREG_DB_PATH", self.db_path)
        self.log_dir = env.get("COURSEREG_LOG_DIR", self.log_dir)
        self.log_level = env.get("COURSEREG_LOG_LEVEL", self.log_level)
        return self


def load_settings(
    path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file plus environment overrides.

    Args:
        path: Config file. Defaults to 'coursereg.yaml' in the current
              directory; a missing default file yields default settings.
        environ: Environment mapping, os.environ when omitted.

    Returns:
        Loaded settings.

    Raises:
        ConfigError: If an explicitly given file is missing or the file is invalid.
    """
    explicit = path is not None
    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)

    if not config_path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        return Settings().apply_env(environ)

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {config_path}")

    return Settings.from_dict(data).apply_env(environ)
