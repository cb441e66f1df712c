"""Configuration loader for veoscripter."""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

import tomllib

from veoscripter.ai.backends import SUPPORTED_BACKENDS
from veoscripter.ai.exceptions import ConfigError

# Config table -> Settings fields it may set
_SECTIONS: dict[str, tuple[str, ...]] = {
    "sampling": ("frame_count", "max_dimension", "quality", "seek_timeout"),
    "session": ("failure_recovery_seconds", "notice_seconds"),
    "analysis": ("backend", "model", "request_timeout"),
}

MAX_SCENE_COUNT = 5

# Looked up in the working directory in this order, with the key path of the veoscripter table
_CONFIG_FILES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("veoscripter.toml", ()),
    ("pyproject.toml", ("tool", "veoscripter")),
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Tunable defaults for sampling, session timing and the analysis backend."""

    frame_count: int = 8
    max_dimension: int = 512
    quality: float = 0.7
    seek_timeout: float = 10.0
    failure_recovery_seconds: float = 2.0
    notice_seconds: float = 5.0
    backend: str = "gemini"
    model: str | None = None
    request_timeout: float = 120.0

    def __post_init__(self) -> None:
        if self.frame_count < 1:
            raise ValueError("frame_count must be >= 1")
        if self.max_dimension < 1:
            raise ValueError("max_dimension must be >= 1")
        if not 0.0 < self.quality <= 1.0:
            raise ValueError("quality must be in (0, 1]")
        if self.seek_timeout <= 0:
            raise ValueError("seek_timeout must be positive")
        if self.failure_recovery_seconds < 0:
            raise ValueError("failure_recovery_seconds must be >= 0")
        if self.notice_seconds < 0:
            raise ValueError("notice_seconds must be >= 0")
        if self.backend not in SUPPORTED_BACKENDS:
            raise ValueError(f"backend must be one of: {', '.join(SUPPORTED_BACKENDS)}")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> Settings:
        """Build settings from a parsed config mapping, ignoring unknown keys with a warning."""
        values: dict[str, Any] = {}
        for section, keys in _SECTIONS.items():
            table = config.get(section, {})
            if not isinstance(table, dict):
                raise ConfigError(f"[{section}] must be a table")
            for key, value in table.items():
                if key not in keys:
                    warnings.warn(f"Unknown config key '{section}.{key}' ignored", RuntimeWarning)
                    continue
                values[key] = value
        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _find_config_file(directory: Path) -> tuple[Path, tuple[str, ...]] | None:
    """Return the first config file in `directory` and the key path of its veoscripter table."""
    for filename, table_path in _CONFIG_FILES:
        candidate = directory / filename
        if candidate.is_file():
            return candidate, table_path
    return None


def _read_table(path: Path, table_path: tuple[str, ...]) -> dict[str, Any]:
    with path.open("rb") as f:
        data: Any = tomllib.load(f)
    for key in table_path:
        data = data.get(key, {})
        if not isinstance(data, dict):
            raise ConfigError(f"[{'.'.join(table_path)}] in {path} must be a table")
    return data


@lru_cache(maxsize=8)
def _load_config(directory: Path) -> dict[str, Any]:
    found = _find_config_file(directory)
    if found is None:
        return {}

    path, table_path = found
    try:
        config = _read_table(path, table_path)
    except tomllib.TOMLDecodeError as e:
        warnings.warn(f"Invalid TOML in config file {path}: {e}", RuntimeWarning)
        return {}
    except OSError as e:
        warnings.warn(f"Cannot read config file {path}: {e}", RuntimeWarning)
        return {}

    logger.debug("Loaded configuration from %s", path)
    return config


def get_config() -> dict[str, Any]:
    """Raw veoscripter table for the current working directory, read once per directory."""
    return _load_config(Path.cwd())


def get_settings(**overrides: Any) -> Settings:
    """Validated settings: keyword overrides first (None is ignored), then the config file, then defaults.

    Raises:
        ConfigError: If the resulting values are invalid.
    """
    settings = Settings.from_config(get_config())
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return settings
    try:
        return Settings(**{**settings.to_dict(), **changes})
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def clear_config_cache() -> None:
    """Forget loaded config files so edits are picked up."""
    _load_config.cache_clear()
