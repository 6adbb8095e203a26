"""
Loader settings: optional YAML file plus HOTCONF_* environment overrides, validated by Pydantic.

- HOTCONF_SETTINGS_FILE points at a YAML mapping of LoaderSettings fields.
- HOTCONF_<FIELD> (upper-case field name) overrides a single field, e.g. HOTCONF_POLL_INTERVAL_SECONDS=2.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

ENV_PREFIX = "HOTCONF_"
SETTINGS_FILE_ENV = "HOTCONF_SETTINGS_FILE"

_settings: LoaderSettings | None = None


class LoaderSettings(BaseModel):
    """Tunables for one ConfigLoader and its watch loop."""

    model_config = {"extra": "forbid", "frozen": True}

    poll_interval_seconds: float = Field(10.0, gt=0, description="Timer fallback interval of the watch loop")
    min_file_bytes: int = Field(10, ge=0, description="Files shorter than this are rejected as truncated")
    use_notifications: bool = Field(True, description="Use watchdog events; False forces pure polling")
    join_timeout_seconds: float = Field(5.0, gt=0, description="How long close() waits for the watch loop")


def reset_settings_cache() -> None:
    """Clear cached settings (for tests). Next get_settings() rereads file and env."""
    global _settings
    _settings = None


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _env_overrides() -> dict[str, str]:
    out: dict[str, str] = {}
    for name in LoaderSettings.model_fields:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            out[name] = value
    return out


def load_settings(path: str | Path | None = None) -> LoaderSettings:
    """
    Build LoaderSettings from a YAML file and the environment.

    Args:
        path: Settings file; defaults to $HOTCONF_SETTINGS_FILE when set.

    Raises:
        pydantic.ValidationError: If a value is out of range or a key is unknown.
    """
    if path is None:
        path = os.environ.get(SETTINGS_FILE_ENV)
    data = _load_yaml(Path(path)) if path else {}
    data.update(_env_overrides())
    return LoaderSettings.model_validate(data)


def get_settings() -> LoaderSettings:
    """Return process-wide default settings (loaded once)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
