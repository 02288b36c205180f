"""Utility functions for loading and saving user settings.

The settings are stored as a list of dictionaries to preserve order.
Each dictionary contains ``key``, ``value`` and ``type`` entries.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from backend import DEFAULT_INCREMENT_STEP, DEFAULT_REST_DURATION, TOAST_DURATION
from backend.models import new_id

# Path to the JSON file where settings are persisted.
SETTINGS_PATH = Path(__file__).resolve().parents[1] / "data" / "settings.json"

# Internal cache so settings are only read from disk once.
_settings_cache: List[Dict[str, Any]] | None = None


def default_settings() -> List[Dict[str, Any]]:
    """Return the settings written on first run.

    ``user_id`` identifies the local user that owns recorded workouts and is
    generated once.
    """

    return [
        {"key": "rest_duration", "value": DEFAULT_REST_DURATION, "type": "int"},
        {"key": "toast_seconds", "value": TOAST_DURATION, "type": "float"},
        {"key": "increment_step", "value": DEFAULT_INCREMENT_STEP, "type": "float"},
        {"key": "user_id", "value": new_id(), "type": "str"},
    ]


def load_settings() -> List[Dict[str, Any]]:
    """Load settings from :data:`SETTINGS_PATH` or create defaults.

    Keys missing from an existing file are filled in from the defaults.
    """
    if SETTINGS_PATH.exists():
        try:
            with SETTINGS_PATH.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            logging.exception("Could not read %s, using defaults", SETTINGS_PATH)
        else:
            if isinstance(data, list):
                known = {item.get("key") for item in data if isinstance(item, dict)}
                missing = [d for d in default_settings() if d["key"] not in known]
                if missing:
                    data.extend(missing)
                    save_settings(data)
                return data
    settings = default_settings()
    save_settings(settings)
    return settings


def save_settings(settings: List[Dict[str, Any]]) -> None:
    """Persist ``settings`` to :data:`SETTINGS_PATH`."""
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as fh:
        json.dump(settings, fh)


def get_settings() -> List[Dict[str, Any]]:
    """Return the cached settings list, loading from disk if needed."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = load_settings()
    return _settings_cache


def reset_cache() -> None:
    global _settings_cache
    _settings_cache = None


def get_value(key: str, default: Any = None) -> Any:
    """Fetch the value associated with ``key``."""
    for item in get_settings():
        if item.get("key") == key:
            return item.get("value")
    return default


def set_value(key: str, value: Any) -> None:
    """Update ``key`` with ``value`` and persist the change."""
    settings = get_settings()
    for item in settings:
        if item.get("key") == key:
            item["value"] = value
            break
    else:
        settings.append({"key": key, "value": value, "type": type(value).__name__})
    save_settings(settings)
