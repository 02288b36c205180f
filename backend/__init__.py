"""Shared constants and globals for backend modules."""

from __future__ import annotations

from pathlib import Path

# Default values used throughout the application
DEFAULT_REST_DURATION = 60
TICK_INTERVAL = 1.0
TOAST_DURATION = 2.0
DEFAULT_INCREMENT_STEP = 1.0

# Path to the SQLite database shipped with the application
DEFAULT_DB_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout.db"
)

# SQL used to create a fresh database
SCHEMA_PATH = (
    Path(__file__).resolve().parent.parent / "data" / "workout_schema.sql"
)

__all__ = [
    "DEFAULT_REST_DURATION",
    "TICK_INTERVAL",
    "TOAST_DURATION",
    "DEFAULT_INCREMENT_STEP",
    "DEFAULT_DB_PATH",
    "SCHEMA_PATH",
]
