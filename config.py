"""Centralized configuration for environment variables.

This module is the single source of truth for configuration used across the
application. Import constants from here rather than calling os.getenv directly
in multiple places.

Connection pool and timeout settings for MongoDB are read by
``db.manager.DatabaseManager``.
"""

from __future__ import annotations

import os
from typing import Final

from dotenv import load_dotenv

# Load environment variables from .env if present
load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


# --- Logging ---
LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Collections ---
TRIPS_COLLECTION: Final[str] = os.getenv("TRIPS_COLLECTION", "trips")
GEOFENCE_COLLECTION: Final[str] = os.getenv("GEOFENCE_COLLECTION", "geofences")
USERS_COLLECTION: Final[str] = os.getenv("USERS_COLLECTION", "users")

# --- Trip lifecycle ---
# Reject a new trip when an open trip already exists for the same vehicle,
# start date and route.
TRIP_DUPLICATE_GUARD: Final[bool] = _env_flag("TRIP_DUPLICATE_GUARD", False)
TRIP_ID_PREFIX: Final[str] = os.getenv("TRIP_ID_PREFIX", "TRIP")

# --- Pagination ---
DEFAULT_PAGE_LIMIT: Final[int] = _env_int("DEFAULT_PAGE_LIMIT", 10)
MAX_PAGE_LIMIT: Final[int] = _env_int("MAX_PAGE_LIMIT", 500)


__all__ = [
    "DEFAULT_PAGE_LIMIT",
    "GEOFENCE_COLLECTION",
    "LOG_LEVEL",
    "MAX_PAGE_LIMIT",
    "TRIPS_COLLECTION",
    "TRIP_DUPLICATE_GUARD",
    "TRIP_ID_PREFIX",
    "USERS_COLLECTION",
]
