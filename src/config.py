"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
the settings the server uses to build the store, the balance cache and
the resolver (data directory, capacities, TTL, preload and recovery
service options).
"""

from __future__ import annotations

import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Base directory for persisted balance tables
BALANCE_DATA_DIR = Path(os.environ.get("BALANCE_DATA_DIR", "data")).resolve()
TABLE_DELIMITER = os.environ.get("TABLE_DELIMITER", ",") or ","

# Store / cache capacity and expiry
CACHE_MAX_KEYS = _env_int("CACHE_MAX_KEYS", 10_000)
STORE_MAX_ENTRIES = _env_int("STORE_MAX_ENTRIES", 10_000)
CACHE_TTL_SECONDS = _env_float("CACHE_TTL_SECONDS", 3600.0)
CACHE_SWEEP_INTERVAL = _env_float("CACHE_SWEEP_INTERVAL", 60.0)
CACHE_DELETE_ON_EXPIRE = _env_bool("CACHE_DELETE_ON_EXPIRE", True)
CACHE_RESET_STATS_ON_FLUSH = _env_bool("CACHE_RESET_STATS_ON_FLUSH", True)

# Startup preload
CACHE_FILE = os.environ.get("CACHE_FILE", "").strip()
PRELOAD_RANGE_START = _env_int("PRELOAD_RANGE_START", 0)
PRELOAD_RANGE_COUNT = _env_int("PRELOAD_RANGE_COUNT", 0)

# Recovery on miss: remote service if configured, else local bounded search
RECOVERY_SERVICE_URL = os.environ.get("RECOVERY_SERVICE_URL", "").strip()
RECOVERY_TIMEOUT = _env_float("RECOVERY_TIMEOUT", 20.0)
MAX_SEARCH_BALANCE = _env_int("MAX_SEARCH_BALANCE", 100_000)

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", False)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip()
