from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_DB_PATH_ENV = "TELEMETRY_DB_PATH"
_DEFAULT_DAYS_ENV = "RECOMMENDATION_DEFAULT_DAYS"
_MAX_DAYS_ENV = "RECOMMENDATION_MAX_DAYS"
_AUDIT_WORKERS_ENV = "AUDIT_WORKER_COUNT"
_AUDIT_QUEUE_ENV = "AUDIT_QUEUE_SIZE"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    database_path: str
    default_window_days: int
    max_window_days: int
    audit_workers: int
    audit_queue_size: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    max_days = _read_positive_int(_MAX_DAYS_ENV, 365)
    default_days = min(_read_positive_int(_DEFAULT_DAYS_ENV, 7), max_days)
    return Settings(
        database_path=_read_str_env(_DB_PATH_ENV, "./tmp/telemetry.db"),
        default_window_days=default_days,
        max_window_days=max_days,
        audit_workers=_read_positive_int(_AUDIT_WORKERS_ENV, 1),
        audit_queue_size=_read_positive_int(_AUDIT_QUEUE_ENV, 100),
        log_level=_read_log_level("INFO"),
    )
