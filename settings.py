from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_SENSOR_IDS_ENV = "LIVEDASH_SENSOR_IDS"
_MODE_ENV = "LIVEDASH_MODE"
_INTERVAL_ENV = "LIVEDASH_INTERVAL_MS"
_MIN_INTERVAL_ENV = "LIVEDASH_MIN_INTERVAL_MS"
_MAX_INTERVAL_ENV = "LIVEDASH_MAX_INTERVAL_MS"
_ENDPOINT_ENV = "LIVEDASH_ENDPOINT_URL"
_CAPACITY_ENV = "LIVEDASH_HISTORY_CAPACITY"
_TIMEOUT_ENV = "LIVEDASH_REQUEST_TIMEOUT"
_SEED_ENV = "LIVEDASH_SEED"
_AUTOSTART_ENV = "LIVEDASH_AUTOSTART"
_RESTRICT_ENV = "LIVEDASH_RESTRICT_REMOTE_SENSORS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_SENSOR_IDS = ("S1", "S2", "S3", "S4")
DEFAULT_ENDPOINT_URL = "https://example.com/api/latest"
_VALID_MODES = {"synthetic", "remote"}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    sensor_ids: Tuple[str, ...]
    mode: str
    interval_ms: int
    min_interval_ms: int
    max_interval_ms: int
    endpoint_url: str
    history_capacity: int
    request_timeout: float
    seed: Optional[int]
    autostart: bool
    restrict_remote_sensors: bool
    log_level: str


def clamp_interval(value: int, minimum: int, maximum: int) -> int:
    """Pin ``value`` into ``[minimum, maximum]``; out-of-range input is never rejected."""
    return max(minimum, min(maximum, int(value)))


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


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_sensor_ids(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_SENSOR_IDS_ENV)
    if value is None:
        return default
    ids: list[str] = []
    for part in value.split(","):
        candidate = part.strip()
        if candidate and candidate not in ids:
            ids.append(candidate)
    return tuple(ids) or default


def _read_mode(default: str) -> str:
    candidate = _read_str_env(_MODE_ENV, default).lower()
    return candidate if candidate in _VALID_MODES else default


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
    min_interval = _read_positive_int(_MIN_INTERVAL_ENV, 200)
    max_interval = max(min_interval, _read_positive_int(_MAX_INTERVAL_ENV, 5000))
    return Settings(
        sensor_ids=_read_sensor_ids(DEFAULT_SENSOR_IDS),
        mode=_read_mode("synthetic"),
        interval_ms=clamp_interval(
            _read_positive_int(_INTERVAL_ENV, 800), min_interval, max_interval
        ),
        min_interval_ms=min_interval,
        max_interval_ms=max_interval,
        endpoint_url=_read_str_env(_ENDPOINT_ENV, DEFAULT_ENDPOINT_URL),
        history_capacity=_read_positive_int(_CAPACITY_ENV, 200),
        request_timeout=_read_positive_float(_TIMEOUT_ENV, 5.0),
        seed=_read_optional_int(_SEED_ENV),
        autostart=_read_bool(_AUTOSTART_ENV, True),
        restrict_remote_sensors=_read_bool(_RESTRICT_ENV, False),
        log_level=_read_log_level("INFO"),
    )
