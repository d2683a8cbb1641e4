from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_WATCH_INTERVAL = 1.0
DEFAULT_EXPORT_DIR = "."

_BASE_URL_ENV = "LIVEDASH_API_URL"
_WATCH_INTERVAL_ENV = "CLI_WATCH_INTERVAL"
_EXPORT_DIR_ENV = "CLI_EXPORT_DIR"


@dataclass(frozen=True)
class CLIConfig:
    base_url: str = DEFAULT_BASE_URL
    watch_interval: float = DEFAULT_WATCH_INTERVAL
    export_dir: Path = Path(DEFAULT_EXPORT_DIR)


def _read_float(value: Optional[str], default: float) -> float:
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


def load_config(
    base_url: Optional[str] = None,
    watch_interval: Optional[float] = None,
    export_dir: Optional[Path] = None,
) -> CLIConfig:
    url = base_url or os.getenv(_BASE_URL_ENV) or DEFAULT_BASE_URL
    if watch_interval is None:
        watch_interval = _read_float(os.getenv(_WATCH_INTERVAL_ENV), DEFAULT_WATCH_INTERVAL)
    if export_dir is None:
        export_dir = Path(os.getenv(_EXPORT_DIR_ENV) or DEFAULT_EXPORT_DIR)
    return CLIConfig(
        base_url=url.rstrip("/"),
        watch_interval=watch_interval,
        export_dir=export_dir,
    )
