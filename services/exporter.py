"""CSV serialization of the history window."""

from __future__ import annotations

import csv
import io
import time
from typing import Iterable, Optional

from models.records import Reading

EXPORT_HEADER = ("timestamp", "sensor", "pressure_kPa", "temp_C", "humidity_pct")
EXPORT_MEDIA_TYPE = "text/csv"


def render_csv(readings: Iterable[Reading]) -> str:
    """Serialize readings in the order given, every field quoted.

    Callers pass the history oldest-first; an empty iterable yields only the header.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for reading in readings:
        writer.writerow(
            (
                reading.timestamp,
                reading.sensor_id,
                str(reading.pressure),
                str(reading.temperature),
                str(reading.humidity),
            )
        )
    return buffer.getvalue()


def export_filename(epoch_ms: Optional[int] = None) -> str:
    if epoch_ms is None:
        epoch_ms = time.time_ns() // 1_000_000
    return f"livedash_export_{epoch_ms}.csv"
