"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List


_TWO_PLACES = ".2f"


def to_fixed(value: float) -> Decimal:
    """Round ``value`` to the 2-decimal precision stored and exported by the window."""
    return Decimal(format(value, _TWO_PLACES))


class SourceMode(str, Enum):
    """Where each tick's batch comes from."""

    synthetic = "synthetic"
    remote = "remote"


class RunState(str, Enum):
    idle = "idle"
    running = "running"


@dataclass(slots=True)
class Baseline:
    """Unrounded physical state a synthetic sensor random-walks from."""

    pressure: float = 101.3
    temperature: float = 28.0
    humidity: float = 55.0


@dataclass(slots=True, frozen=True)
class Measurement:
    """One sensor's values inside a batch, before a sequence number is assigned."""

    sensor_id: str
    pressure: Decimal
    temperature: Decimal
    humidity: Decimal


@dataclass(slots=True)
class Batch:
    """All measurements produced by a single tick, sharing one timestamp."""

    timestamp: str
    measurements: List[Measurement] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.measurements)


@dataclass(slots=True, frozen=True)
class Reading:
    """A merged measurement, stamped with its process-wide sequence number."""

    timestamp: str
    sequence: int
    sensor_id: str
    pressure: Decimal
    temperature: Decimal
    humidity: Decimal


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
