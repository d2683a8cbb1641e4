"""In-memory authoritative store: latest value per sensor plus a capped history."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Deque, Dict, Iterable, Optional, Tuple

from models.records import Batch, Reading


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowSnapshot:
    """Consistent, immutable view of the window taken under its lock."""

    latest_by_sensor: Dict[str, Reading]
    history: Tuple[Reading, ...]
    sequence: int

    @property
    def row_count(self) -> int:
        return len(self.history)


class StateWindow:
    """Latest-per-sensor projection and a newest-first history of at most ``capacity`` readings.

    Every mutation happens under a single lock, so a merge is applied in full or not
    at all from the point of view of readers and of ``reset``.
    """

    def __init__(self, capacity: int = 200) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive.")
        self.capacity = capacity
        self._latest: Dict[str, Reading] = {}
        # appendleft on a bounded deque evicts from the right, i.e. the oldest reading.
        self._history: Deque[Reading] = deque(maxlen=capacity)
        self._sequence = 0
        self._lock = Lock()

    def merge(self, batch: Batch, allowed_sensors: Optional[Iterable[str]] = None) -> list[Reading]:
        """Stamp and fold ``batch`` into the window, returning the merged readings.

        Measurements for sensors outside ``allowed_sensors`` (when given) are ignored.
        An empty batch leaves the window and the sequence counter untouched.
        """
        allowed = set(allowed_sensors) if allowed_sensors is not None else None
        measurements = [
            m for m in batch.measurements if allowed is None or m.sensor_id in allowed
        ]
        if not measurements:
            return []

        with self._lock:
            sequence = self._sequence
            stamped: list[Reading] = []
            for measurement in measurements:
                sequence += 1
                stamped.append(
                    Reading(
                        timestamp=batch.timestamp,
                        sequence=sequence,
                        sensor_id=measurement.sensor_id,
                        pressure=measurement.pressure,
                        temperature=measurement.temperature,
                        humidity=measurement.humidity,
                    )
                )

            for reading in stamped:
                self._latest[reading.sensor_id] = reading
            self._history.extendleft(reversed(stamped))
            self._sequence = sequence

        logger.debug(
            "Merged batch",
            extra={"batch_size": len(stamped), "sequence": sequence},
        )
        return stamped

    def reset(self) -> None:
        """Empty the latest map and the history and zero the sequence counter."""
        with self._lock:
            self._latest.clear()
            self._history.clear()
            self._sequence = 0
        logger.info("State window reset")

    def snapshot(self) -> WindowSnapshot:
        with self._lock:
            return WindowSnapshot(
                latest_by_sensor=dict(self._latest),
                history=tuple(self._history),
                sequence=self._sequence,
            )

    def history_oldest_first(self) -> list[Reading]:
        with self._lock:
            return list(reversed(self._history))

    @property
    def sequence(self) -> int:
        with self._lock:
            return self._sequence

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

