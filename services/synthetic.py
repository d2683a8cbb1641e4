"""Offline batch source that random-walks per-sensor physical state."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from models.records import Baseline, Batch, Measurement, to_fixed


@dataclass(frozen=True)
class FieldBounds:
    """Per-tick perturbation width and the closed range a field is clamped into."""

    delta: float
    minimum: float
    maximum: float

    def step(self, value: float, rng: random.Random) -> float:
        half = self.delta / 2
        return min(self.maximum, max(self.minimum, value + rng.uniform(-half, half)))


PRESSURE_BOUNDS = FieldBounds(delta=0.8, minimum=90.0, maximum=120.0)
TEMPERATURE_BOUNDS = FieldBounds(delta=0.35, minimum=18.0, maximum=45.0)
HUMIDITY_BOUNDS = FieldBounds(delta=1.2, minimum=20.0, maximum=90.0)


class SyntheticGenerator:
    """Produces one batch per tick from baselines it owns; never performs I/O.

    Pass ``seed`` (or a prepared ``rng``) for a reproducible walk. Each instance
    keeps its own baselines, so independent simulated deployments do not share state.
    """

    def __init__(
        self,
        sensor_ids: Iterable[str],
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.sensor_ids = tuple(sensor_ids)
        if not self.sensor_ids:
            raise ValueError("At least one sensor id is required.")
        self._rng = rng if rng is not None else random.Random(seed)
        self.baselines: Dict[str, Baseline] = {
            sensor_id: Baseline() for sensor_id in self.sensor_ids
        }

    def next_batch(self, timestamp: str) -> Batch:
        measurements: list[Measurement] = []
        for sensor_id in self.sensor_ids:
            baseline = self.baselines[sensor_id]
            baseline.pressure = PRESSURE_BOUNDS.step(baseline.pressure, self._rng)
            baseline.temperature = TEMPERATURE_BOUNDS.step(baseline.temperature, self._rng)
            baseline.humidity = HUMIDITY_BOUNDS.step(baseline.humidity, self._rng)
            measurements.append(
                Measurement(
                    sensor_id=sensor_id,
                    pressure=to_fixed(baseline.pressure),
                    temperature=to_fixed(baseline.temperature),
                    humidity=to_fixed(baseline.humidity),
                )
            )
        return Batch(timestamp=timestamp, measurements=measurements)
