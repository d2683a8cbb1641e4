from __future__ import annotations

import csv
import io
import re
from decimal import Decimal

from datastore.state_window import StateWindow
from models.records import Batch, Measurement
from services.exporter import EXPORT_HEADER, export_filename, render_csv
from services.synthetic import SyntheticGenerator


def test_empty_history_exports_header_only() -> None:
    assert render_csv([]) == '"timestamp","sensor","pressure_kPa","temp_C","humidity_pct"\n'


def test_every_field_is_quoted() -> None:
    window = StateWindow()
    window.merge(
        Batch(
            timestamp="2024-01-01T00:00:00.000Z",
            measurements=[
                Measurement(
                    sensor_id="S1",
                    pressure=Decimal("101.30"),
                    temperature=Decimal("28.00"),
                    humidity=Decimal("55.05"),
                )
            ],
        )
    )

    lines = render_csv(window.history_oldest_first()).splitlines()

    assert lines[1] == '"2024-01-01T00:00:00.000Z","S1","101.30","28.00","55.05"'


def test_export_round_trips_history_in_oldest_first_order() -> None:
    window = StateWindow()
    generator = SyntheticGenerator(["S1", "S2", "S3", "S4"], seed=21)
    for tick in range(60):
        window.merge(generator.next_batch(f"2024-01-01T00:00:{tick:02d}.000Z"))

    document = render_csv(window.history_oldest_first())
    rows = list(csv.reader(io.StringIO(document)))

    assert tuple(rows[0]) == EXPORT_HEADER
    expected = list(reversed(window.snapshot().history))
    assert len(rows) - 1 == len(expected) == 200
    for row, reading in zip(rows[1:], expected):
        assert row == [
            reading.timestamp,
            reading.sensor_id,
            f"{reading.pressure:.2f}",
            f"{reading.temperature:.2f}",
            f"{reading.humidity:.2f}",
        ]


def test_export_filename_pattern() -> None:
    assert export_filename(1700000000123) == "livedash_export_1700000000123.csv"
    assert re.fullmatch(r"livedash_export_\d{13}\.csv", export_filename())
