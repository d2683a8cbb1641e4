"""Unit tests for the latest-per-sensor map and the capped history log."""

from __future__ import annotations

from decimal import Decimal

import pytest

from datastore.state_window import StateWindow
from models.records import Batch, Measurement


def _measurement(sensor_id: str, value: str = "1.00") -> Measurement:
    return Measurement(
        sensor_id=sensor_id,
        pressure=Decimal(value),
        temperature=Decimal(value),
        humidity=Decimal(value),
    )


def _batch(timestamp: str, *sensor_ids: str, value: str = "1.00") -> Batch:
    return Batch(timestamp=timestamp, measurements=[_measurement(s, value) for s in sensor_ids])


def test_merge_assigns_increasing_sequence_in_input_order() -> None:
    window = StateWindow()

    merged = window.merge(_batch("t1", "S1", "S2", "S3"))

    assert [r.sequence for r in merged] == [1, 2, 3]
    assert [r.sensor_id for r in merged] == ["S1", "S2", "S3"]
    assert all(r.timestamp == "t1" for r in merged)
    assert window.sequence == 3


def test_history_is_newest_first_with_batch_order_preserved() -> None:
    window = StateWindow()

    window.merge(_batch("t1", "S1", "S2"))
    window.merge(_batch("t2", "S1", "S2"))

    history = window.snapshot().history
    assert [(r.timestamp, r.sensor_id, r.sequence) for r in history] == [
        ("t2", "S1", 3),
        ("t2", "S2", 4),
        ("t1", "S1", 1),
        ("t1", "S2", 2),
    ]


def test_history_never_exceeds_capacity_and_evicts_oldest() -> None:
    window = StateWindow(capacity=200)

    for tick in range(120):
        window.merge(_batch(f"t{tick}", "S1", "S2", "S3", "S4"))
        assert len(window) <= 200

    history = window.snapshot().history
    assert len(history) == 200
    assert history[0].sequence == 477
    assert history[-1].sequence == 284


def test_empty_batch_is_a_noop() -> None:
    window = StateWindow()
    window.merge(_batch("t1", "S1"))
    before = window.snapshot()

    merged = window.merge(Batch(timestamp="t2"))

    assert merged == []
    assert window.snapshot() == before
    assert window.sequence == 1


def test_sensor_absent_from_batch_keeps_last_known_value() -> None:
    window = StateWindow()
    window.merge(_batch("t1", "S1", "S2", value="10.00"))

    window.merge(_batch("t2", "S1", value="20.00"))

    latest = window.snapshot().latest_by_sensor
    assert latest["S1"].timestamp == "t2"
    assert latest["S1"].pressure == Decimal("20.00")
    assert latest["S2"].timestamp == "t1"
    assert latest["S2"].pressure == Decimal("10.00")


def test_latest_holds_one_entry_per_sensor() -> None:
    window = StateWindow()

    window.merge(_batch("t1", "S1", "S1", "S2"))

    latest = window.snapshot().latest_by_sensor
    assert set(latest) == {"S1", "S2"}
    assert latest["S1"].sequence == 2


def test_allowed_sensors_filters_unknown_ids() -> None:
    window = StateWindow()

    merged = window.merge(_batch("t1", "S1", "X9"), allowed_sensors=["S1", "S2"])

    assert [r.sensor_id for r in merged] == ["S1"]
    assert set(window.snapshot().latest_by_sensor) == {"S1"}
    assert window.sequence == 1


def test_reset_clears_everything_and_restarts_sequence() -> None:
    window = StateWindow()
    window.merge(_batch("t1", "S1", "S2"))

    window.reset()

    snapshot = window.snapshot()
    assert snapshot.latest_by_sensor == {}
    assert snapshot.history == ()
    assert snapshot.sequence == 0
    assert window.merge(_batch("t2", "S1"))[0].sequence == 1


def test_history_oldest_first_reverses_storage_order() -> None:
    window = StateWindow()
    window.merge(_batch("t1", "S1", "S2"))
    window.merge(_batch("t2", "S1"))

    assert [r.sequence for r in window.snapshot().history] == [3, 1, 2]
    assert [r.sequence for r in window.history_oldest_first()] == [2, 1, 3]


def test_snapshot_is_isolated_from_later_merges() -> None:
    window = StateWindow()
    window.merge(_batch("t1", "S1"))
    snapshot = window.snapshot()

    window.merge(_batch("t2", "S1"))

    assert snapshot.row_count == 1
    assert snapshot.latest_by_sensor["S1"].timestamp == "t1"


def test_non_positive_capacity_is_rejected() -> None:
    with pytest.raises(ValueError):
        StateWindow(capacity=0)
