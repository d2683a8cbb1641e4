"""Tests for remote batch parsing and fetching."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest

from models.records import Batch
from services.remote import RemoteFetcher, parse_batch

URL = "https://sensors.test/api/latest"


def _fetch(handler, url: str = URL) -> Optional[Batch]:
    async def run() -> Optional[Batch]:
        fetcher = RemoteFetcher(transport=httpx.MockTransport(handler))
        try:
            return await fetcher.fetch(url)
        finally:
            await fetcher.aclose()

    return asyncio.run(run())


def _json_handler(payload: Any, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def test_parse_batch_coerces_fields_to_two_decimals() -> None:
    batch = parse_batch(
        {
            "ts": "2024-05-01T10:00:00Z",
            "readings": [
                {"sensor": "S1", "p": 101.234, "t": "28.1", "h": 55},
                {"sensor": 7, "p": 99.999, "t": 20.005, "h": "60.5"},
            ],
        }
    )

    assert batch.timestamp == "2024-05-01T10:00:00Z"
    first, second = batch.measurements
    assert (first.sensor_id, first.pressure, first.temperature, first.humidity) == (
        "S1",
        Decimal("101.23"),
        Decimal("28.10"),
        Decimal("55.00"),
    )
    assert second.sensor_id == "7"
    assert second.pressure == Decimal("100.00")
    assert second.humidity == Decimal("60.50")


def test_parse_batch_substitutes_current_time_when_ts_missing() -> None:
    batch = parse_batch({"readings": [{"sensor": "S1", "p": 1, "t": 2, "h": 3}]})

    assert batch.timestamp.endswith("Z")
    assert "T" in batch.timestamp


def test_parse_batch_drops_out_of_range_integer() -> None:
    payload = {
        "ts": "2024-05-01T10:00:00Z",
        "readings": [
            {"sensor": "S1", "p": 10**400, "t": 20, "h": 50},
            {"sensor": "S2", "p": 100, "t": 20, "h": 50},
        ],
    }

    batch = parse_batch(payload)

    assert [m.sensor_id for m in batch.measurements] == ["S2"]


@pytest.mark.parametrize(
    "payload",
    [
        {"ts": "x"},
        {"ts": "x", "readings": None},
        {"ts": "x", "readings": {"sensor": "S1"}},
        {"ts": "x", "readings": "S1"},
        [],
        "not an object",
    ],
)
def test_parse_batch_without_reading_list_is_empty(payload: Any) -> None:
    batch = parse_batch(payload)

    assert batch.measurements == []


def test_parse_batch_drops_invalid_entries_individually(caplog) -> None:
    payload = {
        "ts": "2024-05-01T10:00:00Z",
        "readings": [
            {"sensor": "S1", "p": "bad", "t": 20, "h": 50},
            {"sensor": "S2", "p": 100, "t": 21, "h": 51},
            {"sensor": "S3", "p": 100, "t": None, "h": 51},
            {"sensor": "S4", "p": True, "t": 21, "h": 51},
            {"sensor": "S5", "p": "nan", "t": 21, "h": 51},
            {"p": 100, "t": 21, "h": 51},
            "garbage",
        ],
    }

    with caplog.at_level(logging.WARNING, logger="services.remote"):
        batch = parse_batch(payload)

    assert [m.sensor_id for m in batch.measurements] == ["S2"]
    records = [r for r in caplog.records if r.name == "services.remote"]
    assert len(records) == 6
    assert any(
        getattr(r, "sensor", None) == "S1" and getattr(r, "reason", "") == "invalid numeric value"
        for r in records
    )


def test_fetch_returns_parsed_batch() -> None:
    payload = {"ts": "2024-05-01T10:00:00Z", "readings": [{"sensor": "S1", "p": 1, "t": 2, "h": 3}]}

    batch = _fetch(_json_handler(payload))

    assert batch is not None
    assert batch.timestamp == "2024-05-01T10:00:00Z"
    assert [m.sensor_id for m in batch.measurements] == ["S1"]


def test_fetch_issues_get_to_configured_url() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"readings": []})

    _fetch(handler)

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert str(seen[0].url) == URL


@pytest.mark.parametrize("status_code", [204, 404, 500, 503])
def test_fetch_skips_non_ok_status(status_code: int) -> None:
    batch = _fetch(_json_handler({"readings": [{"sensor": "S1", "p": 1, "t": 2, "h": 3}]}, status_code))

    assert batch is None


def test_fetch_skips_malformed_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"{not json")

    assert _fetch(handler) is None


def test_fetch_skips_network_errors(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with caplog.at_level(logging.WARNING, logger="services.remote"):
        assert _fetch(handler) is None

    assert any(getattr(r, "endpoint", None) == URL for r in caplog.records)


def test_fetch_with_empty_readings_returns_empty_batch() -> None:
    batch = _fetch(_json_handler({"ts": "t"}))

    assert batch is not None
    assert len(batch) == 0
