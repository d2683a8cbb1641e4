"""Fetch and validate batches from an external HTTP endpoint."""

from __future__ import annotations

import logging
import math
from decimal import Decimal
from typing import Any, Optional

import httpx

from models.records import Batch, Measurement, to_fixed, utc_timestamp


logger = logging.getLogger(__name__)

_FIELDS = (("p", "pressure"), ("t", "temperature"), ("h", "humidity"))


class InvalidEntry(ValueError):
    """Raised when a single ``readings`` entry cannot be coerced."""


def _coerce_number(raw: Any) -> Decimal:
    if raw is None or isinstance(raw, bool):
        raise InvalidEntry("missing numeric value")
    if isinstance(raw, str):
        raw = raw.strip()
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidEntry("invalid numeric value") from exc
    except OverflowError as exc:
        raise InvalidEntry("numeric value out of range") from exc
    if not math.isfinite(value):
        raise InvalidEntry("non-finite numeric value")
    return to_fixed(value)


def _coerce_entry(entry: Any) -> Measurement:
    if not isinstance(entry, dict):
        raise InvalidEntry("entry is not an object")
    sensor = entry.get("sensor")
    sensor_id = "" if sensor is None else str(sensor).strip()
    if not sensor_id:
        raise InvalidEntry("missing sensor")
    values = {name: _coerce_number(entry.get(key)) for key, name in _FIELDS}
    return Measurement(sensor_id=sensor_id, **values)


def parse_batch(payload: Any) -> Batch:
    """Turn a decoded ``{ts?, readings: [...]}`` body into a batch.

    Invalid entries are dropped one by one; a missing or non-list ``readings``
    yields an empty batch.
    """
    body = payload if isinstance(payload, dict) else {}
    ts = body.get("ts")
    timestamp = ts.strip() if isinstance(ts, str) and ts.strip() else utc_timestamp()

    entries = body.get("readings")
    if not isinstance(entries, list):
        return Batch(timestamp=timestamp)

    measurements: list[Measurement] = []
    for index, entry in enumerate(entries):
        try:
            measurements.append(_coerce_entry(entry))
        except InvalidEntry as exc:
            sensor = entry.get("sensor") if isinstance(entry, dict) else None
            logger.warning(
                "Dropping reading entry %d",
                index,
                extra={"sensor": sensor, "reason": str(exc)},
            )
    return Batch(timestamp=timestamp, measurements=measurements)


class RemoteFetcher:
    """Thin async HTTP client returning ``None`` whenever a tick should be skipped."""

    def __init__(
        self,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def fetch(self, url: str) -> Optional[Batch]:
        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as exc:
            logger.warning(
                "Remote fetch failed", extra={"endpoint": url, "reason": str(exc) or type(exc).__name__}
            )
            return None

        if response.status_code != 200:
            logger.warning(
                "Remote fetch returned unexpected status",
                extra={"endpoint": url, "status_code": response.status_code},
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning(
                "Remote fetch returned malformed JSON", extra={"endpoint": url, "reason": str(exc)}
            )
            return None

        return parse_batch(payload)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
