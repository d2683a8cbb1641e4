"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import Reading, RunState, SourceMode


class ReadingOut(BaseModel):
    """A merged reading as exposed to renderers."""

    timestamp: str
    sequence: int = Field(..., ge=1)
    sensor: str
    pressure: Decimal = Field(..., description="Pressure in kPa, 2 decimals.")
    temperature: Decimal = Field(..., description="Temperature in C, 2 decimals.")
    humidity: Decimal = Field(..., description="Relative humidity in %, 2 decimals.")

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingOut":
        return cls(
            timestamp=reading.timestamp,
            sequence=reading.sequence,
            sensor=reading.sensor_id,
            pressure=reading.pressure,
            temperature=reading.temperature,
            humidity=reading.humidity,
        )


class ControlStatus(BaseModel):
    """Current position of the control surface."""

    status: RunState
    mode: SourceMode
    interval_ms: int
    endpoint_url: str


class ConfigUpdate(BaseModel):
    """Partial configuration change; omitted fields are left as they are."""

    mode: Optional[SourceMode] = None
    interval_ms: Optional[int] = Field(
        default=None, description="Tick period; clamped into the configured range."
    )
    endpoint_url: Optional[str] = None


class DashboardState(ControlStatus):
    """Projection consumed by renderers: latest values plus the history window."""

    sensor_ids: List[str]
    sensor_count: int = Field(..., ge=0)
    row_count: int = Field(..., ge=0)
    sequence: int = Field(..., ge=0)
    latest: List[ReadingOut] = Field(default_factory=list)
    history: List[ReadingOut] = Field(
        default_factory=list, description="Newest-first readings."
    )


class RemoteReading(BaseModel):
    sensor: str
    p: float
    t: float
    h: float


class RemotePayload(BaseModel):
    """Body served in the remote batch protocol."""

    ts: str
    readings: List[RemoteReading]
