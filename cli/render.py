from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_reading(reading: Dict[str, Any]) -> str:
    stamp = str(reading.get("timestamp", "")).replace("T", " ").replace("Z", "")
    return (
        f"  - {reading.get('sensor')} [{stamp}] "
        f"pressure={reading.get('pressure')} kPa "
        f"temp={reading.get('temperature')} C "
        f"humidity={reading.get('humidity')} %"
    )


def render_control(payload: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("mode", payload.get("mode")),
            ("interval_ms", payload.get("interval_ms")),
            ("endpoint_url", payload.get("endpoint_url")),
        ]
    )


def render_state(payload: Dict[str, Any]) -> None:
    echo_heading("LiveDash")
    render_control(payload)
    echo_key_values(
        [
            ("sensors", payload.get("sensor_count")),
            ("rows", payload.get("row_count")),
        ]
    )

    typer.echo()
    echo_heading("Latest readings")
    latest = payload.get("latest") or []
    if latest:
        for reading in latest:
            typer.echo(_format_reading(reading))
    else:
        typer.echo("No readings yet.")

    history = payload.get("history") or []
    if history:
        typer.echo()
        echo_heading("Recent readings")
        for reading in history:
            typer.echo(_format_reading(reading))
