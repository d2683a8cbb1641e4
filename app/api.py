"""HTTP route definitions for the service."""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, Query, Response, status

from app.schemas import (
    ConfigUpdate,
    ControlStatus,
    DashboardState,
    ReadingOut,
    RemotePayload,
    RemoteReading,
)
from models.records import utc_timestamp
from services.controller import ControlState, DashboardController, build_default_controller
from services.exporter import EXPORT_MEDIA_TYPE, export_filename, render_csv
from services.synthetic import SyntheticGenerator
from settings import get_settings

router = APIRouter()


def get_controller() -> DashboardController:
    return build_default_controller()


@lru_cache
def get_demo_generator() -> SyntheticGenerator:
    """Independent simulated deployment backing the demo remote source."""
    return SyntheticGenerator(get_settings().sensor_ids)


def _control_status(state: ControlState) -> ControlStatus:
    return ControlStatus(
        status=state.run_state,
        mode=state.mode,
        interval_ms=state.interval_ms,
        endpoint_url=state.endpoint_url,
    )


@router.get(
    "/state",
    response_model=DashboardState,
    summary="Latest value per sensor and the history window.",
)
async def get_state(
    history: bool = Query(True, description="Include the newest-first history log."),
    controller: DashboardController = Depends(get_controller),
) -> DashboardState:
    control = controller.state()
    snapshot = controller.snapshot()
    return DashboardState(
        status=control.run_state,
        mode=control.mode,
        interval_ms=control.interval_ms,
        endpoint_url=control.endpoint_url,
        sensor_ids=list(controller.sensor_ids),
        sensor_count=len(controller.sensor_ids),
        row_count=snapshot.row_count,
        sequence=snapshot.sequence,
        latest=[ReadingOut.from_reading(r) for r in controller.latest_readings(snapshot)],
        history=[ReadingOut.from_reading(r) for r in snapshot.history] if history else [],
    )


@router.post("/control/start", response_model=ControlStatus, summary="Resume ticking.")
async def start(controller: DashboardController = Depends(get_controller)) -> ControlStatus:
    return _control_status(controller.start())


@router.post("/control/pause", response_model=ControlStatus, summary="Stop ticking.")
async def pause(controller: DashboardController = Depends(get_controller)) -> ControlStatus:
    return _control_status(controller.pause())


@router.post(
    "/control/reset",
    response_model=ControlStatus,
    summary="Clear latest values, history and the sequence counter.",
)
async def reset(controller: DashboardController = Depends(get_controller)) -> ControlStatus:
    return _control_status(controller.reset())


@router.patch(
    "/control/config",
    response_model=ControlStatus,
    summary="Change mode, interval or endpoint; restarts ticking when running.",
)
async def configure(
    update: ConfigUpdate,
    controller: DashboardController = Depends(get_controller),
) -> ControlStatus:
    return _control_status(
        controller.configure(
            mode=update.mode,
            interval_ms=update.interval_ms,
            endpoint_url=update.endpoint_url,
        )
    )


@router.get(
    "/export",
    summary="Download the history window as CSV, oldest first.",
    response_class=Response,
)
async def export_csv(controller: DashboardController = Depends(get_controller)) -> Response:
    filename = export_filename()
    body = render_csv(controller.window.history_oldest_first())
    return Response(
        content=body.encode("utf-8"),
        media_type=EXPORT_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/source/latest",
    response_model=RemotePayload,
    summary="Demo endpoint serving a synthetic batch in the remote protocol.",
)
async def demo_source(
    generator: SyntheticGenerator = Depends(get_demo_generator),
) -> RemotePayload:
    batch = generator.next_batch(utc_timestamp())
    return RemotePayload(
        ts=batch.timestamp,
        readings=[
            RemoteReading(
                sensor=m.sensor_id,
                p=float(m.pressure),
                t=float(m.temperature),
                h=float(m.humidity),
            )
            for m in batch.measurements
        ],
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /state for the live projection."}
