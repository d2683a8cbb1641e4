from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import get_demo_generator, router
from logging_config import configure_logging
from services.controller import build_default_controller


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    controller = build_default_controller()
    await controller.open()
    try:
        yield
    finally:
        await controller.close()
        build_default_controller.cache_clear()
        get_demo_generator.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="LiveDash",
        description="Live multi-sensor telemetry ingestion with a bounded rolling history.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
