"""Run/pause/reset state machine wiring the scheduler, sources and state window."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, Optional, Union

from datastore.state_window import StateWindow, WindowSnapshot
from models.records import Batch, Reading, RunState, SourceMode, utc_timestamp
from services.remote import RemoteFetcher
from services.scheduler import Scheduler
from services.synthetic import SyntheticGenerator
from settings import DEFAULT_ENDPOINT_URL, clamp_interval, get_settings


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlState:
    run_state: RunState
    mode: SourceMode
    interval_ms: int
    endpoint_url: str
    epoch: int


class DashboardController:
    """Owns the control surface of the ingestion engine.

    All control calls and ticks are expected on one event loop. The scheduler is
    only armed between ``open`` and ``close``; before ``open`` the controller
    records its run state without firing. Remote fetches are single-flight and
    stamped with the epoch current when they were issued; ``set_mode``,
    ``set_endpoint`` and ``reset`` advance the epoch so stale completions are
    discarded instead of merged.
    """

    def __init__(
        self,
        window: StateWindow,
        generator: SyntheticGenerator,
        fetcher: RemoteFetcher,
        *,
        mode: Union[SourceMode, str] = SourceMode.synthetic,
        interval_ms: int = 800,
        endpoint_url: str = DEFAULT_ENDPOINT_URL,
        min_interval_ms: int = 200,
        max_interval_ms: int = 5000,
        autostart: bool = True,
        restrict_remote_sensors: bool = False,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.window = window
        self.generator = generator
        self.fetcher = fetcher
        self.scheduler = scheduler or Scheduler()
        self.min_interval_ms = min_interval_ms
        self.max_interval_ms = max_interval_ms
        self.restrict_remote_sensors = restrict_remote_sensors
        self._clock = clock

        self.mode = SourceMode(mode)
        self.interval_ms = clamp_interval(interval_ms, min_interval_ms, max_interval_ms)
        self.endpoint_url = endpoint_url
        self.run_state = RunState.running if autostart else RunState.idle

        self._epoch = 0
        self._opened = False
        self._inflight: Optional[asyncio.Task[None]] = None

    @property
    def sensor_ids(self) -> tuple[str, ...]:
        return self.generator.sensor_ids

    @property
    def running(self) -> bool:
        return self.run_state is RunState.running

    @property
    def fetch_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def state(self) -> ControlState:
        return ControlState(
            run_state=self.run_state,
            mode=self.mode,
            interval_ms=self.interval_ms,
            endpoint_url=self.endpoint_url,
            epoch=self._epoch,
        )

    # lifecycle

    async def open(self) -> None:
        self._opened = True
        if self.running:
            self._arm()
        logger.info(
            "Controller opened",
            extra={"mode": self.mode.value, "interval_ms": self.interval_ms},
        )

    async def close(self) -> None:
        self._opened = False
        self.scheduler.stop()
        task, self._inflight = self._inflight, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.fetcher.aclose()

    # control surface

    def start(self) -> ControlState:
        if not self.running:
            self.run_state = RunState.running
            self._arm()
            logger.info("Ticking started", extra={"mode": self.mode.value})
        return self.state()

    def pause(self) -> ControlState:
        if self.running:
            self.run_state = RunState.idle
            self.scheduler.stop()
            logger.info("Ticking paused", extra={"mode": self.mode.value})
        return self.state()

    def reset(self) -> ControlState:
        self._epoch += 1
        self.window.reset()
        return self.state()

    def set_mode(self, mode: Union[SourceMode, str]) -> ControlState:
        return self.configure(mode=mode)

    def set_interval(self, interval_ms: int) -> ControlState:
        return self.configure(interval_ms=interval_ms)

    def set_endpoint(self, endpoint_url: str) -> ControlState:
        return self.configure(endpoint_url=endpoint_url)

    def configure(
        self,
        mode: Union[SourceMode, str, None] = None,
        interval_ms: Optional[int] = None,
        endpoint_url: Optional[str] = None,
    ) -> ControlState:
        """Apply any subset of settings, restarting the schedule once if running."""
        changed = False
        if mode is not None:
            new_mode = SourceMode(mode)
            if new_mode is not self.mode:
                self.mode = new_mode
                self._epoch += 1
                changed = True
        if interval_ms is not None:
            clamped = clamp_interval(interval_ms, self.min_interval_ms, self.max_interval_ms)
            if clamped != self.interval_ms:
                self.interval_ms = clamped
                changed = True
        if endpoint_url is not None:
            url = endpoint_url.strip()
            if url and url != self.endpoint_url:
                self.endpoint_url = url
                self._epoch += 1
                changed = True

        if changed:
            logger.info(
                "Configuration updated",
                extra={
                    "mode": self.mode.value,
                    "interval_ms": self.interval_ms,
                    "endpoint": self.endpoint_url,
                    "epoch": self._epoch,
                },
            )
            if self.running:
                self._arm()
        return self.state()

    # ticking

    def tick(self) -> None:
        """One scheduler firing: produce or request a batch for the active mode."""
        if self.mode is SourceMode.synthetic:
            self._merge(self.generator.next_batch(self._clock()))
            return
        self._dispatch_fetch()

    async def wait_for_fetch(self) -> None:
        """Wait for the outstanding remote fetch, if any, to finish merging."""
        task = self._inflight
        if task is not None:
            await task

    def snapshot(self) -> WindowSnapshot:
        return self.window.snapshot()

    def latest_readings(self, snapshot: Optional[WindowSnapshot] = None) -> list[Reading]:
        """Latest readings with configured sensors first, then dynamic ids in first-seen order."""
        snapshot = snapshot or self.window.snapshot()
        latest = snapshot.latest_by_sensor
        ordered = [latest[sensor_id] for sensor_id in self.sensor_ids if sensor_id in latest]
        configured = set(self.sensor_ids)
        ordered.extend(reading for key, reading in latest.items() if key not in configured)
        return ordered

    def _arm(self) -> None:
        if self._opened:
            self.scheduler.start(self.interval_ms, self.tick)

    def _dispatch_fetch(self) -> None:
        if self.fetch_in_flight:
            logger.debug(
                "Skipping tick while a remote fetch is outstanding",
                extra={"endpoint": self.endpoint_url, "epoch": self._epoch},
            )
            return
        loop = asyncio.get_running_loop()
        self._inflight = loop.create_task(
            self._fetch_and_merge(self._epoch, self.endpoint_url)
        )

    async def _fetch_and_merge(self, epoch: int, url: str) -> None:
        try:
            batch = await self.fetcher.fetch(url)
        except Exception:  # noqa: BLE001 - a failed fetch only skips this tick
            logger.exception("Remote fetch raised", extra={"endpoint": url, "epoch": epoch})
            return
        if batch is None:
            return
        if epoch != self._epoch or self.mode is not SourceMode.remote:
            logger.info(
                "Discarding superseded remote batch",
                extra={"epoch": epoch, "batch_size": len(batch), "endpoint": url},
            )
            return
        allowed: Optional[Iterable[str]] = (
            self.sensor_ids if self.restrict_remote_sensors else None
        )
        self._merge(batch, allowed)

    def _merge(self, batch: Batch, allowed: Optional[Iterable[str]] = None) -> None:
        if not batch.measurements:
            logger.debug("Empty batch, nothing to merge", extra={"mode": self.mode.value})
            return
        self.window.merge(batch, allowed_sensors=allowed)


@lru_cache
def build_default_controller() -> DashboardController:
    """Factory that wires the controller from environment settings."""
    settings = get_settings()
    return DashboardController(
        window=StateWindow(capacity=settings.history_capacity),
        generator=SyntheticGenerator(settings.sensor_ids, seed=settings.seed),
        fetcher=RemoteFetcher(timeout=settings.request_timeout),
        mode=settings.mode,
        interval_ms=settings.interval_ms,
        endpoint_url=settings.endpoint_url,
        min_interval_ms=settings.min_interval_ms,
        max_interval_ms=settings.max_interval_ms,
        autostart=settings.autostart,
        restrict_remote_sensors=settings.restrict_remote_sensors,
    )
