"""Fixed-period tick source running on the asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class Scheduler:
    """Fires ``on_tick`` every ``interval_ms`` until stopped.

    At most one schedule exists at a time: ``start`` tears down the previous one
    before arming a new timer. Periodicity is best effort; no drift correction.
    """

    def __init__(self) -> None:
        self._task: Optional[asyncio.Task[None]] = None
        self.interval_ms: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval_ms: int, on_tick: TickCallback) -> None:
        """Arm a new schedule. Must be called from a running event loop."""
        self.stop()
        loop = asyncio.get_running_loop()
        self.interval_ms = interval_ms
        self._task = loop.create_task(self._run(interval_ms / 1000, on_tick))
        logger.debug("Scheduler armed", extra={"interval_ms": interval_ms})

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("Scheduler stopped", extra={"interval_ms": self.interval_ms})

    @staticmethod
    async def _run(interval: float, on_tick: TickCallback) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                on_tick()
            except Exception:  # noqa: BLE001 - a failing tick must not stop the schedule
                logger.exception("Tick callback failed")
