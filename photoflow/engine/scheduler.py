"""Fixed-rate sweep loop running as an asyncio task.

Calls a plain sweep callable (normally ``TransitionEngine.sweep``) once at
start and then every ``interval_ms``. The sweep itself is synchronous and
short, so it runs directly on the event loop.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SweepScheduler:
    """Owns the long-lived task that drives periodic sweeps."""

    def __init__(self, sweep_fn: Callable[[], object], interval_ms: float = 3000):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self._sweep_fn = sweep_fn
        self._interval = interval_ms / 1000.0
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self.sweeps = 0

    @property
    def running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Sweep scheduler started (interval=%.0fms)", self._interval * 1000)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Sweep scheduler stopped after %d sweeps", self.sweeps)

    async def _loop(self) -> None:
        """Sweep, then sleep until the next fixed-rate deadline."""
        loop = asyncio.get_running_loop()
        next_run = loop.time()
        while self._running:
            try:
                self._sweep_fn()
            except Exception:
                logger.exception("Sweep failed; retrying on next tick")
            self.sweeps += 1

            next_run += self._interval
            delay = next_run - loop.time()
            if delay < 0:
                # fell behind; skip missed ticks instead of bursting
                next_run = loop.time()
                delay = 0
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                break
