"""Timer - tick service for the control loop

Runs named interval callbacks (sync or async) on a fixed tick. A failing
callback is logged and counted; the other callbacks keep running.

Example:
    timer = Timer()
    timer.register_interval("status_poll", 2.0, dashboard.poll)

    task = asyncio.create_task(timer.run())
    ...
    timer.stop()
"""

import asyncio
import inspect
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from .config import METRICS_ENABLED
from .telemetry import get_logger, metrics

logger = get_logger(__name__)

TickCallback = Callable[[], Any | Coroutine[Any, Any, Any]]


@dataclass
class IntervalTask:
    """Periodic callback"""

    name: str
    interval: float  # seconds
    callback: TickCallback
    last_run: float | None = None  # loop time of the last run


class Timer:
    """Interval task runner driven by asyncio"""

    def __init__(self, tick_interval: float | None = None):
        from . import config

        self._tick_interval = tick_interval or config.TIMER_TICK_INTERVAL
        self._tasks: dict[str, IntervalTask] = {}
        self._running = False

    def register_interval(self, name: str, interval: float, callback: TickCallback) -> None:
        """Register (or replace) a periodic callback

        Args:
            name: task name, used for logs and unregistering
            interval: seconds between runs
            callback: sync or async callable
        """
        self._tasks[name] = IntervalTask(name=name, interval=interval, callback=callback)
        logger.debug(f"[Timer] Registered interval task: {name} ({interval}s)")

    def unregister_interval(self, name: str) -> bool:
        if self._tasks.pop(name, None) is None:
            return False
        logger.debug(f"[Timer] Unregistered interval task: {name}")
        return True

    async def run(self) -> None:
        """Tick until stop() is called"""
        if self._running:
            logger.warning("[Timer] Already running")
            return

        self._running = True
        logger.info(f"[Timer] Started (tick={self._tick_interval}s)")
        try:
            while self._running:
                await self.tick()
                await asyncio.sleep(self._tick_interval)
        except asyncio.CancelledError:
            logger.info("[Timer] Cancelled")
            raise
        finally:
            self._running = False

    def stop(self) -> None:
        if self._running:
            logger.info("[Timer] Stopping...")
        self._running = False

    async def tick(self) -> None:
        """Run every task whose interval has elapsed"""
        now = asyncio.get_running_loop().time()
        for task in list(self._tasks.values()):
            if task.last_run is None or now - task.last_run >= task.interval:
                task.last_run = now
                await self._execute(task)

    async def _execute(self, task: IntervalTask) -> None:
        try:
            result = task.callback()
            if inspect.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"[Timer] Task '{task.name}' failed: {e}")
            if METRICS_ENABLED:
                metrics.inc("timer.errors", {"task": task.name})

    @property
    def is_running(self) -> bool:
        return self._running

    def get_interval_tasks(self) -> list[str]:
        return list(self._tasks)
