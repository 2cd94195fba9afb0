"""
Periodic Task.

Runs an async callable on a fixed interval inside the current event loop.
A failing run is logged and the loop keeps going; cancellation stops it.

Usage:
    task = PeriodicTask("reminder-sweep", 60, sweep_once)
    task.start()
    ...
    await task.stop()
"""

import asyncio
from collections.abc import Awaitable, Callable

from minicrm.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


class PeriodicTask:
    """
    Owns one asyncio task that calls ``func`` every ``interval_seconds``.

    Args:
        name: Task name, used in logs and as the asyncio task name
        interval_seconds: Pause between the end of one run and the next
        func: The work for one run
        wait_first: Sleep one interval before the first run instead of
            running immediately
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[object]],
        wait_first: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = float(interval_seconds)
        self._func = func
        self._wait_first = wait_first
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _runner(self) -> None:
        if self._wait_first:
            await asyncio.sleep(self.interval_seconds)

        while True:
            try:
                await self._func()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log_with_source(
                    logger, "tasks", "exception", "Periodic run failed",
                    task=self.name, error=str(exc),
                )
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> asyncio.Task[None]:
        """
        Start the loop. Must be called from a running event loop.

        Raises:
            RuntimeError: If already running
        """
        if self.running:
            raise RuntimeError(f"Periodic task {self.name!r} is already running")
        self._task = asyncio.create_task(self._runner(), name=self.name)
        log_with_source(
            logger, "tasks", "info", "Periodic task started",
            task=self.name, interval_seconds=self.interval_seconds,
        )
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish. Safe to call twice."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        log_with_source(logger, "tasks", "info", "Periodic task stopped", task=self.name)
