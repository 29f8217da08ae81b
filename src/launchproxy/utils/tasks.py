"""Supervised background tasks.

Fire-and-forget work (background sweeps, audit writes) is submitted here so
that concurrency is bounded, failures are logged and kept for inspection, and
shutdown can wait for in-flight work.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Coroutine, Optional

from launchproxy.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class TaskFailure:
    """A background task that raised."""

    name: str
    error: str
    failed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class TaskSupervisor:
    """Runs background coroutines under a concurrency limit.

    Example:
        supervisor = TaskSupervisor(max_concurrency=4)
        supervisor.submit(sweeper.sweep(key, dest), name="sweep:0xabc")
        await supervisor.drain()
    """

    def __init__(self, max_concurrency: Optional[int] = None, max_failures: int = 100):
        limit = max_concurrency or get_settings().background_max_concurrency
        self._semaphore = asyncio.Semaphore(limit)
        self._tasks: set[asyncio.Task] = set()
        self.failures: deque[TaskFailure] = deque(maxlen=max_failures)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        coro: Coroutine[Any, Any, Any],
        name: str,
        after: Optional[asyncio.Task] = None,
    ) -> asyncio.Task:
        """Schedule a coroutine; it starts once a slot is free.

        With `after`, it also waits for that task to finish (successfully or
        not) before taking a slot, so related writes apply in order.
        """
        task = asyncio.create_task(self._run(coro, after), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug(f"Submitted background task {name}")
        return task

    async def _run(self, coro: Coroutine[Any, Any, Any], after: Optional[asyncio.Task]) -> Any:
        try:
            if after is not None:
                await asyncio.wait([after])
            async with self._semaphore:
                return await coro
        finally:
            # No-op unless cancelled before the coroutine started
            coro.close()

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} cancelled")
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Background task {task.get_name()} failed: {error}")
            self.failures.append(TaskFailure(name=task.get_name(), error=str(error)))

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight tasks; cancel whatever is left after timeout."""
        if not self._tasks:
            return

        logger.info(f"Draining {len(self._tasks)} background task(s)")
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
