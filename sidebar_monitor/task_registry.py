"""Named background tasks of one monitor.

The event consumer, the badge poll timer and list rebuilds each run as a
task under a fixed name. asyncio only keeps weak references to tasks, so the
registry holds them until they finish and cancels the rest on stop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskRegistry:
    """Tracks at most one live task per name.

    Example:
        registry = TaskRegistry()
        registry.spawn(scheduler.run(), name="reconciliation-consumer")
        if not registry.is_running("conversation-list-rebuild"):
            ...
        await registry.shutdown(timeout=1.0)
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[object]] = {}

    def _on_task_done(self, task: asyncio.Task[object]) -> None:
        name = task.get_name()
        if self._tasks.get(name) is task:
            del self._tasks[name]
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("Background task %s failed: %s", name, exc, exc_info=exc)

    def spawn(self, coro: Coroutine[object, object, T], name: str) -> asyncio.Task[T]:
        """Start a tracked task.

        Args:
            coro: Coroutine to run
            name: Task name, unique among the live tasks

        Raises:
            RuntimeError: If a task with this name is still running
        """
        if self.is_running(name):
            coro.close()
            raise RuntimeError(f"Task {name} is already running")
        task = asyncio.create_task(coro, name=name)
        self._tasks[name] = task  # type: ignore[assignment]
        task.add_done_callback(self._on_task_done)  # type: ignore[arg-type]
        logger.debug("Spawned task %s (live: %d)", name, len(self._tasks))
        return task

    def get(self, name: str) -> Optional[asyncio.Task[object]]:
        return self._tasks.get(name)

    def is_running(self, name: str) -> bool:
        task = self._tasks.get(name)
        return task is not None and not task.done()

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel every live task and wait up to `timeout` seconds for them."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return

        logger.debug("Cancelling %d monitor tasks (timeout=%.1fs)", len(tasks), timeout)
        for task in tasks:
            task.cancel()

        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            logger.warning("Task %s did not stop within %.1fs", task.get_name(), timeout)

    def task_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())
