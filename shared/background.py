"""Fire-and-forget helpers for tasks started on the running event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

_LOGGER = logging.getLogger(__name__)

# The event loop only keeps weak references to tasks.
_BACKGROUND_TASKS: set[asyncio.Task[Any]] = set()


def spawn_background_task(coro: Coroutine[Any, Any, Any], *, name: str) -> None:
    """Schedule ``coro`` on the running loop without handing back a task handle."""

    task = asyncio.get_running_loop().create_task(coro, name=name)
    _BACKGROUND_TASKS.add(task)
    task.add_done_callback(_on_task_done)


def pending_background_tasks() -> tuple[asyncio.Task[Any], ...]:
    return tuple(_BACKGROUND_TASKS)


async def wait_for_background_tasks() -> None:
    """Wait until every scheduled background task has finished."""

    while _BACKGROUND_TASKS:
        await asyncio.gather(*list(_BACKGROUND_TASKS), return_exceptions=True)


def _on_task_done(task: asyncio.Task[Any]) -> None:
    _BACKGROUND_TASKS.discard(task)
    if task.cancelled():
        _LOGGER.debug("Background task %s was cancelled", task.get_name())
        return
    exc = task.exception()
    if exc is not None:
        _LOGGER.error(
            "Background task %s failed", task.get_name(), exc_info=(type(exc), exc, exc.__traceback__)
        )


__all__ = ["pending_background_tasks", "spawn_background_task", "wait_for_background_tasks"]
