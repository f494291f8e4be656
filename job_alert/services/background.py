from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from functools import lru_cache
import logging
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """Runs fire-and-forget work outside the request that triggered it.

    Submitted coroutines are kept as tracked tasks so failures are logged
    and shutdown can wait for in-flight work.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], *, label: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=label)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self, timeout_seconds: float | None = None) -> None:
        if not self._tasks:
            return
        logger.info("waiting for %s background task(s)", len(self._tasks))
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout_seconds)
        for task in still_running:
            logger.warning("cancelling unfinished background task name=%s", task.get_name())
            task.cancel()

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "background task failed name=%s",
                task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )


@lru_cache
def get_dispatcher() -> BackgroundDispatcher:
    return BackgroundDispatcher()
