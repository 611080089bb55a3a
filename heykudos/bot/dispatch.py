"""
heykudos.bot.dispatch — Bounded Per-Message Task Dispatch
==========================================================

Each inbound message is handled as an independent task so one slow
database round trip or Discord call never holds up the gateway.  An
``asyncio.Semaphore`` caps how many handlers run at once.

No ordering is guaranteed between messages, even two from the same
sender; correctness must never depend on it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class TaskDispatcher:
    """Fire-and-forget task runner with a concurrency cap.

    - :meth:`submit` schedules a coroutine and returns immediately.
    - Exceptions are logged per task and never escape.
    - :meth:`drain` waits for in-flight work; :meth:`stop` cancels it.
    """

    def __init__(self, max_concurrency: int = 16) -> None:
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task:
        """Schedule *coro* on the running loop."""
        task = asyncio.get_running_loop().create_task(self._run(coro), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            async with self._semaphore:
                await coro
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Unhandled error in dispatched task")
        finally:
            # No-op if it ran; avoids "never awaited" when cancelled while queued
            coro.close()

    async def drain(self) -> None:
        """Wait until every submitted task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def stop(self) -> None:
        """Cancel all in-flight tasks."""
        for task in list(self._tasks):
            task.cancel()
