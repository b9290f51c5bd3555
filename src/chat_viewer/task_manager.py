"""Lifecycle tracking for background media-probe tasks."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class TaskManager:
    """Own the asyncio tasks spawned for rendered messages.

    Tasks may be keyed (one per message position) so a re-render replaces the
    stale probe for the same bubble. Everything is cancelled on clear and on
    shutdown so no probe outlives the handles it reads.
    """

    def __init__(self) -> None:
        self._named: dict[str, asyncio.Task[Any]] = {}
        self._anonymous: set[asyncio.Task[Any]] = set()

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: str | None = None
    ) -> asyncio.Task[Any]:
        """Schedule ``coro`` and track the resulting task.

        A keyed task cancels whichever task previously held the same key.
        """
        task = asyncio.create_task(coro)
        task.add_done_callback(self._log_exception)
        if name is None:
            self._anonymous.add(task)
            task.add_done_callback(self._anonymous.discard)
            return task

        previous = self._named.get(name)
        if previous is not None and not previous.done():
            previous.cancel()
        self._named[name] = task
        task.add_done_callback(lambda done, key=name: self._forget(key, done))
        return task

    def _forget(self, name: str, task: asyncio.Task[Any]) -> None:
        if self._named.get(name) is task:
            del self._named[name]

    def _log_exception(self, task: asyncio.Task[Any]) -> None:
        """Log unhandled task exceptions so they are not silently lost."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.warning(
                "task.exception",
                extra={
                    "event": "task.exception",
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    def get(self, name: str) -> asyncio.Task[Any] | None:
        """Return the named task or ``None`` if not registered."""
        return self._named.get(name)

    @property
    def pending(self) -> int:
        tasks = list(self._named.values()) + list(self._anonymous)
        return sum(1 for task in tasks if not task.done())

    async def cancel(self, name: str) -> None:
        """Cancel a named task and await its completion."""
        task = self._named.pop(name, None)
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def cancel_all(self) -> None:
        """Cancel every tracked task and await them all."""
        all_tasks = list(self._named.values()) + list(self._anonymous)
        for task in all_tasks:
            if not task.done():
                task.cancel()
        for task in all_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001 - already logged by the done callback.
                pass
        self._named.clear()
        self._anonymous.clear()
