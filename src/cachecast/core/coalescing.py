"""Single-flight request coalescing."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")


class RequestCoalescer:
    """Deduplicate identical in-flight requests.

    Concurrent calls to ``run`` with the same key share a single execution of
    the first caller's factory. Once it finishes the key is forgotten, so a
    later call runs the factory again.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            existing = self._tasks.get(key)
            if existing is None:
                task: asyncio.Task[T] = asyncio.ensure_future(factory())
                self._tasks[key] = task
                owner = True
            else:
                task = existing
                owner = False

        try:
            # shield so one cancelled waiter does not cancel the shared fetch
            return await asyncio.shield(task)
        finally:
            if owner:
                async with self._lock:
                    if self._tasks.get(key) is task:
                        del self._tasks[key]

    def forget(self, key: str) -> bool:
        """Stop sharing the running execution for key.

        The execution is not cancelled; callers already waiting on it still
        get its result, while the next ``run`` for key starts a fresh one.
        """
        return self._tasks.pop(key, None) is not None

    @property
    def in_flight(self) -> int:
        """Number of keys with a running execution."""
        return len(self._tasks)
