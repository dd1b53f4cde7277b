"""
Per-key coordination of in-flight fetches.

Concurrent callers asking for the same key while a fetch is running join
that fetch instead of starting their own. The fetch runs as an independent
task: a caller that is cancelled stops waiting, but the task keeps running
for the remaining waiters and finishes its side effects regardless.

Responsibility: Fetch-or-join primitive used by the artifact cache and facade
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar('V')


class InflightRegistry(Generic[V]):
    """
    Registry of running fetches keyed by cache key.

    Every waiter that joins before a fetch completes receives that fetch's
    result or exception. The registry entry is removed when the fetch ends,
    so a failed fetch is never remembered and the next call starts anew.

    Example:
        registry = InflightRegistry("documents")
        document = await registry.run(key, lambda: adapter.fetch_bill_text(...))
    """

    def __init__(self, name: str = "inflight"):
        self.name = name
        self._tasks: Dict[Hashable, "asyncio.Task[V]"] = {}
        self.started = 0
        self.joined = 0

    def pending(self, key: Hashable) -> bool:
        """True while a fetch for key is running"""
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[V]]) -> V:
        """
        Start a fetch for key, or join the one already running.

        Args:
            key: Hashable identity of the fetched artifact
            factory: Zero-argument coroutine function performing the fetch

        Returns:
            Result of the single shared fetch

        Raises:
            Whatever the shared fetch raised
        """
        task = self._tasks.get(key)

        if task is None:
            task = asyncio.ensure_future(self._execute(key, factory))
            task.add_done_callback(_consume_result)
            self._tasks[key] = task
            self.started += 1
            logger.debug(f"[{self.name}] started fetch for {key}")
        else:
            self.joined += 1
            logger.debug(f"[{self.name}] joined in-flight fetch for {key}")

        # shield: cancelling this waiter must not cancel the shared task
        return await asyncio.shield(task)

    async def _execute(self, key: Hashable, factory: Callable[[], Awaitable[V]]) -> V:
        try:
            return await factory()
        finally:
            self._tasks.pop(key, None)


def _consume_result(task: asyncio.Task) -> None:
    # Marks the exception retrieved when every waiter was cancelled
    if not task.cancelled():
        task.exception()
