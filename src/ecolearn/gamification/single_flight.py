"""Single-flight guard letting concurrent callers share one in-progress operation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Run an async operation at most once at a time and remember its success.

    While the operation is running, every caller awaits the same task instead
    of starting a new one. A successful result is kept until reset(); a
    failure clears the in-flight task so the next caller retries.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[T] | None = None
        self._result: T | None = None
        self._done = False

    @property
    def done(self) -> bool:
        """True once the operation has completed successfully."""
        return self._done

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Return the remembered result, join the in-flight task, or start one."""
        if self._done:
            return self._result  # type: ignore[return-value]
        if self._task is None:
            self._task = asyncio.ensure_future(self._execute(factory))
        # Shield so one caller's cancellation does not abort the shared task
        return await asyncio.shield(self._task)

    async def _execute(self, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await factory()
        except BaseException:
            self._task = None
            raise
        self._result = result
        self._done = True
        self._task = None
        return result

    def reset(self) -> None:
        """Forget a remembered result so the next run() executes again."""
        self._task = None
        self._result = None
        self._done = False
