"""Cancellable single-shot timers for delayed session work."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

logger = logging.getLogger("aura.timers")

TimerCallback = Callable[[], Awaitable[None]]


class TimerHandle(ABC):
    """Handle returned by :meth:`TimerQueue.call_later`."""

    @property
    @abstractmethod
    def delay(self) -> float: ...

    @property
    @abstractmethod
    def cancelled(self) -> bool: ...

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call repeatedly."""
        ...


class TimerQueue(ABC):
    """Hosts delayed reconnection and grace-period callbacks.

    Callbacks run on the owning event loop, so they may mutate session
    state without additional locking.
    """

    @abstractmethod
    def call_later(self, delay: float, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        """Run *callback* once after *delay* seconds."""
        ...

    async def close(self) -> None:
        """Cancel everything still pending."""


class _TaskTimerHandle(TimerHandle):
    def __init__(self, delay: float) -> None:
        self._delay = delay
        self._cancelled = False
        self._task: asyncio.Task[None] | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            # Never cancel the task we're running inside; the callback
            # checks session state itself.
            if self._task is not asyncio.current_task():
                self._task.cancel()


class AsyncioTimerQueue(TimerQueue):
    """Timer queue backed by ``asyncio`` tasks."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def call_later(self, delay: float, callback: TimerCallback, *, name: str = "") -> TimerHandle:
        handle = _TaskTimerHandle(delay)
        task = asyncio.get_running_loop().create_task(
            self._run(handle, callback, name),
            name=f"aura-timer:{name}" if name else None,
        )
        handle._task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return handle

    async def _run(self, handle: _TaskTimerHandle, callback: TimerCallback, name: str) -> None:
        await asyncio.sleep(handle.delay)
        if handle.cancelled:
            return
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Timer callback %r failed", name or callback)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()
