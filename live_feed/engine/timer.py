"""Cancellable delayed tasks for the poll scheduler."""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol


Callback = Callable[[], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Timer(Protocol):
    """Schedules an async callback after a delay."""

    def schedule(self, delay_seconds: float, callback: Callback) -> TimerHandle:
        ...


class _AsyncioTimerHandle:
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle
        self.task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        # Only the pending call is cancelled; a callback that already
        # started keeps running.
        self._handle.cancel()


class AsyncioTimer:
    """Timer backed by the running event loop's ``call_later``."""

    def schedule(self, delay_seconds: float, callback: Callback) -> TimerHandle:
        loop = asyncio.get_running_loop()
        holder: Optional[_AsyncioTimerHandle] = None

        def fire() -> None:
            holder.task = loop.create_task(callback())

        holder = _AsyncioTimerHandle(loop.call_later(max(delay_seconds, 0.0), fire))
        return holder
