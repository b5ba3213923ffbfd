from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


###############################################################################
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


###############################################################################
class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


###############################################################################
class AsyncioScheduler:
    """Timers backed by the running event loop's monotonic clock."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    # -------------------------------------------------------------------------
    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    # -------------------------------------------------------------------------
    def now(self) -> float:
        return self.loop.time()

    # -------------------------------------------------------------------------
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


###############################################################################
@dataclass(order=True)
class ScheduledCall:
    due: float
    sequence: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    # -------------------------------------------------------------------------
    def cancel(self) -> None:
        self.cancelled = True


###############################################################################
class ManualScheduler:
    """Deterministic clock that only moves when ``advance`` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[ScheduledCall] = []
        self._sequence = itertools.count()

    # -------------------------------------------------------------------------
    def now(self) -> float:
        return self._now

    # -------------------------------------------------------------------------
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(
            due=self._now + max(0.0, delay),
            sequence=next(self._sequence),
            callback=callback,
        )
        heapq.heappush(self._queue, call)
        return call

    # -------------------------------------------------------------------------
    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        # callbacks may schedule new calls that also fall inside the window
        while self._queue and self._queue[0].due <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = call.due
            call.callback()
        self._now = target

    # -------------------------------------------------------------------------
    @property
    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)
