"""Clocks — cancellable delayed tasks for the notification scheduler.

A clock has one method, ``call_later(delay_ms, callback) -> handle``;
the handle has ``cancel()``. Three flavors:

- ThreadingClock: daemon threading.Timer. Pass ``dispatch`` (for example a
  UI framework's ``call_from_thread``) to run callbacks on the owning thread.
- AsyncioClock: ``loop.call_later`` on an event loop.
- ManualClock: virtual time, advanced explicitly. Tests use it so no
  debounce window costs wall-clock time.

The process-wide default is read once when a signal is constructed.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import threading
from typing import Callable

Callback = Callable[[], None]


class ThreadingClock:
    """Fires callbacks from daemon timer threads."""

    __slots__ = ("_dispatch",)

    def __init__(self, dispatch: Callable[[Callback], object] | None = None) -> None:
        self._dispatch = dispatch

    def call_later(self, delay_ms: int, callback: Callback) -> threading.Timer:
        if self._dispatch is not None:
            dispatch = self._dispatch
            target = lambda: dispatch(callback)  # noqa: E731
        else:
            target = callback
        t = threading.Timer(delay_ms / 1000, target)
        t.daemon = True
        t.start()
        return t

    def __repr__(self) -> str:
        return f"ThreadingClock(dispatch={self._dispatch!r})"


class AsyncioClock:
    """Schedules callbacks on an asyncio event loop.

    Without an explicit loop, the running loop at scheduling time is used,
    so writes must happen inside that loop.
    """

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)


class _ManualHandle:
    __slots__ = ("due", "seq", "callback", "cancelled")

    def __init__(self, due: int, seq: int, callback: Callback) -> None:
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: _ManualHandle) -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualClock:
    """Virtual clock. Nothing fires until advance() or flush() is called.

    Usage:
        clock = ManualClock()
        s = SyncSignal(1, clock=clock, debounce=50)
        s.value = 2
        clock.advance(49)   # nothing yet
        clock.advance(1)    # listeners run here
    """

    def __init__(self) -> None:
        self._now = 0
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    @property
    def now(self) -> int:
        """Virtual time in milliseconds."""
        return self._now

    def call_later(self, delay_ms: int, callback: Callback) -> _ManualHandle:
        handle = _ManualHandle(self._now + delay_ms, next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    def pending(self) -> int:
        """Number of scheduled, not-cancelled callbacks."""
        return sum(1 for h in self._queue if not h.cancelled)

    def advance(self, ms: int = 0) -> int:
        """Move time forward by ms, running every callback that becomes due.

        Callbacks scheduled while advancing run too if they fall inside the
        window. Returns the number of callbacks run.
        """
        if ms < 0:
            raise ValueError("cannot advance a clock backwards")
        target = self._now + ms
        ran = 0
        while self._queue and self._queue[0].due <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = handle.due
            handle.callback()
            ran += 1
        self._now = target
        return ran

    def flush(self) -> int:
        """Run everything scheduled, however far in the future."""
        ran = 0
        while self.pending():
            due = max(h.due for h in self._queue if not h.cancelled)
            ran += self.advance(due - self._now)
        return ran


_default_clock = ThreadingClock()


def set_clock(clock) -> None:
    """Install the process-wide default clock.

    Call once from the main/UI thread, before constructing signals:
        syncsignal.set_clock(ThreadingClock(dispatch=app.call_from_thread))
    """
    global _default_clock
    if not callable(getattr(clock, "call_later", None)):
        raise TypeError(f"clock must have a call_later() method, got {clock!r}")
    _default_clock = clock


def get_clock():
    return _default_clock
