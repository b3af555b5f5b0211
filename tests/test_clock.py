"""Tests for clocks — virtual, threading and asyncio."""

import asyncio
import threading

import pytest

from syncsignal import AsyncioClock, ManualClock, ThreadingClock, get_clock, set_clock


class TestManualClock:
    def test_nothing_runs_until_advanced(self):
        clock = ManualClock()
        log = []
        clock.call_later(10, lambda: log.append("a"))
        assert log == []
        assert clock.pending() == 1
        clock.advance(9)
        assert log == []
        clock.advance(1)
        assert log == ["a"]
        assert clock.now == 10

    def test_due_order_then_schedule_order(self):
        clock = ManualClock()
        log = []
        clock.call_later(5, lambda: log.append("late"))
        clock.call_later(0, lambda: log.append("first"))
        clock.call_later(0, lambda: log.append("second"))
        clock.advance(5)
        assert log == ["first", "second", "late"]

    def test_cancel(self):
        clock = ManualClock()
        log = []
        handle = clock.call_later(1, lambda: log.append(1))
        handle.cancel()
        assert clock.pending() == 0
        assert clock.advance(5) == 0
        assert log == []

    def test_callbacks_scheduled_while_advancing(self):
        clock = ManualClock()
        log = []

        def first():
            log.append(clock.now)
            clock.call_later(3, lambda: log.append(clock.now))

        clock.call_later(2, first)
        clock.advance(10)
        assert log == [2, 5]

    def test_flush(self):
        clock = ManualClock()
        log = []
        clock.call_later(1000, lambda: log.append("x"))
        assert clock.flush() == 1
        assert log == ["x"]
        assert clock.now == 1000

    def test_no_going_back(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1)


class TestThreadingClock:
    def test_fires_after_delay(self):
        done = threading.Event()
        ThreadingClock().call_later(10, done.set)
        assert done.wait(timeout=1)

    def test_cancel(self):
        fired = threading.Event()
        handle = ThreadingClock().call_later(50, fired.set)
        handle.cancel()
        assert not fired.wait(timeout=0.2)

    def test_dispatch(self):
        done = threading.Event()
        dispatched = []

        def dispatch(fn):
            dispatched.append(fn)
            fn()

        ThreadingClock(dispatch=dispatch).call_later(0, done.set)
        assert done.wait(timeout=1)
        assert len(dispatched) == 1


class TestAsyncioClock:
    def test_runs_on_running_loop(self):
        async def main():
            fired = asyncio.Event()
            AsyncioClock().call_later(5, fired.set)
            await asyncio.wait_for(fired.wait(), timeout=1)
            return True

        assert asyncio.run(main())

    def test_cancel(self):
        async def main():
            log = []
            handle = AsyncioClock().call_later(1, lambda: log.append(1))
            handle.cancel()
            await asyncio.sleep(0.02)
            return log

        assert asyncio.run(main()) == []


class TestDefaultClock:
    def test_set_clock(self, clock):
        assert get_clock() is clock
        other = ManualClock()
        set_clock(other)
        assert get_clock() is other

    def test_rejects_non_clock(self, clock):
        with pytest.raises(TypeError):
            set_clock(object())
        assert get_clock() is clock
