"""Tests for syncsignal.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from syncsignal import SyncSignal, ThreadingClock
from syncsignal import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestSubscribe:
    def test_skips_when_not_running(self, clock):
        app = _MockApp(is_running=False)
        s = SyncSignal(1)
        effects = []
        stx.subscribe(app, s, lambda v, *rest: effects.append(v))
        s.value = 2
        clock.flush()
        assert effects == []

    def test_skips_during_pause(self, clock):
        app = _MockApp()
        s = SyncSignal(1)
        effects = []
        stx.subscribe(app, s, lambda v, *rest: effects.append(v))
        with stx.pause(app):
            s.value = 2
            clock.flush()
        assert effects == [1]

    def test_fires_when_safe(self, clock):
        app = _MockApp()
        s = SyncSignal(1)
        effects = []
        stx.subscribe(app, s, lambda v, *rest: effects.append(v))
        s.value = 2
        clock.flush()
        assert effects == [1, 2]

    def test_catches_nomatch(self, clock):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        s = SyncSignal(1)
        errors = []
        s.on_error(lambda exc, v: errors.append(exc))

        def _raise_nomatch(*args):
            raise NoMatches("StatusFooter")

        stx.subscribe(app, s, _raise_nomatch)
        s.value = 2
        clock.flush()
        assert errors == []

    def test_real_errors_reach_error_channel(self, clock):
        """Non-NoMatches exceptions go to the signal's error handler."""
        app = _MockApp()
        s = SyncSignal(1)
        errors = []
        s.on_error(lambda exc, v: errors.append(exc))

        def _raise_value_error(v, *rest):
            if v == 2:
                raise ValueError("boom")

        stx.subscribe(app, s, _raise_value_error)
        s.value = 2
        clock.flush()
        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)

    def test_unsubscribe(self, clock):
        app = _MockApp()
        s = SyncSignal(1)
        effects = []
        unsub = stx.subscribe(app, s, lambda v, *rest: effects.append(v))
        unsub()
        s.value = 2
        clock.flush()
        assert effects == [1]

    def test_merged_signal_arguments(self, clock):
        app = _MockApp()
        x, y = SyncSignal("x"), SyncSignal("y")
        got = []
        stx.subscribe(app, x.merge(y), lambda a, b: got.append(a + b))
        x.value = "X"
        clock.flush()
        assert got == ["xy", "Xy"]

    def test_thread_marshal(self):
        """Deliveries from a timer thread use call_from_thread."""
        app = _MockApp()
        s = SyncSignal(1, clock=ThreadingClock())
        done = threading.Event()
        effects = []

        def _effect(v, *rest):
            effects.append(v)
            if v == 2:
                done.set()

        stx.subscribe(app, s, _effect)
        s.value = 2
        assert done.wait(timeout=1)
        assert effects == [1, 2]
        assert len(app._call_from_thread_log) >= 1


class TestClock:
    def test_app_clock_dispatches_through_app(self):
        app = _MockApp()
        done = threading.Event()
        stx.clock(app).call_later(0, done.set)
        assert done.wait(timeout=1)
        assert app._call_from_thread_log[0][0] == done.set


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)

    def test_nested_pause(self):
        app = _MockApp()
        with stx.pause(app):
            with stx.pause(app):
                assert not stx.is_safe(app)
            assert not stx.is_safe(app)
        assert stx.is_safe(app)
