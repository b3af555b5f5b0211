"""Textual integration for SyncSignal. Opt-in — requires textual.

Signals fan out from clock callbacks, which may run on a timer thread
while the app is swapping widgets. Everything that makes a delivery safe
for a Textual app lives here, so core syncsignal stays UI-agnostic:
deliveries are dropped while the app cannot be queried, widget lookups
that miss are ignored, and off-thread deliveries hop to the app thread.
"""

from __future__ import annotations

import threading
from collections import Counter
from contextlib import contextmanager
from typing import Callable

from textual.css.query import NoMatches

from syncsignal.clock import ThreadingClock

# app id -> open pause() depth. Owned by this module; apps are never touched.
_pause_depth: Counter[int] = Counter()


@contextmanager
def pause(app):
    """Hold deliveries to app's guarded listeners. Nests."""
    key = id(app)
    _pause_depth[key] += 1
    try:
        yield
    finally:
        _pause_depth[key] -= 1
        if _pause_depth[key] <= 0:
            del _pause_depth[key]


def is_safe(app) -> bool:
    """Can the app's widget tree be queried right now?"""
    return bool(app.is_running) and id(app) not in _pause_depth


def clock(app) -> ThreadingClock:
    """Clock whose deliveries run on the app's thread.

    Usage:
        syncsignal.set_clock(stx.clock(app))
    """
    return ThreadingClock(dispatch=app.call_from_thread)


class _AppListener:
    """Wraps a listener so it only ever runs on the app thread, when safe."""

    __slots__ = ("_app", "_listener", "_thread")

    def __init__(self, app, listener: Callable[..., None]) -> None:
        self._app = app
        self._listener = listener
        self._thread = threading.get_ident()

    def __call__(self, *args) -> None:
        if not is_safe(self._app):
            return
        if threading.get_ident() == self._thread:
            self._run(*args)
        else:
            self._app.call_from_thread(self._run, *args)

    def _run(self, *args) -> None:
        try:
            self._listener(*args)
        except NoMatches:
            # Widget not mounted (yet or any more); the next delivery catches up.
            return


def subscribe(app, signal, listener: Callable[..., None]) -> Callable[[], None]:
    """signal.subscribe() for listeners that touch app's widgets.

    Other errors from the listener go to the signal's error channel.
    Returns the unsubscribe function.
    """
    return signal.subscribe(_AppListener(app, listener))
