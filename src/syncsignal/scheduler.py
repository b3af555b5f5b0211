"""Notification scheduler — debounced, error-isolated fan-out.

Each signal owns one scheduler. A scheduler keeps the listener set, the
debounce window and at most one pending delivery. Scheduling while a
delivery is pending replaces it, so only the latest change is delivered
(debounce is a throttle, not a queue).

Listener failures are caught one by one and handed to ``report``; they
never stop sibling listeners and never reach the writer.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable

from syncsignal._errors import InvalidDebounceError

logger = logging.getLogger(__name__)

Listener = Callable[..., None]
Unsubscribe = Callable[[], None]


def validate_debounce(ms: object) -> int:
    """Return ms if it is an int >= 0, else raise InvalidDebounceError."""
    if isinstance(ms, bool) or not isinstance(ms, int) or ms < 0:
        raise InvalidDebounceError(f"debounce must be an integer >= 0 (ms), got {ms!r}")
    return ms


class NotificationScheduler:
    """Listener set plus a single cancellable pending delivery.

    ``unpack`` makes deliveries call ``listener(*value)`` instead of
    ``listener(value, old, revision, revision_id)``; merged signals use it.
    """

    __slots__ = ("_clock", "_debounce", "_listeners", "_pending", "_token",
                 "_tokens", "_lock", "_report", "_unpack")

    def __init__(
        self,
        clock,
        debounce: int = 0,
        *,
        report: Callable[[BaseException], None] | None = None,
        unpack: bool = False,
    ) -> None:
        self._clock = clock
        self._debounce = validate_debounce(debounce)
        # insertion-ordered; value is the subscription token
        self._listeners: dict[Listener, object] = {}
        self._pending = None
        self._token = None
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()
        self._report = report
        self._unpack = unpack

    @property
    def debounce(self) -> int:
        return self._debounce

    @debounce.setter
    def debounce(self, ms: int) -> None:
        # An in-flight delivery keeps the duration it was started with.
        self._debounce = validate_debounce(ms)

    @property
    def clock(self):
        return self._clock

    @property
    def pending(self) -> bool:
        """True while a delivery is scheduled and has not fired yet."""
        return self._pending is not None

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener: Listener) -> bool:
        return listener in self._listeners

    def subscribe(self, listener: Listener, initial: tuple | None = None) -> Unsubscribe:
        """Register listener. Returns an idempotent unsubscribe.

        When ``initial`` is given, the listener is called with it right away,
        before this method returns. A listener already in the set is not
        added (or called) twice; both unsubscribe functions then remove it.
        An unsubscribe from an earlier, already ended subscription never
        removes a later one.
        """
        token = self._listeners.get(listener)
        if token is None:
            token = object()
            if initial is not None:
                self._deliver(listener, initial)
            self._listeners[listener] = token

        def _unsubscribe() -> None:
            if self._listeners.get(listener) is token:
                del self._listeners[listener]

        return _unsubscribe

    def args_for(self, value, old, revision: int, revision_id: str) -> tuple:
        if self._unpack:
            return tuple(value)
        return (value, old, revision, revision_id)

    def schedule(self, value, old, revision: int, revision_id: str) -> None:
        """Replace any pending delivery with one for this change."""
        args = self.args_for(value, old, revision, revision_id)
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            token = next(self._tokens)
            self._token = token
            self._pending = self._clock.call_later(self._debounce, lambda: self._fire(token, args))

    def cancel(self) -> None:
        """Drop the pending delivery, if any."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = None
            self._token = None

    def clear(self) -> None:
        """Cancel and forget every listener. Used on dispose."""
        self.cancel()
        self._listeners.clear()

    def _fire(self, token: int, args: tuple) -> None:
        with self._lock:
            # A timer that was cancelled after it started firing loses here.
            if token != self._token:
                return
            self._pending = None
            self._token = None
        for listener in list(self._listeners):
            self._deliver(listener, args)

    def _deliver(self, listener: Listener, args: tuple) -> None:
        try:
            listener(*args)
        except Exception as exc:
            if self._report is not None:
                self._report(exc)
            else:
                logger.debug("Listener %r failed", listener, exc_info=True)


_default_debounce = 0


def set_default_debounce(ms: int) -> None:
    """Set the debounce (ms) given to signals constructed without one."""
    global _default_debounce
    _default_debounce = validate_debounce(ms)


def get_default_debounce() -> int:
    return _default_debounce
