"""SyncSignal — a synchronized, last-writer-wins reactive register.

A signal holds one value plus its position in history, the pair
``(revision, revision_id)``. Local writes bump the revision and mint a
fresh id. Remote writes carry their own pair and are accepted only when
strictly ahead of the current one:

    remote.revision > revision
    or remote.revision == revision and remote.revision_id > revision_id

Every replica applying the same set of updates, in any order and with any
duplication, ends at the same ``(value, revision, revision_id)``.

Writes are synchronous. Listeners are notified later, through the
signal's debounced scheduler.

All state lives in _arena — instances are thin handles holding an _id.
"""

from __future__ import annotations

import functools
import logging
import weakref
from typing import Any, Callable, Generic, NamedTuple, TypeVar

from syncsignal import _arena, codec
from syncsignal._errors import (
    DisposedError,
    FrozenError,
    InvalidIdError,
    InvalidRevisionError,
    SignalTypeError,
)
from syncsignal.clock import get_clock
from syncsignal.codec import UNSET
from syncsignal.ids import get_id_source
from syncsignal.scheduler import NotificationScheduler, get_default_debounce, validate_debounce

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

ErrorHandler = Callable[[BaseException, Any], None]


class Revision(NamedTuple):
    """One point in a signal's history, in apply_remote() argument order."""

    revision: int
    revision_id: str
    value: Any


def _validate_revision(revision: object) -> int:
    if isinstance(revision, bool) or not isinstance(revision, int) or revision < 1:
        raise InvalidRevisionError(f"revision must be an integer >= 1, got {revision!r}")
    return revision


def _validate_id(revision_id: object) -> str:
    if not isinstance(revision_id, str) or not revision_id:
        raise InvalidIdError(f"revision id must be a non-empty string, got {revision_id!r}")
    return revision_id


def _live(sig_ids) -> tuple:
    handles = (_arena.handles.get(i) for i in sig_ids)
    return tuple(h for h in handles if h is not None)


def _report_error(sig_id: int, exc: BaseException) -> None:
    """Error channel. Keyed by id so schedulers never hold the handle."""
    handler = _arena.error_handlers.get(sig_id)
    if handler is None:
        logger.debug("Contained error in signal %d", sig_id, exc_info=exc)
        return
    try:
        handler(exc, _arena.values.get(sig_id))
    except Exception:
        logger.exception("Error handler of signal %d failed", sig_id)


def _teardown(sig_id: int) -> bool:
    """Dispose sig_id and its descendants. False if already disposed."""
    if _arena.disposed.get(sig_id, True):
        return False
    # Pinned so a finalizer cannot forget the entries mid-teardown.
    handle = _arena.handles.get(sig_id)  # noqa: F841
    _arena.disposed[sig_id] = True
    for cid in list(_arena.children.get(sig_id, ())):
        _teardown(cid)
    for unsubscribe in _arena.edge_unsubscribers.pop(sig_id, ()):
        unsubscribe()
    for pid in _arena.parents.get(sig_id, ()):
        siblings = _arena.children.get(pid)
        if siblings is not None and sig_id in siblings:
            siblings.remove(sig_id)
    _arena.children[sig_id].clear()
    _arena.schedulers[sig_id].clear()
    _arena.error_handlers.pop(sig_id, None)
    return True


def _release(sig_id: int) -> None:
    """Finalizer: the last handle is gone, so nothing can read or write it."""
    _teardown(sig_id)
    _arena.forget(sig_id)


class SyncSignal(Generic[T]):
    """A register that converges under local and remote writes.

    Usage:
        s = SyncSignal(1, revision=1, revision_id="a")
        s.apply_remote(2, "b", 2)      # accepted, remote is ahead
        s.apply_remote(2, "b", 2)      # duplicate, no effect
        s.value = 5                    # local write, revision 3
    """

    __slots__ = ("_id", "__weakref__")

    def __init__(
        self,
        value: T = UNSET,
        revision: int = 1,
        revision_id: str | None = None,
        *,
        debounce: int | None = None,
        clock=None,
        ids=None,
        strict: bool = False,
    ) -> None:
        _validate_revision(revision)
        source = ids if ids is not None else get_id_source()
        if revision_id is None:
            revision_id = source.fresh()
        _validate_id(revision_id)
        codec.check(value)
        debounce = validate_debounce(get_default_debounce() if debounce is None else debounce)

        self._id = _arena.new_id()
        self._register(
            value,
            revision,
            revision_id,
            clock=clock if clock is not None else get_clock(),
            ids=source,
            debounce=debounce,
            frozen=False,
            unpack=False,
        )
        _arena.strict[self._id] = strict
        _arena.type_tags[self._id] = type(value) if strict and value is not UNSET else None

    # --- Construction helpers ---

    def _register(self, value, revision, revision_id, *, clock, ids, debounce, frozen, unpack) -> None:
        sid = self._id
        _arena.frozen[sid] = frozen
        _arena.disposed[sid] = False
        _arena.values[sid] = value
        _arena.revisions[sid] = revision
        _arena.revision_ids[sid] = revision_id
        _arena.id_sources[sid] = ids
        _arena.schedulers[sid] = NotificationScheduler(
            clock, debounce, report=functools.partial(_report_error, sid), unpack=unpack
        )
        _arena.children[sid] = []
        _arena.handles[sid] = self
        weakref.finalize(self, _release, sid).atexit = False

    @classmethod
    def _derived(cls, source: SyncSignal, *, merged: bool) -> SyncSignal:
        """Frozen, empty signal sharing source's clock, id source and debounce."""
        sid = source._id
        ids = _arena.id_sources[sid]
        scheduler = _arena.schedulers[sid]
        handle = cls.__new__(cls)
        handle._id = _arena.new_id()
        handle._register(
            UNSET,
            1,
            ids.fresh(),
            clock=scheduler.clock,
            ids=ids,
            debounce=scheduler.debounce,
            frozen=True,
            unpack=merged,
        )
        _arena.strict[handle._id] = False
        _arena.type_tags[handle._id] = None
        return handle

    def _purge(self) -> None:
        """Forget every arena entry. Only for signals that never escaped."""
        _arena.forget(self._id)

    # --- Reads ---

    @property
    def value(self) -> T:
        return _arena.values[self._id]

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    def get(self) -> T:
        return _arena.values[self._id]

    @property
    def revision(self) -> int:
        return _arena.revisions[self._id]

    @property
    def revision_id(self) -> str:
        return _arena.revision_ids[self._id]

    @property
    def frozen(self) -> bool:
        return _arena.frozen[self._id]

    @property
    def disposed(self) -> bool:
        return _arena.disposed[self._id]

    @property
    def strict(self) -> bool:
        return _arena.strict[self._id]

    @property
    def debounce(self) -> int:
        """Milliseconds of quiet before listeners are notified."""
        return _arena.schedulers[self._id].debounce

    @debounce.setter
    def debounce(self, ms: int) -> None:
        _arena.schedulers[self._id].debounce = ms

    @property
    def parents(self) -> tuple[SyncSignal, ...]:
        """Live source signals. Parents that were released are skipped."""
        return _live(_arena.parents.get(self._id, ()))

    @property
    def children(self) -> tuple[SyncSignal, ...]:
        return _live(_arena.children.get(self._id, ()))

    def snapshot(self) -> Revision:
        """Current (revision, revision_id, value), ready to ship to a peer."""
        sid = self._id
        return Revision(_arena.revisions[sid], _arena.revision_ids[sid], _arena.values[sid])

    # --- Writes ---

    def _check_writable(self) -> None:
        if _arena.frozen[self._id]:
            raise FrozenError(f"{self!r} is frozen")
        if _arena.disposed[self._id]:
            raise DisposedError(f"{self!r} is disposed")

    def _check_alive(self) -> None:
        if _arena.disposed[self._id]:
            raise DisposedError(f"{self!r} is disposed")

    def _check_type(self, value: object) -> None:
        tag = _arena.type_tags[self._id]
        if tag is not None and type(value) is not tag:
            raise SignalTypeError(
                f"{self!r} is locked to {tag.__name__}, got {type(value).__name__}"
            )

    def _lock_type(self, value: object) -> None:
        sid = self._id
        if _arena.strict[sid] and _arena.type_tags[sid] is None:
            _arena.type_tags[sid] = type(value)

    def set(self, value: T) -> None:
        """Local write. No-op when value encodes the same as the current one."""
        self._check_writable()
        self._check_type(value)
        codec.encode(value)
        self._lock_type(value)
        self._write(value)

    def _write(self, value: T) -> bool:
        """Internal write path; skips the frozen check. Derivations use it."""
        sid = self._id
        if codec.equal(value, _arena.values[sid]):
            return False
        self._commit(value, _arena.revisions[sid] + 1, _arena.id_sources[sid].fresh())
        return True

    def _commit(self, value: T, revision: int, revision_id: str) -> None:
        sid = self._id
        old = _arena.values[sid]
        _arena.values[sid] = value
        _arena.revisions[sid] = revision
        _arena.revision_ids[sid] = revision_id
        _arena.schedulers[sid].schedule(value, None if old is UNSET else old, revision, revision_id)

    def apply_remote(self, revision: int, revision_id: str, value: T) -> bool:
        """Apply an update delivered by a peer. Returns True if accepted.

        Stale updates and exact duplicates are rejected without side
        effects, before their value is looked at. An accepted update whose
        value equals the current one still moves (revision, revision_id)
        forward but notifies nobody.
        """
        self._check_writable()
        _validate_revision(revision)
        _validate_id(revision_id)

        sid = self._id
        current = (_arena.revisions[sid], _arena.revision_ids[sid])
        if revision < current[0] or (revision == current[0] and revision_id <= current[1]):
            logger.debug("Rejected remote (%d, %r) on %r: not ahead of %r", revision, revision_id, self, current)
            return False

        self._check_type(value)
        codec.encode(value)
        self._lock_type(value)
        if codec.equal(value, _arena.values[sid]):
            _arena.revisions[sid] = revision
            _arena.revision_ids[sid] = revision_id
        else:
            self._commit(value, revision, revision_id)
        logger.debug("Accepted remote (%d, %r) on %r", revision, revision_id, self)
        return True

    def freeze(self) -> None:
        """Reject all further writes. Permanent."""
        _arena.frozen[self._id] = True

    # --- Notification ---

    def subscribe(self, listener: Callable[..., None]) -> Callable[[], None]:
        """Register listener; call it now with the current value if there is one.

        Listeners receive ``(value, old, revision, revision_id)``; on merged
        signals they receive the merged values as separate arguments.
        Returns an idempotent unsubscribe function.
        """
        self._check_alive()
        sid = self._id
        scheduler = _arena.schedulers[sid]
        value = _arena.values[sid]
        initial = None
        if value is not UNSET:
            initial = scheduler.args_for(value, None, _arena.revisions[sid], _arena.revision_ids[sid])
        return scheduler.subscribe(listener, initial)

    def on_error(self, handler: ErrorHandler | None) -> None:
        """Set the handler for listener and derivation failures (None clears).

        The handler is called as ``handler(error, current_value)``. Only the
        last one registered is active.
        """
        if handler is None:
            _arena.error_handlers.pop(self._id, None)
        else:
            _arena.error_handlers[self._id] = handler

    def _report(self, exc: BaseException) -> None:
        _report_error(self._id, exc)

    # --- Graph ---

    def map(self, fn: Callable[[T], U]) -> SyncSignal[U]:
        """Derived, frozen signal holding fn(self.value), kept up to date."""
        from syncsignal import graph

        return graph.map_signal(self, fn)

    def merge(self, *signals: SyncSignal) -> SyncSignal[tuple]:
        """Derived, frozen signal holding (self.value, *values of signals)."""
        from syncsignal import graph

        return graph.merge_signals(self, signals)

    # --- Lifecycle ---

    def dispose(self) -> None:
        """Stop for good: drop listeners, detach from parents, dispose children."""
        if _teardown(self._id):
            logger.debug("Disposed %r", self)

    def __repr__(self) -> str:
        sid = self._id
        flags = ""
        if _arena.disposed.get(sid):
            flags = ", disposed"
        elif _arena.frozen.get(sid):
            flags = ", frozen"
        return (
            f"SyncSignal({_arena.values.get(sid)!r}, rev={_arena.revisions.get(sid)}, "
            f"id={_arena.revision_ids.get(sid)!r}{flags})"
        )
