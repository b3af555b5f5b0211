"""Dependency graph — signals derived from other signals.

map(parent, fn) and merge(*sources) build frozen signals that recompute
synchronously inside their parents' (already debounced) notifications,
then schedule their own. A derived value is therefore always consistent
with its parents by the time the derived listeners run.

Each derived signal registers one _Edge listener on every parent. The
edge holds the derived handle, which is what keeps it alive; the arena
records the relation by id for introspection and disposal.
"""

from __future__ import annotations

from typing import Callable, Iterable

from syncsignal import _arena, codec
from syncsignal._errors import EmptyMergeError, NotASignalError
from syncsignal.codec import UNSET
from syncsignal.sync_signal import SyncSignal


class _Edge:
    """Parent listener that recomputes one derived signal.

    Ignores the notification arguments and reads the parents straight from
    the arena, so it works for plain and merged parents alike. Failures
    go to the derived signal's error channel, never to the parent's.
    """

    __slots__ = ("_child", "_compute")

    def __init__(self, child: SyncSignal, compute: Callable[[], object]) -> None:
        self._child = child
        self._compute = compute

    def __call__(self, *_args) -> None:
        child = self._child
        if child.disposed:
            return
        try:
            value = self._compute()
            if value is UNSET:
                return
            codec.encode(value)
            child._write(value)
        except Exception as exc:
            child._report(exc)


def _map_compute(parent_id: int, fn: Callable) -> Callable[[], object]:
    def compute() -> object:
        value = _arena.values[parent_id]
        if value is UNSET:
            return UNSET
        return fn(value)

    return compute


def _merge_compute(source_ids: tuple[int, ...]) -> Callable[[], object]:
    def compute() -> object:
        values = tuple(_arena.values[i] for i in source_ids)
        if any(v is UNSET for v in values):
            return UNSET
        return values

    return compute


def _derive(sources: tuple[SyncSignal, ...], compute: Callable[[], object], *, merged: bool) -> SyncSignal:
    # Frozen before the first value exists: nobody ever sees it writable.
    child = SyncSignal._derived(sources[0], merged=merged)
    try:
        value = compute()
        if value is not UNSET:
            codec.encode(value)
            _arena.values[child._id] = value
    except BaseException:
        child._purge()
        raise

    edge = _Edge(child, compute)
    unsubscribers = []
    source_ids: list[int] = []
    for source in sources:
        sid = source._id
        if sid in source_ids:
            continue
        source_ids.append(sid)
        unsubscribers.append(_arena.schedulers[sid].subscribe(edge))
        _arena.children[sid].append(child._id)
    _arena.parents[child._id] = tuple(source_ids)
    _arena.edge_unsubscribers[child._id] = unsubscribers
    return child


def map_signal(parent: SyncSignal, fn: Callable) -> SyncSignal:
    """Derived signal holding fn(parent.value).

    fn runs once right away; if it raises there, the error propagates to
    the caller and nothing is registered. Later failures are contained.
    """
    if not isinstance(parent, SyncSignal):
        raise NotASignalError(f"expected a SyncSignal, got {type(parent).__name__}")
    if not callable(fn):
        raise TypeError(f"map() needs a callable, got {fn!r}")
    parent._check_alive()
    return _derive((parent,), _map_compute(parent._id, fn), merged=False)


def merge_signals(caller: SyncSignal, signals: Iterable[SyncSignal]) -> SyncSignal:
    """Derived signal holding (caller.value, *(s.value for s in signals))."""
    signals = tuple(signals)
    if not signals:
        raise EmptyMergeError("merge() needs at least one signal to merge with")
    return merge(caller, *signals)


def merge(*signals: SyncSignal) -> SyncSignal:
    """Derived signal holding the tuple of all the signals' values.

    Listeners of the result are called with the values unpacked:
        x, y = SyncSignal("x"), SyncSignal("y")
        merge(x, y).subscribe(lambda a, b: print(a, b))
    The tuple stays UNSET until every source holds a value.
    """
    if not signals:
        raise EmptyMergeError("merge() needs at least one signal")
    for s in signals:
        if not isinstance(s, SyncSignal):
            raise NotASignalError(f"expected a SyncSignal, got {type(s).__name__}")
    for s in signals:
        s._check_alive()
    return _derive(signals, _merge_compute(tuple(s._id for s in signals)), merged=True)
