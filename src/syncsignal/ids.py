"""Revision-id sources.

A revision id is an opaque, non-empty string. Ids from one source are
unique and strictly increasing in lexicographic order, so same-revision
ties favor the more recent local writer.

The process-wide default is read once when a signal is constructed;
after that each signal keeps the source it was given.
"""

from __future__ import annotations

import itertools
import os
import threading
import time


class ClockIdSource:
    """Time-prefixed ids: ``<16 hex digits of ns>-<node>``.

    The timestamp is forced strictly increasing within the source, so two
    ids minted in the same nanosecond still order correctly. ``node``
    separates sources in different processes.
    """

    __slots__ = ("_node", "_last", "_lock")

    def __init__(self, node: str | None = None) -> None:
        self._node = node if node is not None else os.urandom(4).hex()
        self._last = 0
        self._lock = threading.Lock()

    @property
    def node(self) -> str:
        return self._node

    def fresh(self) -> str:
        with self._lock:
            stamp = max(time.time_ns(), self._last + 1)
            self._last = stamp
        return f"{stamp:016x}-{self._node}"

    def __repr__(self) -> str:
        return f"ClockIdSource(node={self._node!r})"


class CounterIdSource:
    """Deterministic ids: ``<prefix><12-digit counter>``. For tests and replay."""

    __slots__ = ("_prefix", "_counter")

    def __init__(self, prefix: str = "", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def fresh(self) -> str:
        return f"{self._prefix}{next(self._counter):012d}"

    def __repr__(self) -> str:
        return f"CounterIdSource(prefix={self._prefix!r})"


_default_source = ClockIdSource()


def set_id_source(source) -> None:
    """Install the process-wide default id source.

    Must be called before constructing the signals that should use it:
        syncsignal.set_id_source(CounterIdSource("peer-a:"))
    """
    global _default_source
    if not callable(getattr(source, "fresh", None)):
        raise TypeError(f"id source must have a fresh() method, got {source!r}")
    _default_source = source


def get_id_source():
    return _default_source
