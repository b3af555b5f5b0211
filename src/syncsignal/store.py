"""Store — key-based SyncSignal container with remote routing.

A Store wraps a schema of named signals. Transports hand it keyed
updates; peers catch up by exchanging snapshot() mappings, which
merge_snapshot() applies through each signal's last-writer-wins rule.
reconcile() supports schema evolution: new keys get defaults, existing
signals keep their values and history.
"""

from __future__ import annotations

import logging
from typing import Mapping

from syncsignal.sync_signal import Revision, SyncSignal

logger = logging.getLogger(__name__)


class Store:
    """Key-based SyncSignal container.

    Keyword arguments (debounce, clock, ids, strict) are passed to every
    signal the store creates.
    """

    def __init__(self, schema: dict[str, object], initial: dict | None = None, **signal_options) -> None:
        self._signals: dict[str, SyncSignal] = {}
        self._options = signal_options
        for key, default in schema.items():
            value = initial.get(key, default) if initial else default
            self._signals[key] = SyncSignal(value, **signal_options)

    def __contains__(self, key: str) -> bool:
        return key in self._signals

    def keys(self) -> list[str]:
        return list(self._signals)

    def signal(self, key: str) -> SyncSignal:
        return self._signals[key]

    def get(self, key: str) -> object:
        sig = self._signals.get(key)
        return sig.get() if sig is not None else None

    def set(self, key: str, value: object) -> None:
        sig = self._signals.get(key)
        if sig is not None:
            sig.set(value)

    def apply_remote(self, key: str, revision: int, revision_id: str, value: object) -> bool:
        """Route one peer update to its signal. Unknown keys raise KeyError."""
        return self._signals[key].apply_remote(revision, revision_id, value)

    def snapshot(self) -> dict[str, Revision]:
        return {key: sig.snapshot() for key, sig in self._signals.items()}

    def merge_snapshot(self, snapshot: Mapping[str, tuple]) -> list[str]:
        """Apply a peer's snapshot. Returns the keys whose update was accepted.

        Keys this store does not know are skipped.
        """
        accepted = []
        for key, (revision, revision_id, value) in snapshot.items():
            sig = self._signals.get(key)
            if sig is None:
                logger.debug("Skipping unknown key %r in snapshot", key)
                continue
            if sig.apply_remote(revision, revision_id, value):
                accepted.append(key)
        return accepted

    def reconcile(self, schema: dict[str, object]) -> list[str]:
        """Schema evolution: add new keys. Returns the keys added."""
        added = []
        for key, default in schema.items():
            if key not in self._signals:
                self._signals[key] = SyncSignal(default, **self._options)
                added.append(key)
        logger.info("Reconciled: %d new keys", len(added))
        return added

    def dispose(self) -> None:
        for sig in self._signals.values():
            sig.dispose()
