"""SyncSignal: last-writer-wins reactive state cells for Python."""

from importlib.metadata import version as _version

__version__ = _version("syncsignal")

from syncsignal._errors import (
    DisposedError,
    EmptyMergeError,
    FrozenError,
    InvalidDebounceError,
    InvalidIdError,
    InvalidRevisionError,
    NotASignalError,
    SerializationError,
    SignalTypeError,
    SyncSignalError,
)
from syncsignal.codec import UNSET, encode, equal
from syncsignal.ids import ClockIdSource, CounterIdSource, set_id_source, get_id_source
from syncsignal.clock import AsyncioClock, ManualClock, ThreadingClock, set_clock, get_clock
from syncsignal.scheduler import NotificationScheduler, set_default_debounce, get_default_debounce
from syncsignal.sync_signal import Revision, SyncSignal
from syncsignal.graph import merge
from syncsignal.store import Store
# textual NOT auto-imported — opt-in only

__all__ = [
    "SyncSignal",
    "Revision",
    "merge",
    "Store",
    "UNSET",
    "encode",
    "equal",
    "ClockIdSource",
    "CounterIdSource",
    "set_id_source",
    "get_id_source",
    "ThreadingClock",
    "AsyncioClock",
    "ManualClock",
    "set_clock",
    "get_clock",
    "NotificationScheduler",
    "set_default_debounce",
    "get_default_debounce",
    "SyncSignalError",
    "InvalidRevisionError",
    "InvalidIdError",
    "SerializationError",
    "FrozenError",
    "DisposedError",
    "InvalidDebounceError",
    "EmptyMergeError",
    "NotASignalError",
    "SignalTypeError",
]
