"""SyncSignal error hierarchy.

All syncsignal errors inherit from SyncSignalError for easy catching.
Validation errors also inherit from the matching builtin so callers can
keep catching ValueError / TypeError.
"""


class SyncSignalError(Exception):
    """Base error for all syncsignal operations."""


class InvalidRevisionError(SyncSignalError, ValueError):
    """Revision is not an integer >= 1."""


class InvalidIdError(SyncSignalError, ValueError):
    """Revision id is empty or not a string."""


class SerializationError(SyncSignalError, TypeError):
    """Value has no canonical encoding (functions, cycles, sets, ...)."""


class FrozenError(SyncSignalError):
    """Write attempted on a frozen signal."""


class DisposedError(SyncSignalError):
    """Operation attempted on a disposed signal."""


class InvalidDebounceError(SyncSignalError, ValueError):
    """Debounce is not an integer number of milliseconds >= 0."""


class EmptyMergeError(SyncSignalError, ValueError):
    """merge() called without any signals."""


class NotASignalError(SyncSignalError, TypeError):
    """Argument is not a SyncSignal."""


class SignalTypeError(SyncSignalError, TypeError):
    """Write to a strict signal does not match its locked type."""
