"""Equality oracle — canonical encoding for change detection.

Two values are equal iff their canonical encodings are byte-identical.
The canonical encoding is compact JSON with sorted keys; anything JSON
cannot represent (functions, sets, cycles, NaN) is a SerializationError
rather than silently equal or unequal.
"""

from __future__ import annotations

import json

from syncsignal._errors import SerializationError


class _Unset:
    """Carrier for "no value yet". Equal only to itself."""

    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def encode(value: object) -> bytes:
    """Canonical encoding of value. Raises SerializationError."""
    if value is UNSET:
        raise SerializationError("UNSET has no encoding")
    try:
        data = json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
    # UnicodeEncodeError (lone surrogates) is a ValueError
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(f"cannot encode {type(value).__name__}: {exc}") from exc
    return data


def check(value: object) -> None:
    """Raise SerializationError unless value is UNSET or encodable."""
    if value is not UNSET:
        encode(value)


def equal(a: object, b: object) -> bool:
    if a is UNSET or b is UNSET:
        return a is b
    return encode(a) == encode(b)
