"""Shared fixtures: virtual time and deterministic ids for every test."""

import pytest

from syncsignal import clock as _clock
from syncsignal import ids as _ids
from syncsignal import scheduler as _scheduler
from syncsignal import CounterIdSource, ManualClock


@pytest.fixture(autouse=True)
def clock():
    """Install a ManualClock and a CounterIdSource as process defaults."""
    saved = (_clock.get_clock(), _ids.get_id_source(), _scheduler.get_default_debounce())
    manual = ManualClock()
    _clock.set_clock(manual)
    _ids.set_id_source(CounterIdSource("local-"))
    _scheduler.set_default_debounce(0)
    yield manual
    _clock.set_clock(saved[0])
    _ids.set_id_source(saved[1])
    _scheduler.set_default_debounce(saved[2])
