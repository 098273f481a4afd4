"""
Clock providers.

The only non-pure dependency of the engine is "today". It is passed around as
a zero-argument callable so tests can pin it.
"""

from datetime import date
from typing import Callable

Clock = Callable[[], date]


def system_clock() -> date:
    """Return the current local date."""
    return date.today()


def fixed_clock(day: date) -> Clock:
    """Build a clock that always returns the given day."""

    def _clock() -> date:
        return day

    return _clock
