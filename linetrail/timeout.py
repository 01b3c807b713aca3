"""A latching timeout used to bound long-running index operations."""

from __future__ import annotations

import enum
import time
from datetime import timedelta
from typing import Optional, Union


class _State(enum.Enum):
    FUTURE = "future"
    TIMED_OUT = "timed_out"
    INACTIVE = "inactive"


class Timeout:
    """Tracks a deadline and latches once it has passed.

    While inactive it remembers whether the previous operation timed out.
    """

    def __init__(self) -> None:
        self._state = _State.INACTIVE
        self._deadline = 0.0
        self._previous = False

    def set(self, limit: Optional[Union[float, timedelta]]) -> None:
        """Start a deadline ``limit`` seconds from now, or deactivate with None."""
        if limit is None:
            self._previous = self.timed_out()
            self._state = _State.INACTIVE
            return
        if isinstance(limit, timedelta):
            limit = limit.total_seconds()
        self._deadline = time.monotonic() + limit
        self._state = _State.FUTURE

    def is_timed_out(self) -> bool:
        """Check the clock, latching the timed-out state once the deadline passes."""
        if self._state is _State.FUTURE and time.monotonic() > self._deadline:
            self._state = _State.TIMED_OUT
        return self.timed_out()

    def timed_out(self) -> bool:
        return self._state is _State.TIMED_OUT

    def prev_timed_out(self) -> bool:
        return self._state is _State.INACTIVE and self._previous

    def active(self) -> None:
        """Forget the previous timeout when a new action starts."""
        if self._state is _State.INACTIVE:
            self._previous = False