"""Recognise timestamps at the start of log lines."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from typing import List, Optional, Pattern

_MONTHS = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

_DEFAULT_PATTERNS = [
    r"^(?P<month>Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec) (?P<day>[ 0-9]{2}) "
    r"(?P<clock>[0-2][0-9]:[0-5][0-9]:[0-6][0-9]\.\d{3})\b",
]

_UNSIGNED = re.compile(r"\+?[0-9]+")


def _parse_unsigned(text: str) -> Optional[int]:
    if _UNSIGNED.fullmatch(text):
        return int(text)
    return None


def _group(match: re.Match, name: str) -> Optional[str]:
    if name not in match.re.groupindex:
        return None
    return match.group(name)


def parse_time(line: str, pattern: Pattern[str]) -> Optional[datetime]:
    """Extract a timestamp from ``line`` using the named groups of ``pattern``.

    The pattern needs ``month``, ``day`` and ``clock`` groups; the year is
    fixed at 2000.  Returns None when the line does not match or the date is
    impossible.  Raises ValueError for a clock that is not a valid time.
    """
    match = pattern.search(line)
    if match is None:
        return None

    month_text = _group(match, "month")
    if month_text is None:
        return None
    month_text = month_text.strip()
    month = _parse_unsigned(month_text)
    if month is None:
        found = _MONTHS.find(month_text)
        month = max(found, 0) // 4 + 1

    day_text = _group(match, "day")
    if day_text is None:
        return None
    day = _parse_unsigned(day_text.strip())
    if day is None:
        return None

    clock_text = _group(match, "clock")
    if clock_text is None:
        return None
    clock = datetime.strptime(clock_text, "%H:%M:%S.%f").time()

    try:
        return datetime(2000, month, day, clock.hour, clock.minute, clock.second,
                        clock.microsecond)
    except ValueError:
        return None


class TimeStamper:
    """Tries a list of timestamp patterns on lines, counting which ones match."""

    def __init__(self) -> None:
        self.patterns: List[Pattern[str]] = []
        self.matches: List[int] = []
        self.unmatched = 0
        for pattern in _DEFAULT_PATTERNS:
            self.push(pattern)

    def push(self, matcher: str) -> None:
        """Add a pattern; an invalid one is reported on stderr and skipped."""
        try:
            compiled = re.compile(matcher)
        except re.error as err:
            print(f"Error parsing timestamp pattern: {err}", file=sys.stderr)
            return
        self.patterns.append(compiled)
        self.matches.append(0)
        self.unmatched = 0

    def time(self, line: str) -> Optional[datetime]:
        """Timestamp of ``line`` from the first pattern that yields one."""
        for i, pattern in enumerate(self.patterns):
            stamp = parse_time(line, pattern)
            if stamp is not None:
                self.matches[i] += 1
                return stamp
        self.unmatched += 1
        return None