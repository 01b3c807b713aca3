"""Walk the lines of an indexed log from either end."""

from __future__ import annotations

from typing import Iterator, Optional

from linetrail.indexed_log import GetLineKind, IndexedLog, LogLine
from linetrail.waypoint import Position


class SaneLines:
    """Iterates over every line of an indexed log, forwards or backwards.

    ``pos`` and ``pos_back`` track where the forward and backward walks
    continue; they may be set to start a walk somewhere else.
    """

    def __init__(self, indexer: IndexedLog) -> None:
        self.indexer = indexer
        self.pos = Position.start()
        self.pos_back = Position.end()

    def __iter__(self) -> SaneLines:
        return self

    def __next__(self) -> LogLine:
        get = self.indexer.next(self.pos)
        if get.kind is not GetLineKind.HIT:
            raise StopIteration
        self.pos = self.indexer.advance(get.pos)
        return get.line

    def next_back(self) -> Optional[LogLine]:
        """The previous line from the back, or None when there are no more."""
        get = self.indexer.next_back(self.pos_back)
        if get.kind is not GetLineKind.HIT:
            return None
        self.pos_back = self.indexer.advance_back(get.pos)
        return get.line

    def rev(self) -> Iterator[LogLine]:
        """Yield the remaining lines from the back."""
        while (line := self.next_back()) is not None:
            yield line