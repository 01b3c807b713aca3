"""Discover and walk the lines of a log source, memoizing line offsets."""

from __future__ import annotations

from collections import OrderedDict
from itertools import pairwise
from typing import Iterator, Optional, Protocol, Sequence

from linetrail.indexed_log import GetLine, GetLineKind, IndexedLog, LogLine, TimeLimit
from linetrail.sane_index import IndexStats, SaneIndex
from linetrail.timeout import Timeout
from linetrail.waypoint import IMAX, Position

CHUNK_SIZE = 64 * 1024
_CACHE_SIZE = 1000


class LogSource(Protocol):
    """What the indexer needs from the underlying data."""

    def __len__(self) -> int: ...

    def poll(self, timeout: Optional[float]) -> int: ...

    def is_open(self) -> bool: ...

    def read_line_at(self, offset: int) -> str:
        """Text from ``offset`` through the end of its line; empty at EOF."""

    def find_lines(self, span: range) -> Sequence[int]:
        """Ascending line start offsets in ``span``; consecutive pairs bound whole lines."""


class SaneIndexer(IndexedLog):
    """An indexed log over a source, mapping line offsets as they are found."""

    def __init__(self, source: LogSource) -> None:
        self._source = source
        self._index = SaneIndex("File", len(source))
        self._timeout = Timeout()
        self._cache: OrderedDict[int, LogLine] = OrderedDict()

    def __repr__(self) -> str:
        return "SaneIndexer()"

    # Stream

    def __len__(self) -> int:
        return self._index.stats.bytes_total

    def poll(self, timeout: Optional[float] = None) -> int:
        self._index.stats.bytes_total = self._source.poll(timeout)
        return self._index.stats.bytes_total

    def is_open(self) -> bool:
        return self._source.is_open()

    # Timeouts

    def set_timeout(self, limit: TimeLimit) -> None:
        self._timeout.set(limit)

    def timed_out(self) -> bool:
        return self._timeout.timed_out() or self._timeout.prev_timed_out()

    def check_timeout(self) -> bool:
        return self._timeout.is_timed_out()

    # Reading

    def read_line(self, offset: int) -> Optional[LogLine]:
        """The line starting at ``offset``, or None at end of file."""
        cached = self._cache.get(offset)
        if cached is not None:
            self._cache.move_to_end(offset)
            return cached
        text = self._source.read_line_at(offset)
        if not text:
            return None
        line = LogLine(text, offset)
        self._cache[offset] = line
        if len(self._cache) > _CACHE_SIZE:
            self._cache.popitem(last=False)
        return line

    def _get_line_memo(self, pos: Position) -> GetLine:
        """Read the line at ``pos`` and record it in the index."""
        offset = pos.least_offset()
        if self.check_timeout():
            return GetLine.timeout(pos)
        if offset >= len(self):
            return GetLine.miss(Position.invalid())
        line = self.read_line(offset)
        pos = pos.resolve(self._index)
        if pos.is_unmapped():
            if line is None:
                raise OSError(f"read error at offset {offset}")
            pos = self._index.insert_one(pos, range(line.offset, line.end))
        return GetLine.hit(pos, line if line is not None else LogLine())

    def _resolve_lines(self, pos: Position, span: range) -> GetLine:
        """Find line breaks in the gap at ``pos`` within ``span`` and index them.

        On a hit the returned position points past the last line indexed.
        """
        offset = pos.least_offset()
        if self.check_timeout():
            return GetLine.timeout(pos)
        if offset >= len(self):
            return GetLine.miss(Position.invalid())
        pos = pos.resolve(self._index)
        if pos.is_unmapped():
            region = pos.region()
            scan = range(max(region.start, span.start), min(region.stop, span.stop))
            if not scan:
                raise ValueError("scan range does not overlap the gap")
            for start, stop in pairwise(self._source.find_lines(scan)):
                pos = self._index.insert_one(pos, range(start, stop))
                pos = pos.advance(self._index)
        return GetLine.hit(pos, LogLine())

    def _scan_lines_backwards(self, pos: Position, offset: int) -> GetLine:
        """Scan ever larger chunks of the gap at ``pos`` for the line holding ``offset``."""
        chunk_delta = CHUNK_SIZE
        # Start one byte early so the previous line's end serves as a baseline.
        start = max(pos.least_offset() - 1, 0)
        while True:
            try_offset = max(offset - chunk_delta, start)
            get = self._resolve_lines(pos, range(try_offset, IMAX))
            if get.kind is not GetLineKind.HIT:
                return get
            found = Position.from_offset(offset).resolve(self._index)
            if not found.is_invalid() and found.most_offset() >= offset:
                return self._get_line_memo(found)
            if found.least_offset() == start or try_offset == start or chunk_delta > offset:
                raise RuntimeError("Inconsistent index? Gap has no line breaks.")
            chunk_delta *= 2

    # Navigation

    def resolve_gaps(self, pos: Position) -> Position:
        pos = self._index.seek_gap(pos)
        while pos.is_unmapped():
            get = self._resolve_lines(pos, pos.region())
            if get.kind is not GetLineKind.HIT:
                return get.pos
            pos = self._index.seek_gap(get.pos)
        return Position.invalid()

    def next(self, pos: Position) -> GetLine:
        self._timeout.active()
        offset = min(pos.least_offset(), len(self))
        pos = pos.resolve(self._index)
        if offset >= len(self):
            return GetLine.miss(Position.invalid())
        if pos.is_mapped() or offset == pos.least_offset():
            return self._get_line_memo(pos)
        if pos.is_unmapped():
            # Reading from the middle of a gap: find where the line starts.
            return self._scan_lines_backwards(pos, offset)
        return GetLine.miss(pos)

    def next_back(self, pos: Position) -> GetLine:
        self._timeout.active()
        offset = min(pos.most_offset(), len(self))
        if offset == 0:
            return GetLine.miss(Position.invalid())
        pos = pos.resolve_back(self._index)
        if pos.least_offset() >= len(self):
            pos = pos.advance_back(self._index)
        if pos.is_invalid():
            return GetLine.miss(pos)
        if pos.is_mapped():
            return self._get_line_memo(pos)
        # The end position is exclusive.
        return self._scan_lines_backwards(pos, offset - 1)

    def advance(self, pos: Position) -> Position:
        return pos.next(self._index)

    def advance_back(self, pos: Position) -> Position:
        return pos.next_back(self._index)

    def info(self) -> Iterator[IndexStats]:
        yield self._index.stats

    def has_gaps(self) -> bool:
        stats = self._index.stats
        return stats.bytes_indexed < stats.bytes_total