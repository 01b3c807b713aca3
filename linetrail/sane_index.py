"""A sparse map of the explored regions of a file.

The index starts out as one unmapped region covering the whole file.  As
lines are discovered they are inserted as mapped waypoints, shrinking or
splitting the unmapped regions around them.  Regions known to hold no line
starts can be erased.

Each row of the index holds either a single unmapped waypoint or one or more
mapped waypoints in ascending order.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from linetrail.waypoint import IMAX, IndexIndex, Position, Waypoint


@dataclass
class IndexStats:
    """Counters describing how much of a file an index has explored."""

    name: str = ""
    bytes_total: int = 0
    bytes_indexed: int = field(default=0, init=False)
    lines_indexed: int = field(default=0, init=False)

    def reset(self) -> None:
        self.bytes_indexed = 0
        self.lines_indexed = 0


def _fresh_rows() -> List[List[Waypoint]]:
    return [[Waypoint(0, IMAX, False)]]


class SaneIndex:
    """Rows of waypoints describing mapped lines and unmapped gaps of a file."""

    def __init__(self, name: str = "", bytes_total: int = 0) -> None:
        self.index: List[List[Waypoint]] = _fresh_rows()
        self.stats = IndexStats(name, bytes_total)

    def reset(self) -> None:
        """Forget everything learned; the whole file is unmapped again."""
        self.stats.reset()
        self.index = _fresh_rows()

    # Slot navigation

    def index_prev(self, idx: IndexIndex) -> Optional[IndexIndex]:
        i, j = idx
        if j > 0:
            return (i, j - 1)
        if i > 0:
            return (i - 1, len(self.index[i - 1]) - 1)
        return None

    def index_next(self, idx: IndexIndex) -> Optional[IndexIndex]:
        i, j = idx
        if j + 1 < len(self.index[i]):
            return (i, j + 1)
        if i + 1 < len(self.index):
            return (i + 1, 0)
        return None

    def index_valid(self, idx: IndexIndex) -> bool:
        i, j = idx
        return 0 <= i < len(self.index) and 0 <= j < len(self.index[i])

    def value(self, idx: IndexIndex) -> Waypoint:
        i, j = idx
        return self.index[i][j]

    # Searching

    def seek_gap(self, pos: Position) -> Position:
        """The first unmapped region at or after ``pos``, or End if none remain."""
        pos = pos.resolve(self)
        if pos.ndx is not None:
            first_row = pos.ndx[0]
            for i, row in enumerate(self.index[first_row:], start=first_row):
                if not row[0].is_mapped():
                    return Position.existing((i, 0), row[0])
        return Position.end()

    def search(self, offset: int) -> IndexIndex:
        """Slot holding ``offset``, or where it would be inserted."""
        if not self.index:
            return (0, 0)

        i = bisect_left(self.index, offset, key=lambda row: row[0].cmp_offset())
        if i < len(self.index) and self.index[i][0].cmp_offset() == offset:
            ndx = (i, 0)
        else:
            i = max(i - 1, 0)
            row = self.index[i]
            j = bisect_left(row, offset, key=lambda w: w.cmp_offset())
            if j < len(row) and row[j].cmp_offset() == offset:
                ndx = (i, j)
            elif j == len(row):
                ndx = (i + 1, 0) if i + 1 < len(self.index) else (i, j - 1)
            else:
                ndx = (i, j)

        prev = self.index_prev(ndx)
        if prev is not None and self.value(prev).contains(offset):
            return prev
        if self.index_valid(ndx) and offset > self.value(ndx).cmp_offset():
            nxt = self.index_next(ndx)
            if nxt is not None:
                return nxt
        return ndx

    def next(self, pos: Position) -> Position:
        return pos.next(self)

    def next_back(self, pos: Position) -> Position:
        return pos.next_back(self)

    def find_gap(self, gap: range) -> Position:
        """Position of the unmapped region that holds ``gap``."""
        ndx = self.search(gap.start)
        if self.value(ndx).is_mapped():
            nxt = self.index_next(ndx)
            if nxt is not None:
                ndx = nxt
        else:
            prev = self.index_prev(ndx)
            if prev is not None and self.value(prev).contains(gap.start):
                ndx = prev
        if not self.index_valid(ndx):
            raise ValueError(f"no gap found for {gap.start}..{gap.stop}")
        return Position.existing(ndx, self.value(ndx))

    # Editing

    def _resolve_gap_at(self, pos: Position, gap: range) -> int:
        """Remove ``gap`` from the unmapped waypoint at ``pos``.

        Returns the row where a new waypoint can go: the remainder of the gap,
        the second half of a split gap, or an emptied row.
        """
        if pos.ndx is None or pos.waypoint is None:
            raise ValueError("can only resolve gaps at unmapped positions")
        unmapped = pos.waypoint
        if unmapped.is_mapped():
            raise ValueError("can only resolve gaps at unmapped positions")
        if unmapped.end_offset() < gap.stop or unmapped.cmp_offset() > gap.start:
            raise ValueError("gap lies outside the unmapped region")
        i, j = pos.ndx
        if j != 0 or len(self.index[i]) != 1:
            raise ValueError("unmapped regions should be in their own row")

        left, middle = unmapped.split_at(gap.start)
        if middle is None:
            raise ValueError("gap does not overlap the unmapped region")
        _, right = middle.split_at(gap.stop)

        if left is None and right is None:
            self.index[i].clear()
            return i
        if left is not None and right is not None:
            self.index.insert(i, [left])
            self.index[i + 1][0] = right
            return i + 1
        self.index[i][0] = left if left is not None else right
        return i

    def _clear_gap(self, pos: Position, span: range) -> int:
        pos = pos.resolve(self)
        region = pos.region()
        start = max(region.start, span.start)
        stop = min(region.stop, span.stop)
        if stop <= start:
            raise ValueError(
                f"range {span.start}..{span.stop} does not overlap a gap at {pos}"
            )
        self.stats.bytes_indexed += stop - start
        return self._resolve_gap_at(pos, range(start, stop))

    def insert(self, span: range) -> Position:
        """Insert a mapped line covering ``span``, which must lie in a gap."""
        return self.insert_one(self.find_gap(span), span)

    def erase(self, span: range) -> Position:
        """Mark ``span`` as explored with no lines starting in it."""
        return self.erase_gap(self.find_gap(span), span)

    def erase_gap(self, pos: Position, span: range) -> Position:
        """Remove ``span`` from the gap at ``pos``.

        Returns the remaining gap, the row after the removed gap, or End.
        """
        row = self._clear_gap(pos, span)
        if not self.index[row]:
            del self.index[row]
        if row == len(self.index):
            return Position.end()
        return Position.existing((row, 0), self.index[row][0])

    def insert_one(self, pos: Position, span: range) -> Position:
        """Insert a mapped line for ``span`` in the gap at ``pos``; returns its position."""
        row = self._clear_gap(pos, span)
        self.stats.lines_indexed += 1

        if self.index[row]:
            first = self.index[row][0]
            if first.is_mapped():
                raise ValueError("expected the remainder of a gap")
            if span.start < first.cmp_offset():
                other = max(row - 1, 0)
            else:
                if span.start < first.end_offset():
                    raise ValueError("new line overlaps the remaining gap")
                other = row + 1
            if (
                row == other
                or other >= len(self.index)
                or not self.index[other][0].is_mapped()
            ):
                row = max(row, other)
                self.index.insert(row, [])
            else:
                row = other

        waypoint = Waypoint(span.start, span.stop, True)
        cells = self.index[row]
        if cells and cells[0] < waypoint:
            if not cells[-1] < waypoint:
                raise ValueError("waypoints must be appended in order")
            cells.append(waypoint)
            col = len(cells) - 1
        else:
            cells.insert(0, waypoint)
            col = 0
        return Position.existing((row, col), waypoint)

    def __iter__(self) -> Iterator[Waypoint]:
        pos = Position.start().resolve(self)
        while pos.waypoint is not None:
            yield pos.waypoint
            pos = pos.next(self)