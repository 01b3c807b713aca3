"""Waypoints and positions used to navigate a sparse index of line offsets."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

#: Largest offset; stands for "unbounded" at the end of a region.
IMAX = 2**64 - 1

IndexIndex = Tuple[int, int]


@dataclass(frozen=True)
class Waypoint:
    """A region of a file that is either a known line (mapped) or uncharted (unmapped).

    For a mapped waypoint the region is the line itself.  For an unmapped one
    it is the range of bytes still to be searched for line breaks.
    """

    start: int
    end: int
    mapped: bool

    def region(self) -> range:
        return range(self.start, self.end)

    def cmp_offset(self) -> int:
        """Offset used for sorting: the start of the region."""
        return self.start

    def end_offset(self) -> int:
        return self.end

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def is_mapped(self) -> bool:
        return self.mapped

    def split_at(self, offset: int) -> Tuple[Optional[Waypoint], Optional[Waypoint]]:
        """Split an unmapped region at ``offset`` into its left and right parts."""
        if self.mapped:
            raise ValueError("only unmapped waypoints can be split")
        left = (
            Waypoint(self.start, min(offset, self.end), False)
            if self.start < offset
            else None
        )
        right = (
            Waypoint(max(offset, self.start), self.end, False)
            if self.end > offset
            else None
        )
        return left, right

    def _cmp(self, other: Waypoint) -> int:
        if self.start != other.start:
            return -1 if self.start < other.start else 1
        # Same start: mapped sorts before unmapped; unmapped ones by their end.
        if self.mapped and other.mapped:
            return 0
        if self.mapped:
            return -1
        if other.mapped:
            return 1
        return (self.end > other.end) - (self.end < other.end)

    def __lt__(self, other: Waypoint) -> bool:
        return self._cmp(other) < 0

    def __le__(self, other: Waypoint) -> bool:
        return self._cmp(other) <= 0

    def __gt__(self, other: Waypoint) -> bool:
        return self._cmp(other) > 0

    def __ge__(self, other: Waypoint) -> bool:
        return self._cmp(other) >= 0

    def __str__(self) -> str:
        kind = "Mapped" if self.mapped else "Unmapped"
        return f"{kind}({self.start}..{self.end})"


class VirtualKind(enum.Enum):
    START = "start"
    END = "end"
    INVALID = "invalid"
    OFFSET = "offset"


@dataclass(frozen=True)
class VirtualPosition:
    """A position not yet tied to a waypoint in an index."""

    kind: VirtualKind
    value: int = 0

    def offset(self) -> Optional[int]:
        if self.kind is VirtualKind.OFFSET:
            return self.value
        if self.kind is VirtualKind.START:
            return 0
        if self.kind is VirtualKind.END:
            return IMAX
        return None

    def __str__(self) -> str:
        if self.kind is VirtualKind.OFFSET:
            return f"Offset({self.value})"
        return self.kind.name.capitalize()


@dataclass(frozen=True)
class Position:
    """Either a virtual position or an existing waypoint at an index slot."""

    virtual: Optional[VirtualPosition] = None
    ndx: Optional[IndexIndex] = None
    waypoint: Optional[Waypoint] = None

    def __post_init__(self) -> None:
        if self.virtual is None:
            if self.ndx is None or self.waypoint is None:
                raise ValueError("an existing position needs an index and a waypoint")
        elif self.ndx is not None or self.waypoint is not None:
            raise ValueError("a virtual position has no index or waypoint")

    # Constructors

    @staticmethod
    def invalid() -> Position:
        return Position(VirtualPosition(VirtualKind.INVALID))

    @staticmethod
    def from_offset(offset: int) -> Position:
        return Position(VirtualPosition(VirtualKind.OFFSET, offset))

    @staticmethod
    def start() -> Position:
        return Position(VirtualPosition(VirtualKind.START))

    @staticmethod
    def end() -> Position:
        return Position(VirtualPosition(VirtualKind.END))

    @staticmethod
    def existing(ndx: IndexIndex, waypoint: Waypoint) -> Position:
        return Position(None, tuple(ndx), waypoint)

    @staticmethod
    def at(ndx: IndexIndex, index) -> Position:
        """Position of slot ``ndx`` in ``index``; End just past the last row."""
        i, j = ndx
        rows = index.index
        if i == len(rows) and j == 0:
            return Position.end()
        if i >= len(rows) or j >= len(rows[i]):
            return Position.invalid()
        return Position.existing(ndx, index.value(ndx))

    def __str__(self) -> str:
        if self.virtual is not None:
            return f"Virtual({self.virtual})"
        return f"Existing({self.ndx}, {self.waypoint})"

    # Queries

    def is_invalid(self) -> bool:
        return self.virtual is not None and self.virtual.kind is VirtualKind.INVALID

    def is_unmapped(self) -> bool:
        return self.waypoint is not None and not self.waypoint.mapped

    def is_mapped(self) -> bool:
        return self.waypoint is not None and self.waypoint.mapped

    def is_virtual(self) -> bool:
        return self.virtual is not None

    def region(self) -> range:
        if self.waypoint is None:
            raise ValueError("no range on a virtual position")
        return self.waypoint.region()

    def moved(self, index) -> bool:
        """True if the waypoint no longer sits at its recorded slot."""
        if self.waypoint is None:
            return False
        return not index.index_valid(self.ndx) or index.value(self.ndx) != self.waypoint

    def is_start_of_index(self) -> bool:
        return self.ndx == (0, 0)

    def offset(self) -> Optional[int]:
        """Start of the line if this points to a mapped line, else None."""
        return self.least_offset() if self.is_mapped() else None

    def least_offset(self) -> int:
        if self.virtual is not None:
            offset = self.virtual.offset()
            return IMAX if offset is None else offset
        return self.waypoint.cmp_offset()

    def most_offset(self) -> int:
        if self.virtual is not None:
            offset = self.virtual.offset()
            return 0 if offset is None else offset
        return self.waypoint.end_offset()

    # Navigation

    def resolve(self, index) -> Position:
        """Resolve to an existing waypoint in ``index``, or Invalid."""
        if self.virtual is not None:
            offset = self.virtual.offset()
            if offset is None:
                return Position.invalid()
            i = index.search(offset)
            if index.index_valid(i):
                return Position.existing(i, index.value(i))
            return Position.invalid()
        if self.moved(index):
            logger.info("Waypoint moved; searching new location: %s", self)
            return Position.from_offset(self.least_offset()).resolve(index)
        return self

    def resolve_back(self, index) -> Position:
        """Resolve backwards; a virtual offset is exclusive."""
        if self.virtual is not None:
            offset = self.virtual.offset()
            if offset is None:
                return Position.invalid()
            i = index.search(offset)
            if not index.index_valid(i) or offset <= index.value(i).cmp_offset():
                prev = index.index_prev(i)
                if prev is not None:
                    i = prev
            if index.index_valid(i):
                return Position.existing(i, index.value(i))
            return Position.invalid()
        if self.moved(index):
            logger.info("Waypoint moved; searching new location: %s", self)
            return Position.from_offset(self.least_offset()).resolve_back(index)
        return self

    def advance(self, index) -> Position:
        """The waypoint after this one, or Invalid."""
        if self.ndx is None:
            return Position.invalid()
        nxt = index.index_next(self.ndx)
        if nxt is None:
            return Position.invalid()
        return Position.existing(nxt, index.value(nxt))

    def advance_back(self, index) -> Position:
        """The waypoint before this one, or Invalid."""
        if self.ndx is None:
            return Position.invalid()
        prev = index.index_prev(self.ndx)
        if prev is None:
            return Position.invalid()
        return Position.existing(prev, index.value(prev))

    def next(self, index) -> Position:
        return self.resolve(index).advance(index)

    def next_back(self, index) -> Position:
        return self.resolve_back(index).advance_back(index)