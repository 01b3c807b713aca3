"""Log lines, lookup results and the interface shared by indexed logs."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterator, Optional, Union

from linetrail.waypoint import IMAX, Position


@dataclass(frozen=True, order=True)
class LogLine:
    """A line of text and the byte offset where it starts."""

    line: str = ""
    offset: int = 0

    @property
    def end(self) -> int:
        """Byte offset just past the end of the line."""
        return self.offset + len(self.line.encode("utf-8"))

    def __str__(self) -> str:
        return self.line


class GetLineKind(enum.Enum):
    HIT = "hit"
    MISS = "miss"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class GetLine:
    """Result of fetching a line: found, not found, or stopped by a timeout."""

    kind: GetLineKind
    pos: Position
    line: Optional[LogLine] = None

    @staticmethod
    def hit(pos: Position, line: LogLine) -> GetLine:
        return GetLine(GetLineKind.HIT, pos, line)

    @staticmethod
    def miss(pos: Position) -> GetLine:
        return GetLine(GetLineKind.MISS, pos)

    @staticmethod
    def timeout(pos: Position) -> GetLine:
        return GetLine(GetLineKind.TIMEOUT, pos)

    def into_pos(self) -> Position:
        return self.pos


TimeLimit = Optional[Union[float, timedelta]]


class IndexedLog(abc.ABC):
    """A log whose lines can be found and walked in either direction."""

    @abc.abstractmethod
    def __len__(self) -> int:
        """Current length of the log in bytes."""

    @abc.abstractmethod
    def poll(self, timeout: Optional[float] = None) -> int:
        """Check for new data until the monotonic deadline ``timeout``; return the length."""

    @abc.abstractmethod
    def is_open(self) -> bool:
        """True while the log may still grow."""

    def seek(self, pos: int) -> Position:
        """A virtual position for ``pos`` usable on any index."""
        return Position.from_offset(pos)

    @abc.abstractmethod
    def read_line(self, offset: int) -> Optional[LogLine]:
        """The line starting at ``offset``, or None."""

    @abc.abstractmethod
    def next(self, pos: Position) -> GetLine:
        """Read the line at or after ``pos``."""

    @abc.abstractmethod
    def next_back(self, pos: Position) -> GetLine:
        """Read the line before ``pos``."""

    @abc.abstractmethod
    def advance(self, pos: Position) -> Position:
        """The waypoint after ``pos``."""

    @abc.abstractmethod
    def advance_back(self, pos: Position) -> Position:
        """The waypoint before ``pos``."""

    @abc.abstractmethod
    def resolve_gaps(self, pos: Position) -> Position:
        """Index unexplored regions; return where we stopped, or Invalid when done."""

    @abc.abstractmethod
    def has_gaps(self) -> bool:
        """True if part of the log is not yet indexed."""

    @abc.abstractmethod
    def set_timeout(self, limit: TimeLimit) -> None:
        """Bound later operations by ``limit`` seconds; None clears the bound."""

    @abc.abstractmethod
    def timed_out(self) -> bool:
        """True if the current or previous operation ran out of time."""

    @abc.abstractmethod
    def check_timeout(self) -> bool:
        """Check the clock and report whether the current operation has timed out."""

    @abc.abstractmethod
    def info(self) -> Iterator:
        """Statistics of each index involved."""

    def with_timeout(self, ms: int) -> TimeoutWrapper:
        return TimeoutWrapper(self, ms)

    def iter_offsets(self) -> LineIndexerIterator:
        return self.iter()

    def iter(self) -> LineIndexerIterator:
        return LineIndexerIterator(self)

    def iter_lines(self) -> LineIndexerDataIterator:
        return LineIndexerDataIterator(self)

    def iter_lines_range(
        self, start: Optional[int] = None, stop: Optional[int] = None
    ) -> LineIndexerDataIterator:
        """Lines overlapping bytes ``start`` (inclusive) to ``stop`` (exclusive)."""
        return LineIndexerDataIterator(self, start, stop)


class TimeoutWrapper(IndexedLog):
    """Applies a time limit to a log until closed."""

    def __init__(self, inner: IndexedLog, ms: int) -> None:
        self._inner = inner
        self._closed = False
        inner.set_timeout(timedelta(milliseconds=ms))

    def __enter__(self) -> TimeoutWrapper:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Remove the time limit from the wrapped log."""
        if not self._closed:
            self._closed = True
            self._inner.set_timeout(None)

    def __len__(self) -> int:
        return len(self._inner)

    def poll(self, timeout: Optional[float] = None) -> int:
        return self._inner.poll(timeout)

    def is_open(self) -> bool:
        return self._inner.is_open()

    def read_line(self, offset: int) -> Optional[LogLine]:
        return self._inner.read_line(offset)

    def next(self, pos: Position) -> GetLine:
        return self._inner.next(pos)

    def next_back(self, pos: Position) -> GetLine:
        return self._inner.next_back(pos)

    def advance(self, pos: Position) -> Position:
        return self._inner.advance(pos)

    def advance_back(self, pos: Position) -> Position:
        return self._inner.advance_back(pos)

    def resolve_gaps(self, pos: Position) -> Position:
        return self._inner.resolve_gaps(pos)

    def has_gaps(self) -> bool:
        return self._inner.has_gaps()

    def set_timeout(self, limit: TimeLimit) -> None:
        self._inner.set_timeout(limit)

    def timed_out(self) -> bool:
        return self._inner.timed_out()

    def check_timeout(self) -> bool:
        return self._inner.check_timeout()

    def info(self) -> Iterator:
        return self._inner.info()


def _bounds(start: Optional[int], stop: Optional[int]) -> tuple[int, int]:
    return (0 if start is None else start, IMAX if stop is None else stop)


class LineIndexerIterator:
    """Iterates over the start offsets of lines."""

    def __init__(
        self, log: IndexedLog, start: Optional[int] = None, stop: Optional[int] = None
    ) -> None:
        log.poll(None)
        self._log = log
        self._start, self._stop = _bounds(start, stop)
        self._pos = log.seek(self._start)
        self._pos_back = log.seek(self._stop)

    def __iter__(self) -> LineIndexerIterator:
        return self

    def __next__(self) -> int:
        get = self._log.next(self._pos)
        if get.kind is not GetLineKind.HIT:
            raise StopIteration
        self._pos = self._log.advance(get.pos)
        line = get.line
        if not self._start <= line.offset < self._stop:
            raise StopIteration
        self._start = line.end
        return line.offset

    def next_back(self) -> Optional[int]:
        """The offset of the previous line from the back, or None."""
        get = self._log.next_back(self._pos_back)
        if get.kind is not GetLineKind.HIT:
            return None
        self._pos_back = self._log.advance_back(get.pos)
        line = get.line
        if not self._start <= line.offset < self._stop:
            return None
        self._stop = line.offset
        return line.offset

    def rev(self) -> Iterator[int]:
        """Yield the remaining offsets from the back."""
        while (item := self.next_back()) is not None:
            yield item


class LineIndexerDataIterator:
    """Iterates over lines that overlap a byte range."""

    def __init__(
        self, log: IndexedLog, start: Optional[int] = None, stop: Optional[int] = None
    ) -> None:
        log.poll(None)
        self._log = log
        self._start, self._stop = _bounds(start, stop)
        self._pos = log.seek(self._start)
        self._pos_back = log.seek(self._stop)

    def __iter__(self) -> LineIndexerDataIterator:
        return self

    def _in_range(self, line: LogLine) -> bool:
        return line.offset < self._stop and self._start < line.end

    def __next__(self) -> LogLine:
        get = self._log.next(self._pos)
        if get.kind is not GetLineKind.HIT or not self._in_range(get.line):
            raise StopIteration
        self._start = get.line.end
        self._pos = self._log.advance(get.pos)
        return get.line

    def next_back(self) -> Optional[LogLine]:
        """The previous line from the back, or None."""
        get = self._log.next_back(self._pos_back)
        if get.kind is not GetLineKind.HIT or not self._in_range(get.line):
            return None
        self._stop = get.line.offset
        self._pos_back = self._log.advance_back(get.pos)
        return get.line

    def rev(self) -> Iterator[LogLine]:
        """Yield the remaining lines from the back."""
        while (item := self.next_back()) is not None:
            yield item