"""A log built over a line source, with its lines indexed as they are found."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from linetrail.indexed_log import GetLine, IndexedLog, LogLine, TimeLimit
from linetrail.sane_index import IndexStats
from linetrail.sane_indexer import LogSource, SaneIndexer
from linetrail.time_stamper import TimeStamper
from linetrail.waypoint import Position

logger = logging.getLogger(__name__)


class Log(IndexedLog):
    """An indexed log over a source of text."""

    def __init__(self, source: LogSource) -> None:
        logger.debug("Instantiate log from source")
        self._setup(SaneIndexer(source))

    def _setup(self, indexer: SaneIndexer) -> None:
        self._indexer = indexer
        self.timestamper = TimeStamper()
        self._cached_len = len(indexer)

    @staticmethod
    def from_indexer(indexer: SaneIndexer) -> Log:
        """A log over an existing indexer."""
        log = Log.__new__(Log)
        log._setup(indexer)
        return log

    # Stream

    def __len__(self) -> int:
        return self._cached_len

    def poll(self, timeout: Optional[float] = None) -> int:
        """Check for new data; returns the log length."""
        self._cached_len = self._indexer.poll(timeout)
        return self._cached_len

    def is_open(self) -> bool:
        return self._indexer.is_open()

    # Navigation

    def next(self, pos: Position) -> GetLine:
        return self._indexer.next(pos)

    def next_back(self, pos: Position) -> GetLine:
        return self._indexer.next_back(pos)

    def advance(self, pos: Position) -> Position:
        return self._indexer.advance(pos)

    def advance_back(self, pos: Position) -> Position:
        return self._indexer.advance_back(pos)

    def info(self) -> Iterator[IndexStats]:
        return self._indexer.info()

    def read_line(self, offset: int) -> Optional[LogLine]:
        return self._indexer.read_line(offset)

    def set_timeout(self, limit: TimeLimit) -> None:
        self._indexer.set_timeout(limit)

    def timed_out(self) -> bool:
        return self._indexer.timed_out()

    def check_timeout(self) -> bool:
        return self._indexer.check_timeout()

    def resolve_gaps(self, pos: Position) -> Position:
        return self._indexer.resolve_gaps(pos)

    def has_gaps(self) -> bool:
        return self._indexer.has_gaps()