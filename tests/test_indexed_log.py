import time

import pytest

from linetrail.indexed_log import (
    GetLine,
    GetLineKind,
    IndexedLog,
    LineIndexerDataIterator,
    LineIndexerIterator,
    LogLine,
)
from linetrail.sane_indexer import SaneIndexer
from linetrail.waypoint import Position, Waypoint

TEXT = "Hello, world\n\nThis is a test.\nThis is only a test.\n\nEnd of message\n"
LINES = TEXT.splitlines(keepends=True)


class _MemorySource:
    def __init__(self, text):
        self.data = text.encode()

    def __len__(self):
        return len(self.data)

    def poll(self, timeout=None):
        return len(self.data)

    def is_open(self):
        return False

    def read_line_at(self, offset):
        if offset >= len(self.data):
            return ""
        end = self.data.find(b"\n", offset)
        end = len(self.data) if end == -1 else end + 1
        return self.data[offset:end].decode()

    def find_lines(self, span):
        stop = min(span.stop, len(self.data))
        starts = []
        if span.start == 0 or self.data[span.start - 1:span.start] == b"\n":
            starts.append(span.start)
        found = self.data.find(b"\n", span.start, stop)
        while found != -1:
            starts.append(found + 1)
            found = self.data.find(b"\n", found + 1, stop)
        if stop == len(self.data) and self.data and (not starts or starts[-1] != stop):
            starts.append(stop)
        return starts


def make_log(text=TEXT):
    return SaneIndexer(_MemorySource(text))


def test_logline_str_is_its_text():
    assert str(LogLine("abc\n", 5)) == "abc\n"


def test_logline_end_counts_bytes():
    line = LogLine("h\u00e9llo\n", 10)
    assert line.end == 10 + len("h\u00e9llo\n".encode("utf-8"))


def test_logline_default_and_ordering():
    assert LogLine() == LogLine("", 0)
    assert sorted([LogLine("b", 0), LogLine("a", 5)]) == [LogLine("a", 5), LogLine("b", 0)]


@pytest.mark.parametrize(
    "get",
    [
        GetLine.hit(Position.from_offset(3), LogLine("x", 3)),
        GetLine.miss(Position.from_offset(3)),
        GetLine.timeout(Position.from_offset(3)),
    ],
)
def test_getline_into_pos(get):
    assert get.into_pos() == Position.from_offset(3)


def test_getline_kinds():
    assert GetLine.hit(Position.invalid(), LogLine()).kind is GetLineKind.HIT
    assert GetLine.miss(Position.invalid()).kind is GetLineKind.MISS
    assert GetLine.timeout(Position.invalid()).line is None


def test_indexed_log_is_abstract():
    with pytest.raises(TypeError):
        IndexedLog()


def test_seek_returns_virtual_offset():
    assert make_log().seek(42) == Position.from_offset(42)


def test_iter_offsets():
    assert list(make_log().iter_offsets()) == [0, 13, 14, 30, 51, 52]


def test_iter_offsets_reversed_matches_forward():
    forward = list(make_log().iter_offsets())
    assert list(make_log().iter().rev()) == forward[::-1]


def test_iter_lines_reassemble_text():
    lines = list(make_log().iter_lines())
    assert [line.line for line in lines] == LINES
    assert "".join(map(str, lines)) == TEXT


def test_iter_lines_are_contiguous():
    lines = list(make_log().iter_lines())
    assert all(a.end == b.offset for a, b in zip(lines, lines[1:]))


def test_iter_lines_rev():
    assert [line.line for line in make_log().iter_lines().rev()] == LINES[::-1]


def test_forward_then_backward_do_not_overlap():
    it = make_log().iter_lines()
    first = [next(it), next(it)]
    rest = list(it.rev())
    assert len(rest) == len(LINES) - 2
    assert [line.line for line in first] + [line.line for line in reversed(rest)] == LINES


def test_range_beyond_end_is_empty():
    assert list(make_log().iter_lines_range(100)) == []


def test_range_stop_past_end_reads_back():
    it = make_log().iter_lines_range(stop=100)
    assert it.next_back() == LogLine(LINES[-1], 52)


def test_range_stop_in_first_line():
    it = make_log().iter_lines_range(stop=5)
    assert it.next_back() == LogLine(LINES[0], 0)
    assert it.next_back() is None


def test_range_yields_overlapping_lines():
    lines = make_log().iter_lines_range(14, 31)
    assert [line.line for line in lines] == LINES[2:4]


def test_offset_iterator_range_start():
    assert list(LineIndexerIterator(make_log(), 13)) == [13, 14, 30, 51, 52]


def test_offset_iterator_range_back():
    assert list(LineIndexerIterator(make_log(), None, 30).rev()) == [14, 13, 0]


def test_data_iterator_direct():
    lines = list(LineIndexerDataIterator(make_log(), 51))
    assert [line.line for line in lines] == LINES[4:]


def test_with_timeout_latches_and_clears():
    log = make_log()
    with log.with_timeout(0) as wrapped:
        time.sleep(0.01)
        assert wrapped.check_timeout() is True
        assert wrapped.next(Position.start()).kind is GetLineKind.TIMEOUT
    assert log.timed_out() is True
    get = log.next(Position.start())
    assert get.kind is GetLineKind.HIT
    assert log.timed_out() is False


def test_timeout_wrapper_delegates():
    log = make_log()
    with log.with_timeout(60_000) as wrapped:
        assert list(wrapped.iter_offsets()) == [0, 13, 14, 30, 51, 52]
        assert len(wrapped) == len(TEXT)
        assert wrapped.next(Position.start()).pos.waypoint == Waypoint(0, 13, True)
    assert log.timed_out() is False


def test_info_names_the_index():
    assert [stats.name for stats in make_log().info()] == ["File"]