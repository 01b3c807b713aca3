import random
import time

import pytest

from linetrail.indexed_log import GetLineKind
from linetrail.log import Log
from linetrail.sane_indexer import SaneIndexer
from linetrail.waypoint import Position

TEXT = b"Hello, world\n\nThis is a test.\nThis is only a test.\n\nEnd of message\n"


class BytesSource:
    def __init__(self, data: bytes, is_open: bool = False) -> None:
        self.data = bytearray(data)
        self.open = is_open

    def __len__(self) -> int:
        return len(self.data)

    def poll(self, timeout=None) -> int:
        return len(self.data)

    def is_open(self) -> bool:
        return self.open

    def read_line_at(self, offset: int) -> str:
        if offset >= len(self.data):
            return ""
        end = self.data.find(b"\n", offset)
        end = len(self.data) if end < 0 else end + 1
        return bytes(self.data[offset:end]).decode("utf-8")

    def find_lines(self, span: range):
        stop = min(span.stop, len(self.data))
        starts = [0] if span.start == 0 else []
        starts.extend(
            i + 1 for i in range(span.start, stop) if self.data[i] == ord("\n")
        )
        if stop == len(self.data) and self.data and self.data[-1] != ord("\n"):
            starts.append(stop)
        return starts


def make_test_data(words: int, lines: int, seed: int = 1) -> bytes:
    rng = random.Random(seed)
    out = []
    for _ in range(lines):
        parts = ["--40 byte header skipped on every line--"]
        parts.extend(rng.choice(("foo", "bar", "baz")) + " " for _ in range(words))
        parts.append("\n")
        out.append("".join(parts))
    return "".join(out).encode("utf-8")


def check_offsets(data: bytes, lines: int) -> None:
    log = Log(BytesSource(data))
    scanlines = iter(data.splitlines(keepends=True))
    offset = 0
    linecount = 0
    for start in log.iter_offsets():
        linecount += 1
        assert start == offset
        line = next(scanlines, None)
        if line is not None:
            offset += len(line)
    assert linecount == lines
    assert next(scanlines, None) is None
    assert next(log.info()).lines_indexed == linecount


def test_file_parse_lines_bytes():
    chunk_size = 1024 * 10
    words = 90 // 10
    size = chunk_size * 10 + chunk_size // 3
    lines = size // words
    data = make_test_data(words, lines)
    assert len(data) > chunk_size * 2
    check_offsets(data, lines)


def test_file_parse_long_lines_bytes():
    chunk_size = 1024 * 1024
    words = 80
    lines = chunk_size * 2 // words // 4
    data = make_test_data(words, lines, seed=2)
    assert len(data) > chunk_size * 2
    log = Log(BytesSource(data))
    assert sum(1 for _ in log.iter_offsets()) == lines
    check_offsets(data, lines)


def test_len_and_read_line():
    log = Log(BytesSource(TEXT))
    assert len(log) == 67
    line = log.read_line(14)
    assert line.line == "This is a test.\n"
    assert line.offset == 14
    assert log.read_line(67) is None


def test_from_indexer():
    log = Log.from_indexer(SaneIndexer(BytesSource(TEXT)))
    assert len(log) == 67
    assert [line.offset for line in log.iter_lines()] == [0, 13, 14, 30, 51, 52]


def test_reverse_iteration():
    log = Log(BytesSource(TEXT))
    it = log.iter_lines()
    assert [line.offset for line in it.rev()] == [52, 51, 30, 14, 13, 0]


def test_resolve_gaps_fills_index():
    log = Log(BytesSource(TEXT))
    assert log.has_gaps()
    pos = log.resolve_gaps(Position.start())
    assert pos.is_invalid()
    assert not log.has_gaps()
    stats = next(log.info())
    assert stats.lines_indexed == 6
    assert stats.bytes_total == 67


def test_poll_sees_growth():
    source = BytesSource(b"first\n", is_open=True)
    log = Log(source)
    assert log.is_open()
    assert [line.line for line in log.iter_lines()] == ["first\n"]
    source.data.extend(b"second\n")
    assert len(log) == 6
    assert log.poll(None) == 13
    assert len(log) == 13
    assert [line.line for line in log.iter_lines()] == ["first\n", "second\n"]


def test_is_open_reflects_source():
    assert Log(BytesSource(TEXT)).is_open() is False


def test_iter_lines_range_from_offset():
    log = Log(BytesSource(TEXT))
    lines = [line.line for line in log.iter_lines_range(30)]
    assert lines == ["This is only a test.\n", "\n", "End of message\n"]


def test_next_and_advance():
    log = Log(BytesSource(TEXT))
    get = log.next(Position.start())
    assert get.kind is GetLineKind.HIT
    assert get.line.line == "Hello, world\n"
    second = log.next(log.advance(get.pos))
    assert second.line.offset == 13
    back = log.next_back(Position.from_offset(13))
    assert back.line.offset == 0
    assert log.advance_back(back.pos).is_invalid()


def test_timeout_latches():
    log = Log(BytesSource(TEXT))
    log.set_timeout(0)
    time.sleep(0.01)
    assert log.check_timeout() is True
    get = log.next(Position.start())
    assert get.kind is GetLineKind.TIMEOUT
    assert log.timed_out() is True
    log.set_timeout(None)
    assert log.timed_out() is True
    get = log.next(Position.start())
    assert get.kind is GetLineKind.HIT
    assert log.timed_out() is False


def test_with_timeout_context():
    log = Log(BytesSource(TEXT))
    with log.with_timeout(10_000) as wrapped:
        count = sum(1 for _ in wrapped.iter_lines())
        assert wrapped.timed_out() is False
    assert count == 6
    assert log.timed_out() is False


@pytest.mark.parametrize("start,expected", [(0, 0), (5, 0), (13, 13), (20, 14)])
def test_next_from_offset_finds_containing_line(start, expected):
    log = Log(BytesSource(TEXT))
    get = log.next(Position.from_offset(start))
    assert get.kind is GetLineKind.HIT
    assert get.line.offset == expected