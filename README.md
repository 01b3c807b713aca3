# linetrail

Lazily indexed, bidirectional access to the lines of a log.

linetrail does not read a whole log up front. It keeps a sparse map of the
regions it has explored. The map holds *mapped* waypoints, which are known
lines, and *unmapped* gaps, which are bytes not yet scanned. Lines are found
on demand: forwards from the start, backwards from the end, or from any byte
offset. Each line found is recorded in the map, so it is not searched for
again.

## Installing

```
pip install .
```

The tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Modules

- `linetrail.waypoint`: `Waypoint` (a mapped line or an unmapped gap),
  `VirtualPosition` / `VirtualKind`, and `Position`. A `Position` is either
  virtual or an existing waypoint at a slot of an index. Virtual positions are
  made with `Position.start()`, `Position.end()`, `Position.from_offset(n)` and
  `Position.invalid()`. `resolve` / `resolve_back` turn them into existing
  waypoints, and `next` / `next_back` step between waypoints.
- `linetrail.sane_index`: `SaneIndex` holds the rows of waypoints.
  - `insert(range)` records a line that lies inside a gap.
  - `erase(range)` marks bytes as explored with no line starts in them.
  - `seek_gap` finds the next unexplored region.
  - Iterating the index yields its waypoints in order.
  - `IndexStats` counts the bytes and lines indexed.
- `linetrail.timeout`: `Timeout`, a deadline that latches once it has passed.
- `linetrail.indexed_log`:
  - `LogLine` holds the `line` text and its byte `offset`.
  - `GetLine` is the result of a lookup: a `GetLineKind` of `HIT`, `MISS` or
    `TIMEOUT`, a position, and a line on a hit.
  - `IndexedLog` is the common interface (abstract base class).
  - `TimeoutWrapper` applies a time limit to a log.
  - The iterators are `LineIndexerIterator` (line offsets) and
    `LineIndexerDataIterator` (lines).
- `linetrail.sane_indexer`: `SaneIndexer` implements `IndexedLog` over a line
  source. It fills in the index as lines are read and keeps the last 1000
  lines read in a cache. `LogSource` is the protocol a source must follow.
- `linetrail.sane_lines`: `SaneLines` walks every line of an indexed log. It
  iterates forwards, and `next_back()` / `rev()` walk from the end.
- `linetrail.log`: `Log` wraps a source in a `SaneIndexer`. `Log.from_indexer`
  wraps an existing one. The `timestamper` attribute of a `Log` is a
  `TimeStamper`.
- `linetrail.time_stamper`: `TimeStamper` and `parse_time` read syslog-style
  timestamps such as `Apr  7 22:21:15.813` from the start of a line. The year
  is fixed at 2000.

## Supplying a source

linetrail does not open files, pipes or compressed data itself. You pass `Log`
an object that follows the `LogSource` protocol:

- `__len__()`: the current length of the data in bytes.
- `poll(timeout)`: check for new data and return the length.
- `is_open()`: true while the data may still grow.
- `read_line_at(offset)`: the text from `offset` through the end of its line,
  including the newline. It returns an empty string at the end of the data.
- `find_lines(span)`: ascending line-start offsets found within `span`. Each
  pair of consecutive offsets bounds one whole line.

A minimal in-memory source for fixed data:

```python
class BytesSource:
    def __init__(self, data: bytes):
        self.data = data

    def __len__(self):
        return len(self.data)

    def poll(self, timeout=None):
        return len(self.data)

    def is_open(self):
        return False

    def read_line_at(self, offset):
        end = self.data.find(b"\n", offset)
        end = len(self.data) if end < 0 else end + 1
        return self.data[offset:end].decode()

    def find_lines(self, span):
        stop = min(span.stop, len(self.data))
        starts = [0] if span.start == 0 else []
        starts += [i + 1 for i in range(span.start, stop) if self.data[i] == ord("\n")]
        if stop == len(self.data) and self.data and not self.data.endswith(b"\n"):
            starts.append(len(self.data))
        return starts
```

## Example

```python
from linetrail.log import Log

log = Log(BytesSource(b"Hello, world\n\nThis is a test.\nEnd of message\n"))

for line in log.iter_lines():
    print(line.offset, line, end="")

# The last two lines, newest first
lines = log.iter_lines()
print(lines.next_back(), lines.next_back())

# Every line that touches bytes 14 up to (not including) 30
for line in log.iter_lines_range(14, 30):
    print(line, end="")

# Line start offsets, from the end
print(list(log.iter_offsets().rev()))

# Index everything, but stop after 50 ms
with log.with_timeout(50) as bounded:
    bounded.resolve_gaps(Position.invalid())
print(log.timed_out(), log.has_gaps(), [s.lines_indexed for s in log.info()])
```

(`Position` comes from `linetrail.waypoint`.)

`iter_lines()` and `iter_lines_range(start, stop)` return a
`LineIndexerDataIterator`. Iterating it moves forwards. Calling `next_back()`
returns the previous line from the end, or `None` when none are left. The
forward and backward walks meet in the middle and do not cross.

## What it does not do

linetrail is a library only. It has no command-line tools, and it does not
read files from disk, stdin or compressed archives. It also has no search or
filter layer over the index. Reading data, and following a log as it grows,
is up to the `LogSource` you supply.