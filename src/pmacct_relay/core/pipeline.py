from __future__ import annotations
import logging
from typing import Any, BinaryIO, Dict, Iterator, Optional

from pmacct_relay.transports.base import Connection
from .emitter import emit_record
from .parser import looks_like_record, parse_record
from .sequencer import TimestampSequencer

log = logging.getLogger(__name__)

DEFAULT_MAX_LINE_BYTES = 8192


def iter_lines(stream: BinaryIO, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES) -> Iterator[Optional[str]]:
    """
    Yield decoded lines from a binary stream, never buffering more than
    max_line_bytes (plus the newline) per line.

    Bytes that are not valid UTF-8 are kept as surrogate escapes, so a
    token never loses bytes and an invalid leading byte is never a digit.

    A line longer than the cap is drained from the stream and yielded as
    None, so the caller can count it and move on.
    """
    limit = max_line_bytes + 1
    while True:
        chunk = stream.readline(limit)
        if not chunk:
            return

        if chunk.endswith(b"\n") or len(chunk) <= max_line_bytes:
            yield chunk.decode("utf-8", errors="surrogateescape")
            continue

        while chunk and not chunk.endswith(b"\n"):
            chunk = stream.readline(limit)
        yield None


class RelayPipeline:
    """
    Per line control flow of the relay.

    For every line:
      1. drop it unless it starts with a digit
      2. parse it, drop it if it is not a flow record
      3. take the next timestamp, only now, so noise never burns one
      4. emit the four points for the record

    ClockError and TransportError are not handled here. They end the run
    and the caller decides the exit status.
    """

    def __init__(
        self,
        conn: Connection,
        sequencer: TimestampSequencer,
        collection_point: str,
        max_line_bytes: int = DEFAULT_MAX_LINE_BYTES,
    ):
        self.conn = conn
        self.sequencer = sequencer
        self.collection_point = collection_point
        self.max_line_bytes = int(max_line_bytes)

        self._lines = 0
        self._noise = 0
        self._unparsed = 0
        self._oversize = 0
        self._records = 0
        self._points = 0
        self._last_timestamp: Optional[int] = None

    def process_line(self, line: str) -> bool:
        """
        Returns True when the line was a record and its points were sent.
        """
        self._lines += 1

        if not looks_like_record(line):
            self._noise += 1
            return False

        record = parse_record(line)
        if record is None:
            self._unparsed += 1
            log.debug("not a flow record: %r", line[:120])
            return False

        timestamp = self.sequencer.next()
        self._points += emit_record(self.conn, record, self.collection_point, timestamp)
        self._records += 1
        self._last_timestamp = timestamp
        return True

    def run(self, stream: BinaryIO) -> Dict[str, Any]:
        """
        Relay every line of stream until EOF. Returns the final counters.
        """
        for line in iter_lines(stream, self.max_line_bytes):
            if line is None:
                self._lines += 1
                self._oversize += 1
                log.debug("skipped line longer than %d bytes", self.max_line_bytes)
                continue
            self.process_line(line)
        return self.status()

    def status(self) -> Dict[str, Any]:
        return {
            "collection_point": self.collection_point,
            "lines": self._lines,
            "records": self._records,
            "points": self._points,
            "noise": self._noise,
            "unparsed": self._unparsed,
            "oversize": self._oversize,
            "last_timestamp": self._last_timestamp,
        }
