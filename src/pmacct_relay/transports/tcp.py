from __future__ import annotations

import json
import logging
import math
import socket
import threading
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from .base import Connection, Transport, TransportError

log = logging.getLogger(__name__)


def parse_endpoint(endpoint: str) -> Tuple[str, int]:
    """
    Split tcp://host:port into (host, port).
    """
    parts = urlsplit(endpoint)
    if parts.scheme != "tcp":
        raise TransportError(f"not a tcp endpoint: {endpoint}")
    try:
        port = parts.port
    except ValueError as exc:
        raise TransportError(f"bad port in endpoint {endpoint}") from exc
    if not parts.hostname or port is None:
        raise TransportError(f"endpoint needs host and port: {endpoint}")
    return parts.hostname, port


def encode_point(kind: str, tags: Dict[str, str], value: Union[int, str], timestamp: int) -> bytes:
    """
    One point per line, JSON encoded.

      {"kind": "int", "tags": {...}, "value": 34954, "timestamp": 1700000000000000000}
    """
    doc = {"kind": kind, "tags": tags, "value": value, "timestamp": timestamp}
    return json.dumps(doc, separators=(",", ":"), sort_keys=True).encode("utf-8") + b"\n"


class TcpConnection:
    """
    Batched TCP channel.

    Sends only queue the encoded point. A consumer thread writes the queue
    to the socket every batch_period seconds.

    Once a write fails the connection is poisoned: the error is kept and
    every later send, flush or close raises it. Nothing is retried here.
    """

    def __init__(self, endpoint: str, sock: socket.socket, batch_period: float):
        self.endpoint = endpoint
        self._sock = sock
        self._batch_period = float(batch_period)

        self._lock = threading.Lock()
        self._pending: List[bytes] = []
        self._error: Optional[str] = None
        self._closed = False
        self._stop = threading.Event()

        self._queued = 0
        self._written = 0
        self._batches = 0

        self._thread = threading.Thread(
            target=self._run, name=f"pmacct-relay-consumer {endpoint}", daemon=True
        )
        self._thread.start()

    def send_integer(self, tags: Dict[str, str], value: int, timestamp: int) -> None:
        self._queue(encode_point("int", tags, int(value), timestamp))

    def send_text(self, tags: Dict[str, str], value: str, timestamp: int) -> None:
        self._queue(encode_point("text", tags, str(value), timestamp))

    def _queue(self, line: bytes) -> None:
        with self._lock:
            if self._error is not None:
                raise TransportError(self._error)
            if self._closed:
                raise TransportError(f"connection to {self.endpoint} is closed")
            self._pending.append(line)
            self._queued += 1

    def _run(self) -> None:
        while not self._stop.wait(self._batch_period):
            try:
                self.flush()
            except TransportError:
                # Kept in self._error, reported to the caller on its next send
                return

    def flush(self) -> int:
        """
        Write everything pending. Returns the number of points written.
        """
        with self._lock:
            if self._error is not None:
                raise TransportError(self._error)
            batch, self._pending = self._pending, []

        if not batch:
            return 0

        try:
            self._sock.sendall(b"".join(batch))
        except OSError as exc:
            msg = f"send to {self.endpoint} failed: {exc}"
            with self._lock:
                self._error = msg
            log.error("%s, %d points lost", msg, len(batch))
            raise TransportError(msg) from exc

        self._written += len(batch)
        self._batches += 1
        return len(batch)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._stop.set()
        self._thread.join()
        try:
            self.flush()
        finally:
            self._sock.close()
            log.info("tcp connection to %s closed", self.endpoint)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            pending = len(self._pending)
            error = self._error
        return {
            "endpoint": self.endpoint,
            "queued": self._queued,
            "written": self._written,
            "batches": self._batches,
            "pending": pending,
            "closed": self._closed,
            "error": error,
        }


class TcpTransport:
    """
    Transport for tcp://host:port endpoints.

    connect_timeout
      Seconds to wait for the TCP handshake.

    send_timeout
      Seconds a single batch write may block before the connection is
      considered failed.
    """

    scheme = "tcp"

    def __init__(self, connect_timeout: float = 5.0, send_timeout: float = 30.0):
        self.connect_timeout = float(connect_timeout)
        self.send_timeout = float(send_timeout)
        self._connections: List[TcpConnection] = []

    def connect(self, endpoint: str, batch_period: float) -> Connection:
        host, port = parse_endpoint(endpoint)
        if not math.isfinite(batch_period) or batch_period <= 0:
            raise TransportError(f"batch period must be a positive number of seconds, got {batch_period}")

        try:
            sock = socket.create_connection((host, port), timeout=self.connect_timeout)
        except OSError as exc:
            raise TransportError(f"connect to {endpoint} failed: {exc}") from exc
        sock.settimeout(self.send_timeout)

        conn = TcpConnection(endpoint, sock, batch_period)
        self._connections.append(conn)
        log.info("tcp connection to %s:%d open, batch period %.3fs", host, port, batch_period)
        return conn

    def shutdown(self) -> None:
        """
        Close any connection still open. The first failure is raised after
        all connections were closed.
        """
        first: Optional[TransportError] = None
        for conn in self._connections:
            try:
                conn.close()
            except TransportError as exc:
                if first is None:
                    first = exc
        self._connections = []
        if first is not None:
            raise first


def build_transport() -> Transport:
    return TcpTransport()
