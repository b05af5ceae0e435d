from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pmacct_relay.core.models import Observation
from .base import Connection, Transport, TransportError

log = logging.getLogger(__name__)


class MemoryConnection:
    """
    Keeps every point in a list instead of sending it anywhere.

    fail_after
      Number of successful sends before every further send raises
      TransportError. None means never fail.
    """

    def __init__(self, endpoint: str, fail_after: Optional[int] = None):
        self.endpoint = endpoint
        self.fail_after = fail_after
        self.sent: List[Observation] = []
        self.closed = False

    def _append(self, obs: Observation) -> None:
        if self.closed:
            raise TransportError(f"connection to {self.endpoint} is closed")
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise TransportError(f"simulated send failure after {self.fail_after} points")
        self.sent.append(obs)

    def send_integer(self, tags: Dict[str, str], value: int, timestamp: int) -> None:
        self._append(Observation(tags=dict(tags), value=int(value), timestamp=timestamp))

    def send_text(self, tags: Dict[str, str], value: str, timestamp: int) -> None:
        self._append(Observation(tags=dict(tags), value=str(value), timestamp=timestamp))

    def close(self) -> None:
        self.closed = True


class MemoryTransport:
    """
    In process transport for memory:// endpoints.

    Useful for dry runs of the relay against real pmacct output and as the
    test double for the relay pipeline.
    """

    scheme = "memory"

    def __init__(self, fail_after: Optional[int] = None):
        self.fail_after = fail_after
        self.connections: List[MemoryConnection] = []
        self.is_shutdown = False

    def connect(self, endpoint: str, batch_period: float) -> Connection:
        if self.is_shutdown:
            raise TransportError("transport already shut down")
        conn = MemoryConnection(endpoint, fail_after=self.fail_after)
        self.connections.append(conn)
        log.debug("memory connection opened for %s", endpoint)
        return conn

    def shutdown(self) -> None:
        self.is_shutdown = True

    def observations(self) -> List[Observation]:
        out: List[Observation] = []
        for conn in self.connections:
            out.extend(conn.sent)
        return out

    def status(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme,
            "connections": len(self.connections),
            "points": len(self.observations()),
            "shutdown": self.is_shutdown,
        }


def build_transport() -> Transport:
    return MemoryTransport()
