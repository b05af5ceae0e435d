from __future__ import annotations

from typing import Dict, Protocol


class TransportError(RuntimeError):
    """
    Raised by transports when a connection cannot be set up or a point
    cannot be delivered. The relay treats it as fatal for the run.
    """


class Connection(Protocol):
    """
    Batched channel to one backend endpoint.

    Sends may return before the point reaches the backend. A delivery
    failure is reported by the send or close call that follows it.
    """

    def send_integer(self, tags: Dict[str, str], value: int, timestamp: int) -> None:
        ...

    def send_text(self, tags: Dict[str, str], value: str, timestamp: int) -> None:
        ...

    def close(self) -> None:
        """
        Flush pending points and release the channel.
        """
        ...


class Transport(Protocol):
    """
    Required interface for a transport plugin.

    A transport is responsible for
    1. Opening a Connection for an endpoint URI of its scheme
    2. Batching points for at most batch_period seconds
    3. Shutting down its batching consumer on shutdown()

    The relay core never imports concrete transports directly.
    It resolves them via the registry using the endpoint scheme.
    """

    scheme: str

    def connect(self, endpoint: str, batch_period: float) -> Connection:
        ...

    def shutdown(self) -> None:
        ...
