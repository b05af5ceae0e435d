from __future__ import annotations
import importlib
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from pmacct_relay.transports.base import Transport, TransportError

DEFAULT_TRANSPORTS = [
    "pmacct_relay.transports.tcp:build_transport",
    "pmacct_relay.transports.memory:build_transport",
]


@dataclass
class LoadedTransport:
    """
    A transport instance and the scheme it serves.
    """
    scheme: str
    instance: Transport


class TransportRegistry:
    """
    Maps endpoint URI schemes to transport instances.

    The CLI resolves the endpoint given on the command line through
    for_endpoint(). Site specific transports are added by import string
    through PMACCT_RELAY_TRANSPORTS, next to the built in tcp and memory.

    Import string format:
      "some.module.path:factory_function"

    Example:
      "pmacct_relay.transports.tcp:build_transport"
    """

    def __init__(self):
        self._transports: Dict[str, LoadedTransport] = {}

    def register(self, transport: Transport) -> None:
        if transport.scheme in self._transports:
            raise ValueError(f"duplicate transport scheme {transport.scheme}")
        self._transports[transport.scheme] = LoadedTransport(scheme=transport.scheme, instance=transport)

    def list(self) -> List[str]:
        return sorted(self._transports.keys())

    def load_from_import_paths(self, import_paths: List[str]) -> None:
        for path in import_paths:
            module_path, factory_name = path.split(":")
            module = importlib.import_module(module_path)
            factory = getattr(module, factory_name)
            self.register(factory())

    def for_endpoint(self, endpoint: str) -> Transport:
        """
        Pick the transport for an endpoint URI such as tcp://host:1234.
        """
        scheme = urlsplit(endpoint).scheme
        if not scheme:
            raise TransportError(f"endpoint has no scheme: {endpoint}")
        if scheme not in self._transports:
            raise TransportError(
                f"no transport for scheme {scheme!r}, loaded: {', '.join(self.list()) or 'none'}"
            )
        return self._transports[scheme].instance


def build_default_registry(extra_import_paths: Optional[List[str]] = None) -> TransportRegistry:
    reg = TransportRegistry()
    reg.load_from_import_paths(DEFAULT_TRANSPORTS + list(extra_import_paths or []))
    return reg
