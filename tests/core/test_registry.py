import pytest

from pmacct_relay.core.registry import TransportRegistry, build_default_registry
from pmacct_relay.transports.base import TransportError
from pmacct_relay.transports.memory import MemoryTransport


def test_registry_loads_transport_import():
    reg = TransportRegistry()
    reg.load_from_import_paths(
        ["pmacct_relay.transports.memory:build_transport"]
    )
    assert "memory" in reg.list()


def test_default_registry_has_builtin_transports():
    reg = build_default_registry()
    assert reg.list() == ["memory", "tcp"]
    assert reg.for_endpoint("tcp://localhost:1234").scheme == "tcp"
    assert reg.for_endpoint("memory://dry-run").scheme == "memory"


def test_duplicate_scheme_rejected():
    reg = TransportRegistry()
    reg.register(MemoryTransport())
    with pytest.raises(ValueError):
        reg.register(MemoryTransport())


def test_unknown_scheme_is_a_transport_error():
    reg = build_default_registry()
    with pytest.raises(TransportError):
        reg.for_endpoint("zmq://localhost:5560")
    with pytest.raises(TransportError):
        reg.for_endpoint("localhost")
