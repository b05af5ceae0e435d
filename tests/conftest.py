import pytest

from pmacct_relay.core.sequencer import TimestampSequencer
from pmacct_relay.transports.memory import MemoryTransport

SAMPLE_LINE = (
    "0 unknown 00:00:00:00:00:00 00:00:00:00:00:00 0 0 0 "
    "202.4.228.250 180.76.5.15 0 0 0 ip 0 24 0 34954"
)


class FakeClock:
    """
    Returns queued nanosecond values, then keeps repeating the last one.
    """

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture
def sample_line():
    return SAMPLE_LINE


@pytest.fixture
def clock():
    return FakeClock(1_000)


@pytest.fixture
def sequencer(clock):
    return TimestampSequencer(clock=clock)


@pytest.fixture
def transport():
    return MemoryTransport()


@pytest.fixture
def conn(transport):
    return transport.connect("memory://test", batch_period=1.0)
