import threading

import pytest

from pmacct_relay.core.sequencer import ClockError, TimestampSequencer, U64_MAX, wall_clock_ns
from tests.conftest import FakeClock


def test_last_initialised_from_clock():
    seq = TimestampSequencer(clock=FakeClock(500))
    assert seq.last == 500


def test_uses_clock_when_it_advances():
    seq = TimestampSequencer(clock=FakeClock(100, 200, 300, 400))
    assert [seq.next(), seq.next(), seq.next()] == [200, 300, 400]


def test_frozen_clock_still_strictly_increasing():
    seq = TimestampSequencer(clock=FakeClock(1_000))
    out = [seq.next() for _ in range(5)]
    assert out == [1_001, 1_002, 1_003, 1_004, 1_005]


def test_backward_step_is_compensated_then_recovers():
    # init 1000, then clock steps back for three reads, then jumps ahead
    seq = TimestampSequencer(clock=FakeClock(1_000, 10, 20, 1_000, 5_000))
    out = [seq.next() for _ in range(4)]
    assert out == [1_001, 1_002, 1_003, 5_000]
    assert seq.status()["adjusted"] == 3
    assert seq.status()["issued"] == 4


def test_jittery_clock_is_strictly_increasing():
    values = [50, 40, 40, 60, 61, 61, 10, 70, 69, 71, 71, 200]
    seq = TimestampSequencer(clock=FakeClock(*values))
    out = [seq.next() for _ in range(len(values) - 1)]
    assert all(a < b for a, b in zip(out, out[1:]))
    assert out[0] > 50


def test_clock_failure_at_startup():
    def broken():
        raise ClockError("no clock")

    with pytest.raises(ClockError):
        TimestampSequencer(clock=broken)


def test_clock_failure_on_next():
    state = {"ok": True}

    def flaky():
        if state["ok"]:
            return 1
        raise ClockError("gone")

    seq = TimestampSequencer(clock=flaky)
    state["ok"] = False
    with pytest.raises(ClockError):
        seq.next()
    assert seq.last == 1


def test_counter_exhaustion_raises():
    seq = TimestampSequencer(clock=FakeClock(U64_MAX))
    with pytest.raises(ClockError):
        seq.next()


def test_concurrent_callers_never_share_a_timestamp():
    seq = TimestampSequencer(clock=FakeClock(1))
    results = []
    lock = threading.Lock()

    def worker():
        local = [seq.next() for _ in range(500)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 4000
    assert len(set(results)) == 4000


def test_wall_clock_is_nanoseconds():
    # Any time after 2001 is above 1e18 ns
    assert wall_clock_ns() > 10**18
