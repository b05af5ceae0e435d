from __future__ import annotations

import threading
import time
from typing import Callable, Dict

U64_MAX = (1 << 64) - 1


class ClockError(RuntimeError):
    """
    The wall clock could not be read, or the timestamp space is exhausted.

    There is no degraded mode. Callers are expected to stop the process.
    """


def wall_clock_ns() -> int:
    """
    Current wall clock time in nanoseconds since the Unix epoch.
    """
    clock_id = getattr(time, "CLOCK_REALTIME", None)
    try:
        if clock_id is not None:
            return time.clock_gettime_ns(clock_id)
        return time.time_ns()
    except OSError as exc:
        raise ClockError(f"clock_gettime failed: {exc}") from exc


class TimestampSequencer:
    """
    Hands out strictly increasing nanosecond timestamps.

    The backend treats (ip, timestamp) as the identity of a point, and the
    four points derived from one record are correlated by their shared
    timestamp. Two records must therefore never get the same value, even
    when the clock is coarse or gets stepped backwards by NTP.

    Transition on each call:
      now <= last  ->  last + 1
      now >  last  ->  now

    last
      Initialised once from the clock when the sequencer is built.

    next() holds a lock, so one instance may be shared by several threads.
    """

    def __init__(self, clock: Callable[[], int] = wall_clock_ns):
        self._clock = clock
        self._lock = threading.Lock()
        self._last = int(self._clock())
        self._issued = 0
        self._adjusted = 0

    @property
    def last(self) -> int:
        return self._last

    def next(self) -> int:
        with self._lock:
            now = int(self._clock())

            if now <= self._last:
                # Clock stepped back or did not advance since the last call
                candidate = self._last + 1
                self._adjusted += 1
            else:
                candidate = now

            if candidate > U64_MAX:
                raise ClockError("timestamp counter exhausted")

            self._last = candidate
            self._issued += 1
            return candidate

    def status(self) -> Dict[str, int]:
        """
        Counters for the final log line. adjusted counts calls where the
        clock value could not be used as is.
        """
        return {
            "issued": self._issued,
            "adjusted": self._adjusted,
            "last": self._last,
        }
