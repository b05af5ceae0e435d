from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Union


@dataclass
class FlowRecord:
    """
    One flow parsed out of a pmacct text line.

    Only the three columns the relay forwards are kept.

    Fields:
      src, dst
        IP addresses as opaque strings. No syntax validation is done,
        pmacct prints whatever the aggregation produced.

      bytes
        Byte counter for the flow, unsigned 64 bit.
    """

    src: str
    dst: str
    bytes: int = 0


@dataclass
class Observation:
    """
    A single point sent to the telemetry backend.

    tags
      Identity of the series, for example type, collection_point, ip, field.

    value
      Integer counters or text values. The transport picks the wire kind
      from the Python type.

    timestamp
      Nanoseconds since the Unix epoch. All four points derived from one
      FlowRecord share it.
    """

    tags: Dict[str, str]
    value: Union[int, str]
    timestamp: int

    @property
    def is_text(self) -> bool:
        return isinstance(self.value, str)
