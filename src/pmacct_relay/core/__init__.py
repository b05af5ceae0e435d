"""
Core modules that must remain transport neutral.

Keep wire formats and backend quirks out of this package.
"""

from .models import FlowRecord, Observation
from .parser import parse_record, looks_like_record
from .sequencer import TimestampSequencer, ClockError
from .pipeline import RelayPipeline

__all__ = [
    "FlowRecord",
    "Observation",
    "parse_record",
    "looks_like_record",
    "TimestampSequencer",
    "ClockError",
    "RelayPipeline",
]
