"""
Transports deliver observations to a telemetry backend.

Each transport module exposes a build_transport factory. The registry
selects one by the URI scheme of the endpoint given on the command line.
"""

__all__ = [
    "base",
    "tcp",
    "memory",
]
