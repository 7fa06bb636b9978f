"""
Traceroute Module

Provides hop-by-hop path discovery with per-hop round-trip times.
"""

from ntool.traceroute.core import (
    TracerouteEngine,
    TraceHop,
    TraceResult,
    StopReason,
    format_hop,
)

__all__ = [
    "TracerouteEngine",
    "TraceHop",
    "TraceResult",
    "StopReason",
    "format_hop",
]
