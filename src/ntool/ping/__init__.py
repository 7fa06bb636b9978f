"""
Ping Module

Provides the ICMP echo round-trip engine and its summary statistics.
"""

from ntool.ping.core import (
    PingEngine,
    PingOutcome,
    EngineStats,
    RttSample,
)
from ntool.ping.stats import (
    packet_loss,
    summarize,
    RttSummary,
)

__all__ = [
    "PingEngine",
    "PingOutcome",
    "EngineStats",
    "RttSample",
    "packet_loss",
    "summarize",
    "RttSummary",
]
