"""
Summary statistics over a completed set of round-trip times.
"""

from dataclasses import dataclass
from typing import Sequence

from ntool.exceptions import NoSamplesError


@dataclass
class RttSummary:
    """min/avg/max/mdev of a run, all in milliseconds."""
    min_ms: float
    avg_ms: float
    max_ms: float
    mdev_ms: float


def packet_loss(transmitted: int, received: int) -> int:
    """
    Packet loss percentage, rounded up.

    Integer arithmetic keeps ceil(100 - received / transmitted * 100)
    exact. Returns 0 when nothing was transmitted.
    """
    if transmitted <= 0:
        return 0
    lost = max(transmitted - received, 0)
    return -(-lost * 100 // transmitted)


def mean(samples: Sequence[float]) -> float:
    return sum(samples) / len(samples)


def mdev(samples: Sequence[float]) -> float:
    """Mean absolute deviation from the mean."""
    avg = mean(samples)
    return sum(abs(s - avg) for s in samples) / len(samples)


def summarize(samples: Sequence[float], transmitted: int) -> RttSummary | None:
    """
    Compute the RTT summary of a finished run.

    Args:
        samples: Round-trip times in milliseconds
        transmitted: Number of probes sent during the run

    Returns:
        RttSummary, or None when nothing was transmitted

    Raises:
        NoSamplesError: probes were sent but no round-trip time was recorded
    """
    if not samples:
        if transmitted > 0:
            raise NoSamplesError("round-trip time wasn't calculated")
        return None

    return RttSummary(
        min_ms=min(samples),
        avg_ms=mean(samples),
        max_ms=max(samples),
        mdev_ms=mdev(samples),
    )
