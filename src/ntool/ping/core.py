"""
Ping engine: repeated ICMP echo request/reply exchanges with RTT
measurement and summary statistics.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from rich.console import Console

from ntool.exceptions import ProbeTimeout
from ntool.icmp.channel import RawChannel, wait_for_reply
from ntool.icmp.packet import (
    DEFAULT_PAYLOAD,
    ICMP_HEADER_SIZE,
    ICMPMessage,
    ICMPType,
    ReceivedDatagram,
    UNREACH_DESCRIPTIONS,
    unreach_description,
)
from ntool.ping.stats import packet_loss, summarize
from ntool.utils import hexdump

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 4
DEFAULT_TIMEOUT = 2.0
DEFAULT_INTERVAL = 1.0


def default_identifier() -> int:
    """Probe identifier for this process (pid truncated to 16 bits)."""
    return os.getpid() & 0xFFFF


@dataclass
class RttSample:
    """One answered probe."""
    sequence: int
    sent_at: float      # perf_counter seconds
    received_at: float  # perf_counter seconds
    ttl: int            # TTL of the reply's IP header

    @property
    def rtt_ms(self) -> float:
        return (self.received_at - self.sent_at) * 1000


class PingOutcome(str, Enum):
    """How a ping run ended."""
    COMPLETED = "completed"
    UNREACHABLE = "unreachable"
    CANCELLED = "cancelled"


@dataclass
class EngineStats:
    """Counters and samples owned by a single ping run."""
    transmitted: int = 0
    received: int = 0
    samples: list[RttSample] = field(default_factory=list)
    outcome: PingOutcome | None = None

    @property
    def rtts(self) -> list[float]:
        """Round-trip times in milliseconds, in probe order."""
        return [s.rtt_ms for s in self.samples]

    @property
    def loss(self) -> int:
        return packet_loss(self.transmitted, self.received)

    def record(self, sample: RttSample) -> None:
        self.received += 1
        self.samples.append(sample)


class PingEngine:
    """
    Ping a single IPv4 address over a raw channel.

    Each probe goes Idle -> Sent -> AwaitingReply -> Matched | TimedOut.
    The run ends when the count is exhausted, on a destination-unreachable
    reply, or on KeyboardInterrupt; all three paths go through finalize(),
    which prints the statistics, and the channel is closed on every exit.

    Usage:
        engine = PingEngine(RawChannel.open(), "192.0.2.1", count=5)
        stats = engine.run()
        print(stats.loss)
    """

    def __init__(
        self,
        channel: RawChannel,
        destination: str,
        count: int = DEFAULT_COUNT,
        *,
        target: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        interval: float = DEFAULT_INTERVAL,
        identifier: int | None = None,
        payload: bytes = DEFAULT_PAYLOAD,
        console: Console | None = None,
        hex_dump: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.channel = channel
        self.destination = destination
        self.target = target or destination
        self.count = count
        self.timeout = timeout
        self.interval = interval
        self.identifier = default_identifier() if identifier is None else identifier & 0xFFFF
        self.payload = payload
        self.console = console or Console()
        self.hex_dump = hex_dump
        self._sleep = sleep
        self.stats: EngineStats | None = None

    @property
    def packet_size(self) -> int:
        return ICMP_HEADER_SIZE + len(self.payload)

    def _emit(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)

    def _dump(self, data: bytes) -> None:
        for line in hexdump(data):
            self._emit(line)

    def run(self) -> EngineStats:
        """
        Run the ping loop to completion, unreachable or cancellation.

        Returns:
            The run's EngineStats

        Raises:
            ChannelError: send/receive failed mid-run
            NoSamplesError: all probes ran but none was answered
        """
        stats = EngineStats()
        self.stats = stats

        self._emit(
            f"Pinging {self.target} [{self.destination}] with {self.packet_size} bytes of data:"
        )

        with self.channel:
            try:
                for sequence in range(1, self.count + 1):
                    if not self.probe(stats, sequence):
                        break
                    if sequence < self.count:
                        self._sleep(self.interval)
            except KeyboardInterrupt:
                logger.info("Ping interrupted")
                stats.outcome = PingOutcome.CANCELLED

            return self.finalize(stats)

    def probe(self, stats: EngineStats, sequence: int) -> bool:
        """
        Send one echo request and classify what comes back.

        Returns:
            False when the run must stop (destination unreachable)
        """
        request = ICMPMessage(
            type=ICMPType.ECHO_REQUEST,
            code=0,
            identifier=self.identifier,
            sequence=sequence,
            payload=self.payload,
        )
        self.channel.send(request.encode(), self.destination)
        stats.transmitted += 1
        sent_at = self.channel.sent_at
        logger.debug(f"Sent echo request id={self.identifier} seq={sequence} to {self.destination}")

        try:
            received, source = wait_for_reply(
                self.channel,
                self.identifier,
                sequence,
                self.timeout,
                on_datagram=self._dump if self.hex_dump else None,
            )
        except ProbeTimeout as e:
            logger.debug(str(e))
            self._emit(f"From {self.destination}: Failed to receive packet")
            return True

        return self._classify(stats, sequence, sent_at, received, source)

    def _classify(
        self,
        stats: EngineStats,
        sequence: int,
        sent_at: float,
        received: ReceivedDatagram,
        source: str,
    ) -> bool:
        icmp = received.icmp

        # Loopback paths hand our own request back before the reply
        if icmp.type in (ICMPType.ECHO_REPLY, ICMPType.ECHO_REQUEST):
            sample = RttSample(
                sequence=sequence,
                sent_at=sent_at,
                received_at=self.channel.received_at,
                ttl=received.ttl,
            )
            stats.record(sample)
            self._emit(
                f"{received.size} bytes from {source}: icmp_seq={icmp.sequence} "
                f"ttl={received.ttl} rtt={sample.rtt_ms:.3f} ms"
            )
            return True

        if icmp.type == ICMPType.DEST_UNREACHABLE and icmp.code < len(UNREACH_DESCRIPTIONS):
            description = unreach_description(icmp.code)
            logger.info(f"{self.destination} unreachable: {description}")
            self._emit(f"From {source}: icmp_seq={sequence} {description}")
            stats.outcome = PingOutcome.UNREACHABLE
            return False

        self._emit(
            f"Received ICMP packet [type: {icmp.type} code: {icmp.code} id: {icmp.identifier}]"
        )
        return True

    def finalize(self, stats: EngineStats) -> EngineStats:
        """Print the statistics block for a finished or cancelled run."""
        if stats.outcome is None:
            stats.outcome = PingOutcome.COMPLETED

        self._emit("")
        self._emit(f"--- {self.destination} ping statistics ---")
        self._emit(
            f"{stats.transmitted} packets transmitted, {stats.received} received, "
            f"{stats.loss}% packet loss"
        )

        # Unreachable and cancelled runs end normally even with no samples
        if not stats.samples and stats.outcome is not PingOutcome.COMPLETED:
            return stats

        summary = summarize(stats.rtts, stats.transmitted)
        if summary is not None:
            self._emit(
                f"rtt min/avg/max/mdev = {summary.min_ms:.3f}/{summary.avg_ms:.3f}/"
                f"{summary.max_ms:.3f}/{summary.mdev_ms:.3f} ms"
            )

        return stats
