"""
Traceroute engine: TTL-scanning ICMP echo probes to enumerate the hops
on the path to a destination.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from rich.console import Console

from ntool.exceptions import ProbeTimeout
from ntool.icmp.channel import RawChannel, wait_for_reply
from ntool.icmp.packet import DEFAULT_PAYLOAD, ICMP_HEADER_SIZE, ICMPMessage, ICMPType
from ntool.ping.core import RttSample, default_identifier
from ntool.utils import hexdump, reverse_lookup

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 30
DEFAULT_MAX_QUERIES = 3
DEFAULT_TIMEOUT = 1.0


class StopReason(str, Enum):
    """Why the TTL scan stopped."""
    DEST_REACHED = "dest_reached"
    DUPLICATE_HOP = "duplicate_hop"
    MAX_HOPS = "max_hops"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TraceHop:
    """One TTL worth of probes. queries holds None for each timeout."""
    ttl: int
    source_address: str | None = None
    hostname: str | None = None
    queries: tuple[RttSample | None, ...] = ()
    reached: bool = False

    @property
    def samples(self) -> list[RttSample]:
        return [q for q in self.queries if q is not None]

    @property
    def rtts(self) -> list[float]:
        return [s.rtt_ms for s in self.samples]

    @property
    def is_timeout(self) -> bool:
        return self.source_address is None


@dataclass
class TraceResult:
    """Outcome of a traceroute run."""
    destination: str
    hops: list[TraceHop] = field(default_factory=list)
    stop_reason: StopReason | None = None

    @property
    def reached(self) -> bool:
        return self.stop_reason in (StopReason.DEST_REACHED, StopReason.DUPLICATE_HOP)


def format_hop(hop: TraceHop) -> str:
    """
    Render a hop line, e.g. ' 3 router.example (192.0.2.1) 1.234 ms * 2.345 ms'.

    The address follows the TTL whenever any query was answered.
    """
    parts = [f" {hop.ttl:2}"]
    if hop.source_address is not None:
        parts.append(f"{hop.hostname or hop.source_address} ({hop.source_address})")
    for sample in hop.queries:
        parts.append("*" if sample is None else f"{sample.rtt_ms:.3f} ms")
    return " ".join(parts)


class TracerouteEngine:
    """
    Discover the hops to a destination by raising the IP TTL one step at
    a time and sending max_queries echo requests per step.

    The scan stops when a reply comes from the destination (after the
    current TTL's queries finish), when the first reply of a TTL comes
    from the same address as the previous hop, when max_hops is passed,
    or on KeyboardInterrupt. The channel is closed on every exit path.

    Usage:
        engine = TracerouteEngine(RawChannel.open(), "192.0.2.1", max_hops=20)
        result = engine.run()
        for hop in result.hops:
            print(hop.ttl, hop.source_address, hop.rtts)
    """

    def __init__(
        self,
        channel: RawChannel,
        destination: str,
        *,
        target: str | None = None,
        max_hops: int = DEFAULT_MAX_HOPS,
        max_queries: int = DEFAULT_MAX_QUERIES,
        timeout: float = DEFAULT_TIMEOUT,
        identifier: int | None = None,
        payload: bytes = DEFAULT_PAYLOAD,
        resolve_hostname: Callable[[str], str] | None = None,
        console: Console | None = None,
        hex_dump: bool = False,
    ):
        self.channel = channel
        self.destination = destination
        self.target = target or destination
        self.max_hops = max_hops
        self.max_queries = max_queries
        self.timeout = timeout
        self.identifier = default_identifier() if identifier is None else identifier & 0xFFFF
        self.payload = payload
        self.resolve_hostname = resolve_hostname or reverse_lookup
        self.console = console or Console()
        self.hex_dump = hex_dump
        self._sequence = 0
        self.partial_hop: TraceHop | None = None

    @property
    def packet_size(self) -> int:
        return ICMP_HEADER_SIZE + len(self.payload)

    def _emit(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)

    def _dump(self, data: bytes) -> None:
        for line in hexdump(data):
            self._emit(line)

    def run(self) -> TraceResult:
        """
        Scan TTLs 1..max_hops, printing one line per visited hop.

        Raises:
            ChannelError: setting the TTL, sending or receiving failed
        """
        result = TraceResult(destination=self.destination)
        self._sequence = 0
        self.partial_hop = None

        self._emit(
            f"traceroute to {self.target} ({self.destination}), "
            f"{self.max_hops} hops max, {self.packet_size} byte packets"
        )

        with self.channel:
            try:
                previous: TraceHop | None = None
                for ttl in range(1, self.max_hops + 1):
                    hop = self.scan_hop(ttl, previous)
                    if hop is None:
                        result.stop_reason = StopReason.DUPLICATE_HOP
                        break

                    result.hops.append(hop)
                    self._emit(format_hop(hop))

                    if hop.reached:
                        result.stop_reason = StopReason.DEST_REACHED
                        break
                    previous = hop
            except KeyboardInterrupt:
                logger.info("Traceroute interrupted")
                if self.partial_hop is not None:
                    result.hops.append(self.partial_hop)
                    self._emit(format_hop(self.partial_hop))
                result.stop_reason = StopReason.CANCELLED

            return self.finalize(result)

    def scan_hop(self, ttl: int, previous: TraceHop | None) -> TraceHop | None:
        """
        Send max_queries probes with the given TTL.

        Returns:
            The finished TraceHop, or None when its first reply repeats the
            previous hop's address (the destination was already reached)

        On KeyboardInterrupt the queries answered so far are kept in
        partial_hop before the interrupt propagates.
        """
        self.channel.set_ttl(ttl)

        queries: list[RttSample | None] = []
        source: str | None = None
        hostname: str | None = None
        reached = False

        try:
            for query in range(1, self.max_queries + 1):
                self._sequence += 1
                sequence = self._sequence

                request = ICMPMessage(
                    type=ICMPType.ECHO_REQUEST,
                    code=0,
                    identifier=self.identifier,
                    sequence=sequence,
                    payload=self.payload,
                )
                self.channel.send(request.encode(), self.destination)
                sent_at = self.channel.sent_at

                try:
                    received, address = wait_for_reply(
                        self.channel,
                        self.identifier,
                        sequence,
                        self.timeout,
                        on_datagram=self._dump if self.hex_dump else None,
                    )
                except ProbeTimeout:
                    logger.debug(f"ttl={ttl} query={query}: timeout")
                    queries.append(None)
                    continue

                if source is None:
                    if previous is not None and address == previous.source_address:
                        logger.debug(f"ttl={ttl}: {address} repeats the previous hop")
                        return None
                    source = address
                    hostname = self.resolve_hostname(address)

                queries.append(
                    RttSample(
                        sequence=sequence,
                        sent_at=sent_at,
                        received_at=self.channel.received_at,
                        ttl=received.ttl,
                    )
                )

                if address == self.destination:
                    reached = True
        except KeyboardInterrupt:
            if queries:
                self.partial_hop = TraceHop(
                    ttl=ttl,
                    source_address=source,
                    hostname=hostname,
                    queries=tuple(queries),
                    reached=reached,
                )
            raise

        return TraceHop(
            ttl=ttl,
            source_address=source,
            hostname=hostname,
            queries=tuple(queries),
            reached=reached,
        )

    def finalize(self, result: TraceResult) -> TraceResult:
        """Record why the scan ended."""
        if result.stop_reason is None:
            result.stop_reason = StopReason.MAX_HOPS

        logger.info(
            f"Traceroute to {self.destination} finished after {len(result.hops)} hops: "
            f"{result.stop_reason.value}"
        )
        return result
