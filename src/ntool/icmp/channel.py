"""
Raw IPv4 socket channel for ICMP probes.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import logging
import socket
import time
from typing import Callable

from ntool.exceptions import (
    ChannelError,
    DecodeError,
    PrivilegeError,
    ProbeTimeout,
    RecvError,
    SendError,
    SocketCreationError,
)
from ntool.icmp.packet import ReceivedDatagram, decode_datagram, matches_probe

logger = logging.getLogger(__name__)

# Largest IPv4 datagram, so replies are never truncated
RECV_BUFFER_SIZE = 65535


class RawChannel:
    """
    Exclusively owned raw socket used by one engine run.

    Usage:
        with RawChannel.open() as channel:
            channel.set_ttl(5)
            channel.send(packet, "192.0.2.1")
            data, source = channel.recv(timeout=1.0)
            rtt_ms = (channel.received_at - channel.sent_at) * 1000
    """

    def __init__(self, sock: socket.socket):
        self._socket: socket.socket | None = sock
        self.sent_at: float | None = None
        self.received_at: float | None = None

    @classmethod
    def open(
        cls,
        family: int = socket.AF_INET,
        protocol: int = socket.IPPROTO_ICMP,
    ) -> "RawChannel":
        """Create the raw socket."""
        try:
            sock = socket.socket(family, socket.SOCK_RAW, protocol)
        except PermissionError as e:
            raise PrivilegeError(f"raw socket creation not permitted: {e}") from e
        except OSError as e:
            raise SocketCreationError("socket", e) from e

        logger.debug(f"Opened raw socket fd={sock.fileno()} family={family} protocol={protocol}")
        return cls(sock)

    @property
    def closed(self) -> bool:
        return self._socket is None

    def _require_socket(self, operation: str) -> socket.socket:
        if self._socket is None:
            raise ChannelError(operation, "channel is closed")
        return self._socket

    def send(self, data: bytes, destination: str) -> int:
        """
        Send a datagram and stamp sent_at right after the send returns.

        Returns:
            Number of bytes sent
        """
        sock = self._require_socket("sendto")
        try:
            sent = sock.sendto(data, (destination, 0))
        except OSError as e:
            raise SendError("sendto", e) from e
        self.sent_at = time.perf_counter()

        if sent <= 0:
            raise SendError("sendto", f"sent {sent} bytes")
        return sent

    def recv(self, timeout: float) -> tuple[bytes, str]:
        """
        Receive one datagram, waiting at most timeout seconds.

        The deadline is a socket-level receive timeout. received_at is
        stamped as soon as the datagram is read.

        Returns:
            Tuple of (datagram bytes including IP header, source address)
        """
        sock = self._require_socket("recvfrom")
        try:
            sock.settimeout(max(timeout, 0.0))
            data, address = sock.recvfrom(RECV_BUFFER_SIZE)
        except socket.timeout as e:
            raise ProbeTimeout(f"no reply within {timeout:.3f}s") from e
        except OSError as e:
            raise RecvError("recvfrom", e) from e
        self.received_at = time.perf_counter()

        return data, address[0]

    def set_ttl(self, ttl: int) -> None:
        """Set the IP time-to-live for subsequent sends."""
        sock = self._require_socket("set_ttl")
        try:
            sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
        except OSError as e:
            raise ChannelError("set_ttl", e) from e

    def close(self) -> None:
        """Release the socket. Later calls are no-ops."""
        if self._socket is None:
            return
        sock, self._socket = self._socket, None
        sock.close()
        logger.debug("Closed raw socket")

    def __enter__(self) -> "RawChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def wait_for_reply(
    channel: RawChannel,
    identifier: int,
    sequence: int,
    timeout: float,
    on_datagram: Callable[[bytes], None] | None = None,
) -> tuple[ReceivedDatagram, str]:
    """
    Wait for the reply to one outstanding probe.

    Datagrams that cannot be decoded or that answer some other probe are
    skipped; waiting goes on until the probe's deadline.

    Args:
        channel: Channel the probe was sent on
        identifier: Identifier of the probe
        sequence: Sequence number of the probe
        timeout: Seconds to wait in total
        on_datagram: Called with every raw datagram received (hex dumps)

    Returns:
        Tuple of (decoded datagram, source address)

    Raises:
        ProbeTimeout: nothing matching arrived in time
    """
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ProbeTimeout(f"no reply to icmp_seq={sequence} within {timeout:.3f}s")

        data, source = channel.recv(remaining)
        if on_datagram:
            on_datagram(data)

        try:
            received = decode_datagram(data)
        except DecodeError as e:
            logger.debug(f"Ignoring undecodable datagram from {source}: {e}")
            continue

        if not matches_probe(received, identifier, sequence):
            logger.debug(
                f"Ignoring ICMP type={received.icmp.type} id={received.icmp.identifier} "
                f"seq={received.icmp.sequence} from {source}"
            )
            continue

        return received, source
