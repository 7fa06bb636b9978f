"""
ICMP message encoding and decoding.

Provides the Internet checksum, an in-memory ICMP message model and
decoding of ICMP replies that arrive wrapped in their IPv4 datagram.
All fields are read and written by fixed byte offset with struct, so
decoding works on any byte slice.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""

import socket
import struct
from dataclasses import dataclass
from enum import IntEnum

from ntool.exceptions import DecodeError, TooShortError


ICMP_HEADER_SIZE = 8
ICMP_PAYLOAD_SIZE = 56
ICMP_PACKET_SIZE = ICMP_HEADER_SIZE + ICMP_PAYLOAD_SIZE

IPV4_MIN_HEADER_SIZE = 20

# type(1) code(1) checksum(2) identifier(2) sequence(2)
_ICMP_HEADER = struct.Struct("!BBHHH")


def make_payload(size: int = ICMP_PAYLOAD_SIZE) -> bytes:
    """Printable filler payload of the given length."""
    return bytes(0x21 + i % 0x5E for i in range(size))


DEFAULT_PAYLOAD = make_payload()


class ICMPType(IntEnum):
    """ICMP message types used by the probes."""
    ECHO_REPLY = 0
    DEST_UNREACHABLE = 3
    ECHO_REQUEST = 8
    TIME_EXCEEDED = 11


# Destination unreachable descriptions indexed by code (RFC 792 / RFC 1812)
UNREACH_DESCRIPTIONS = (
    "Destination network unreachable",
    "Destination host unreachable",
    "Destination protocol unreachable",
    "Destination port unreachable",
    "Fragmentation required, and DF flag set",
    "Source route failed",
    "Destination network unknown",
    "Destination host unknown",
    "Source host isolated",
    "Network administratively prohibited",
    "Host administratively prohibited",
    "Network unreachable for ToS",
    "Host unreachable for ToS",
    "Communication administratively prohibited",
    "Host Precedence Violation",
    "Precedence cutoff in effect",
)


def unreach_description(code: int) -> str:
    """Describe a destination-unreachable sub-code (0-15)."""
    if not 0 <= code < len(UNREACH_DESCRIPTIONS):
        raise ValueError(f"Unknown destination unreachable code: {code}")
    return UNREACH_DESCRIPTIONS[code]


def checksum(buffer: bytes) -> int:
    """
    Compute the 16-bit one's-complement Internet checksum.

    An odd trailing byte is padded with a zero byte. The running sum is
    folded until it fits in 16 bits and then complemented. Running it over
    a buffer that already carries its checksum yields 0.

    Args:
        buffer: Bytes to checksum (any length, including empty)

    Returns:
        Checksum in host integer form, to be packed in network order
    """
    if len(buffer) % 2:
        buffer = bytes(buffer) + b"\x00"

    total = sum(struct.unpack(f"!{len(buffer) // 2}H", buffer))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)

    return ~total & 0xFFFF


@dataclass
class ICMPMessage:
    """An ICMP header plus payload."""
    type: int
    code: int = 0
    identifier: int = 0
    sequence: int = 0
    payload: bytes = b""
    checksum: int = 0

    def encode(self) -> bytes:
        """Serialize in network byte order with a freshly computed checksum."""
        packet = bytearray(
            _ICMP_HEADER.pack(
                self.type,
                self.code,
                0,
                self.identifier & 0xFFFF,
                self.sequence & 0xFFFF,
            )
        )
        packet += self.payload

        self.checksum = checksum(packet)
        struct.pack_into("!H", packet, 2, self.checksum)
        return bytes(packet)

    @classmethod
    def decode(cls, data: bytes) -> "ICMPMessage":
        """Decode a bare ICMP message (header at offset 0)."""
        if len(data) < ICMP_HEADER_SIZE:
            raise TooShortError("ICMP header", ICMP_HEADER_SIZE, len(data))

        icmp_type, code, cksum, identifier, sequence = _ICMP_HEADER.unpack_from(data, 0)
        return cls(
            type=icmp_type,
            code=code,
            identifier=identifier,
            sequence=sequence,
            payload=bytes(data[ICMP_HEADER_SIZE:]),
            checksum=cksum,
        )


@dataclass
class IPv4Header:
    """The IPv4 header fields consumed from received datagrams."""
    version: int
    ihl: int
    ttl: int
    protocol: int
    source: str
    destination: str

    @property
    def header_length(self) -> int:
        """Header length in bytes."""
        return self.ihl * 4

    @classmethod
    def decode(cls, data: bytes) -> "IPv4Header":
        if len(data) < IPV4_MIN_HEADER_SIZE:
            raise TooShortError("IPv4 header", IPV4_MIN_HEADER_SIZE, len(data))

        version_ihl = data[0]
        ihl = version_ihl & 0x0F
        if ihl * 4 < IPV4_MIN_HEADER_SIZE:
            raise DecodeError(f"Invalid IPv4 header length field: {ihl}")

        return cls(
            version=version_ihl >> 4,
            ihl=ihl,
            ttl=data[8],
            protocol=data[9],
            source=socket.inet_ntoa(bytes(data[12:16])),
            destination=socket.inet_ntoa(bytes(data[16:20])),
        )


@dataclass
class ReceivedDatagram:
    """An ICMP message together with its enclosing IPv4 header."""
    ip: IPv4Header
    icmp: ICMPMessage
    size: int  # bytes of ICMP (datagram length minus IP header)

    @property
    def ttl(self) -> int:
        return self.ip.ttl

    @property
    def icmp_offset(self) -> int:
        return self.ip.header_length


def decode_datagram(data: bytes) -> ReceivedDatagram:
    """
    Decode a raw-socket datagram into IP header and ICMP message.

    The ICMP message starts ihl * 4 bytes into the datagram.
    """
    ip = IPv4Header.decode(data)
    offset = ip.header_length
    if len(data) < offset + ICMP_HEADER_SIZE:
        raise TooShortError("IPv4/ICMP datagram", offset + ICMP_HEADER_SIZE, len(data))

    icmp = ICMPMessage.decode(data[offset:])
    return ReceivedDatagram(ip=ip, icmp=icmp, size=len(data) - offset)


def matches_probe(received: ReceivedDatagram, identifier: int, sequence: int) -> bool:
    """
    Check whether a received message answers the given probe.

    Echo messages must carry the probe's identifier and sequence. Error
    messages quote the offending datagram; when the quote is decodable its
    ICMP header must match too, otherwise the error is accepted as is.
    """
    icmp = received.icmp

    if icmp.type in (ICMPType.ECHO_REPLY, ICMPType.ECHO_REQUEST):
        return icmp.identifier == identifier and icmp.sequence == sequence

    if icmp.type in (ICMPType.DEST_UNREACHABLE, ICMPType.TIME_EXCEEDED):
        # the quoted datagram follows the 8-byte error header
        try:
            quoted = decode_datagram(icmp.payload)
        except DecodeError:
            return True
        if quoted.icmp.type != ICMPType.ECHO_REQUEST:
            return False
        return quoted.icmp.identifier == identifier and quoted.icmp.sequence == sequence

    return True
