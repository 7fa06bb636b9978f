"""
ICMP Module

Provides ICMP message encoding/decoding, the Internet checksum and
the raw socket channel shared by the ping and traceroute engines.
"""

from ntool.icmp.packet import (
    checksum,
    decode_datagram,
    make_payload,
    matches_probe,
    unreach_description,
    ICMPMessage,
    ICMPType,
    IPv4Header,
    ReceivedDatagram,
    DEFAULT_PAYLOAD,
    ICMP_HEADER_SIZE,
    ICMP_PACKET_SIZE,
    ICMP_PAYLOAD_SIZE,
)
from ntool.icmp.channel import RawChannel, wait_for_reply

__all__ = [
    "checksum",
    "decode_datagram",
    "make_payload",
    "matches_probe",
    "unreach_description",
    "ICMPMessage",
    "ICMPType",
    "IPv4Header",
    "ReceivedDatagram",
    "RawChannel",
    "wait_for_reply",
    "DEFAULT_PAYLOAD",
    "ICMP_HEADER_SIZE",
    "ICMP_PACKET_SIZE",
    "ICMP_PAYLOAD_SIZE",
]
