"""
Helpers around the probe engines: target resolution, reverse lookup,
privilege check and hex dumps.
"""

import logging
import os
import socket

from netaddr import IPAddress, valid_ipv4

from ntool.exceptions import PrivilegeError, ResolutionError

logger = logging.getLogger(__name__)

BYTES_PER_LINE = 16


def require_root() -> None:
    """Raise PrivilegeError unless running with effective uid 0."""
    if os.geteuid() != 0:
        raise PrivilegeError("this process must be run as root")


def resolve_target(target: str) -> str:
    """
    Resolve a hostname or dotted-quad to an IPv4 address string.

    Args:
        target: Hostname, "localhost" or IPv4 address

    Returns:
        IPv4 address in dotted-quad form
    """
    if target == "localhost":
        return "127.0.0.1"

    if valid_ipv4(target):
        return str(IPAddress(target))

    try:
        address = socket.gethostbyname(target)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"cannot resolve the target {target!r}: {e}") from e

    logger.debug(f"Resolved {target} to {address}")
    return address


def reverse_lookup(address: str) -> str:
    """Hostname for an address, or the address itself when it has none."""
    try:
        hostname, _, _ = socket.gethostbyaddr(address)
    except OSError as e:
        logger.debug(f"Reverse lookup for {address} failed: {e}")
        return address
    return hostname


def hexdump(data: bytes) -> list[str]:
    """
    Render bytes as offset / hex / ASCII rows of 16 bytes.

    Example row:
        00000000   45 00 00 54 00 00 40 00  40 01 3c a7 7f 00 00 01   |E..T..@.@.<.....|
    """
    lines = []
    for offset in range(0, len(data), BYTES_PER_LINE):
        chunk = data[offset:offset + BYTES_PER_LINE]
        first = " ".join(f"{b:02x}" for b in chunk[:8])
        second = " ".join(f"{b:02x}" for b in chunk[8:])
        ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        lines.append(f"{offset:08x}   {first:<23}  {second:<23}   |{ascii_part:<16}|")
    return lines
