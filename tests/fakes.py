# tests/fakes.py
import socket
import struct
from collections import deque
from dataclasses import dataclass

from ntool.exceptions import ProbeTimeout, RecvError
from ntool.icmp.packet import ICMPMessage, ICMPType

DEST = "10.0.0.99"


def ipv4_header(source, destination=DEST, ttl=64, payload_len=0, ihl=5):
    """Build an IPv4 header (options zero-filled when ihl > 5)."""
    header = struct.pack(
        "!BBHHHBBH4s4s",
        (4 << 4) | ihl, 0, ihl * 4 + payload_len,
        0, 0,
        ttl, socket.IPPROTO_ICMP, 0,
        socket.inet_aton(source), socket.inet_aton(destination),
    )
    return header + b"\x00" * (ihl * 4 - 20)


def datagram(source, message, ttl=64, ihl=5, destination=DEST):
    icmp = message.encode()
    return ipv4_header(source, destination, ttl=ttl, payload_len=len(icmp), ihl=ihl) + icmp


@dataclass
class Response:
    """One scripted thing for FakeChannel.recv to do."""
    kind: str                 # echo_reply | echo_request | time_exceeded | unreachable | icmp | stale | raw | timeout | interrupt | error
    source: str | None = None
    rtt_ms: float = 1.0
    ttl: int = 64
    icmp_type: int = 0
    code: int = 0
    data: bytes = b""


def echo_reply(source, rtt_ms=1.0, ttl=64):
    return Response("echo_reply", source, rtt_ms, ttl)


def echo_request(source, rtt_ms=0.05, ttl=64):
    return Response("echo_request", source, rtt_ms, ttl)


def time_exceeded(source, rtt_ms=1.0):
    return Response("time_exceeded", source, rtt_ms, ttl=250)


def unreachable(source, code=1):
    return Response("unreachable", source, code=code)


def other_icmp(source, icmp_type, code=0):
    return Response("icmp", source, icmp_type=icmp_type, code=code)


def stale_reply(source):
    return Response("stale", source)


def raw(source, data):
    return Response("raw", source, data=data)


TIMEOUT = Response("timeout")
INTERRUPT = Response("interrupt")
ERROR = Response("error")


class FakeChannel:
    """
    Scripted stand-in for RawChannel.

    script: list of Responses consumed in order, or dict[ttl] -> list of
    Responses keyed on the TTL set with set_ttl(). When nothing scripted is
    left, recv() times out.
    """

    def __init__(self, script=None):
        if isinstance(script, dict):
            self.by_ttl = {k: deque(v) for k, v in script.items()}
            self.queue = None
        else:
            self.by_ttl = None
            self.queue = deque(script or [])
        self.ttl = None
        self.ttl_history = []
        self.sent = []
        self.sent_at = None
        self.received_at = None
        self.close_calls = 0
        self._clock = 100.0

    @property
    def closed(self):
        return self.close_calls > 0

    def send(self, data, destination):
        self.sent.append((ICMPMessage.decode(data), destination))
        self._clock += 1.0
        self.sent_at = self._clock
        return len(data)

    def _next(self):
        if self.by_ttl is not None:
            dq = self.by_ttl.get(self.ttl)
        else:
            dq = self.queue
        if dq:
            return dq.popleft()
        return TIMEOUT

    def recv(self, timeout):
        response = self._next()
        if response.kind == "timeout":
            raise ProbeTimeout("scripted timeout")
        if response.kind == "interrupt":
            raise KeyboardInterrupt
        if response.kind == "error":
            raise RecvError("recvfrom", "scripted failure")

        probe, _ = self.sent[-1]
        self.received_at = self.sent_at + response.rtt_ms / 1000

        if response.kind == "raw":
            return response.data, response.source

        if response.kind == "echo_reply":
            message = ICMPMessage(ICMPType.ECHO_REPLY, 0, probe.identifier, probe.sequence, probe.payload)
        elif response.kind == "echo_request":
            message = ICMPMessage(ICMPType.ECHO_REQUEST, 0, probe.identifier, probe.sequence, probe.payload)
        elif response.kind == "stale":
            message = ICMPMessage(ICMPType.ECHO_REPLY, 0, probe.identifier, probe.sequence - 1, probe.payload)
        elif response.kind in ("time_exceeded", "unreachable"):
            quoted = ICMPMessage(ICMPType.ECHO_REQUEST, 0, probe.identifier, probe.sequence, probe.payload).encode()
            icmp_type = ICMPType.TIME_EXCEEDED if response.kind == "time_exceeded" else ICMPType.DEST_UNREACHABLE
            message = ICMPMessage(
                icmp_type, response.code, 0, 0,
                ipv4_header(DEST, DEST, ttl=1, payload_len=len(quoted)) + quoted[:8],
            )
        else:
            message = ICMPMessage(response.icmp_type, response.code, 0, 0, b"")

        return datagram(response.source, message, ttl=response.ttl), response.source

    def set_ttl(self, ttl):
        self.ttl = ttl
        self.ttl_history.append(ttl)

    def close(self):
        self.close_calls += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
