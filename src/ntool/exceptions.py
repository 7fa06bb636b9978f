"""
Exception hierarchy for ntool.

Copyright (c) 2025 DNS Science.io, an After Dark Systems, LLC company.
All rights reserved.
"""


class NtoolError(Exception):
    """Base exception for ntool errors."""
    pass


class ResolutionError(NtoolError):
    """Target could not be resolved to an IPv4 address."""
    pass


class PrivilegeError(NtoolError):
    """Process lacks the privilege needed for raw sockets."""
    pass


class ChannelError(NtoolError):
    """A raw socket operation failed.

    Carries the name of the failed operation and the underlying cause so
    the operator can tell which syscall broke and why.
    """

    def __init__(self, operation: str, cause: BaseException | str):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class SocketCreationError(ChannelError):
    """Raw socket could not be created."""
    pass


class SendError(ChannelError):
    """Sending a datagram failed."""
    pass


class RecvError(ChannelError):
    """Receiving a datagram failed for a reason other than timeout."""
    pass


class ProbeTimeout(NtoolError):
    """No datagram arrived before the receive deadline."""
    pass


class DecodeError(NtoolError):
    """Bytes could not be decoded as the expected message."""
    pass


class TooShortError(DecodeError):
    """Buffer is smaller than the fixed header it should contain."""

    def __init__(self, what: str, needed: int, got: int):
        self.needed = needed
        self.got = got
        super().__init__(f"{what} needs at least {needed} bytes, got {got}")


class NoSamplesError(NtoolError):
    """Summary requested without any round-trip time samples."""
    pass
