"""
Custom exceptions for the SPS30 protocol.

The kinds are flat: every failure of a command derives directly from
SPS30Error so callers can tell transport trouble from protocol violations
from faults reported by the sensor itself.
"""

from .constants import StateCode


class SPS30Error(Exception):
    """Base exception for SPS30 protocol errors."""
    pass


class SerialConnectionError(SPS30Error):
    """Serial port could not be opened or is not open."""
    pass


class WriteError(SPS30Error):
    """Transport failed to accept outgoing bytes."""
    pass


class ReadError(SPS30Error):
    """Transport reported a hard fault while waiting for a byte."""
    pass


class ResponseTimeoutError(ReadError):
    """No complete response arrived before the deadline."""

    def __init__(self, timeout: float, received: int = 0):
        self.timeout = timeout
        self.received = received
        super().__init__(
            f"No complete response within {timeout}s ({received} bytes received)"
        )


class FramingError(SPS30Error):
    """SHDLC byte stream could not be de-stuffed."""
    pass


class InvalidFrameError(SPS30Error):
    """No frame within the read limit, or unexpected response length."""
    pass


class EmptyResultError(SPS30Error):
    """Response is valid but carries no usable data."""
    pass


class ChecksumError(SPS30Error):
    """Checksum verification failed."""

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(
            f"Checksum mismatch: expected 0x{expected:02X}, received 0x{received:02X}"
        )


class InvalidResponseError(SPS30Error):
    """Response does not match the command that was sent."""
    pass


class StatusError(SPS30Error):
    """Sensor reported a non-zero STATE in its response."""

    def __init__(self, state: int, command: int):
        self.state = state
        self.command = command
        self.error_name = StateCode.name_of(state)
        super().__init__(
            f"Device error for command 0x{command:02X}: {self.error_name} (0x{state:02X})"
        )


# Possibly transient, worth another attempt
TRANSPORT_ERRORS = (WriteError, ReadError, FramingError)

# Sender and sensor disagree, a reset is the usual way to resynchronise
PROTOCOL_ERRORS = (ChecksumError, InvalidResponseError, StatusError)
