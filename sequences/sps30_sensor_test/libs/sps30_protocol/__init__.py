"""
SPS30 Protocol - Python implementation of the Sensirion SPS30 UART protocol.

This package provides:
- Protocol constants, command codes and state codes
- SHDLC checksum and byte stuffing
- MOSI frame building, MISO frame reading and validation
- Serial transport layer
- High-level protocol client
- Measurement data structures
"""

from .constants import (
    FRAME_DELIMITER, MAX_FRAME_READ, RESET_SETTLE_TIME,
    Command, DeviceInfoType, StateCode
)
from .checksum import compute_checksum, verify_checksum
from .exceptions import (
    SPS30Error, SerialConnectionError, WriteError, ReadError, ResponseTimeoutError,
    FramingError, InvalidFrameError, EmptyResultError, ChecksumError,
    InvalidResponseError, StatusError, TRANSPORT_ERRORS, PROTOCOL_ERRORS
)
from .frame import ResponseFrame, FrameBuilder, FrameReader, validate_response
from .measurement import Measurement, DeviceInfoString
from .transport import ByteTransport, SerialTransport
from .client import SPS30Client

__version__ = "1.0.0"
__all__ = [
    # Constants
    "FRAME_DELIMITER", "MAX_FRAME_READ", "RESET_SETTLE_TIME",
    "Command", "DeviceInfoType", "StateCode",
    # Checksum
    "compute_checksum", "verify_checksum",
    # Exceptions
    "SPS30Error", "SerialConnectionError", "WriteError", "ReadError",
    "ResponseTimeoutError", "FramingError", "InvalidFrameError",
    "EmptyResultError", "ChecksumError", "InvalidResponseError", "StatusError",
    "TRANSPORT_ERRORS", "PROTOCOL_ERRORS",
    # Frame
    "ResponseFrame", "FrameBuilder", "FrameReader", "validate_response",
    # Data
    "Measurement", "DeviceInfoString",
    # Transport
    "ByteTransport", "SerialTransport",
    # Client
    "SPS30Client",
]
