"""
Frame building, reading and validation.

MOSI Format: [ADR][CMD][L][DATA...][CHK]
MISO Format: [ADR][CMD][STATE][L][DATA...][CHK]
- ADR: Slave address, always 0x00
- CMD: Command code
- STATE: 0x00 on success, error code otherwise (MISO only)
- L: Number of DATA bytes (0-255)
- CHK: Checksum over ADR through the last DATA byte

On the wire both are SHDLC stuffed and wrapped in 0x7E delimiters.

Reference: SPS30 datasheet, section 4.1
"""

from dataclasses import dataclass, field
import struct

from .checksum import compute_checksum, verify_checksum
from .constants import (
    FRAME_DELIMITER, SLAVE_ADDRESS, MISO_OVERHEAD, MAX_FRAME_READ, MAX_DATA_LEN,
    START_MEASUREMENT_SUBCOMMAND, OUTPUT_FORMAT_FLOAT,
    CLEANING_INTERVAL_SUBCOMMAND, UINT32_MAX,
    Command, DeviceInfoType,
)
from .exceptions import (
    ChecksumError, InvalidFrameError, InvalidResponseError, StatusError
)
from . import shdlc


@dataclass
class ResponseFrame:
    """Validated MISO frame."""
    address: int
    cmd: int
    state: int
    data: bytes = field(default_factory=bytes)
    checksum: int = 0

    @property
    def data_len(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (f"ResponseFrame(cmd={Command.name_of(self.cmd)}, state=0x{self.state:02X}, "
                f"data={self.data.hex(' ') if self.data else '(empty)'})")


class FrameBuilder:
    """Builds MOSI payloads (unstuffed, checksum appended)."""

    @staticmethod
    def build(cmd: int, data: bytes = b"") -> bytes:
        """
        Build a MOSI payload with checksum.

        Args:
            cmd: Command code
            data: Command data bytes

        Returns:
            Payload bytes, ready for SHDLC encoding
        """
        if len(data) > MAX_DATA_LEN:
            raise ValueError(f"Data exceeds maximum size ({MAX_DATA_LEN})")

        body = bytes([SLAVE_ADDRESS, cmd, len(data)]) + bytes(data)
        return body + bytes([compute_checksum(body)])

    @staticmethod
    def build_start_measurement() -> bytes:
        """Build START_MEASUREMENT payload requesting float output."""
        return FrameBuilder.build(
            Command.START_MEASUREMENT,
            bytes([START_MEASUREMENT_SUBCOMMAND, OUTPUT_FORMAT_FLOAT])
        )

    @staticmethod
    def build_stop_measurement() -> bytes:
        """Build STOP_MEASUREMENT payload."""
        return FrameBuilder.build(Command.STOP_MEASUREMENT)

    @staticmethod
    def build_read_measured_data() -> bytes:
        """Build READ_MEASURED_DATA payload."""
        return FrameBuilder.build(Command.READ_MEASURED_DATA)

    @staticmethod
    def build_read_cleaning_interval() -> bytes:
        """Build read AUTO_CLEANING_INTERVAL payload."""
        return FrameBuilder.build(
            Command.AUTO_CLEANING_INTERVAL,
            bytes([CLEANING_INTERVAL_SUBCOMMAND])
        )

    @staticmethod
    def build_write_cleaning_interval(seconds: int) -> bytes:
        """Build write AUTO_CLEANING_INTERVAL payload."""
        if not 0 <= seconds <= UINT32_MAX:
            raise ValueError(f"Cleaning interval out of range: {seconds}")
        data = bytes([CLEANING_INTERVAL_SUBCOMMAND]) + struct.pack('>I', seconds)
        return FrameBuilder.build(Command.AUTO_CLEANING_INTERVAL, data)

    @staticmethod
    def build_start_fan_cleaning() -> bytes:
        """Build START_FAN_CLEANING payload."""
        return FrameBuilder.build(Command.START_FAN_CLEANING)

    @staticmethod
    def build_device_information(info_type: DeviceInfoType) -> bytes:
        """Build DEVICE_INFORMATION payload."""
        return FrameBuilder.build(Command.DEVICE_INFORMATION, bytes([info_type]))

    @staticmethod
    def build_reset() -> bytes:
        """Build RESET payload."""
        return FrameBuilder.build(Command.RESET)


class FrameReader:
    """Collects a MISO byte stream until two delimiters have been seen."""

    def __init__(self, max_bytes: int = MAX_FRAME_READ):
        self.max_bytes = max_bytes
        self._buffer = bytearray()
        self._delimiters = 0

    def feed(self, byte: int) -> bool:
        """
        Add one received byte.

        Args:
            byte: Received byte value

        Returns:
            True once the frame is complete

        Raises:
            InvalidFrameError: If the read limit is exceeded
        """
        if byte == FRAME_DELIMITER:
            self._delimiters += 1
        self._buffer.append(byte)

        # The cap wins over a delimiter arriving as byte max_bytes + 1
        if len(self._buffer) > self.max_bytes:
            raise InvalidFrameError(
                f"No frame within {self.max_bytes} bytes "
                f"({self._delimiters} delimiter(s) seen)"
            )
        return self.complete

    @property
    def complete(self) -> bool:
        return self._delimiters >= 2

    @property
    def buffer_size(self) -> int:
        return len(self._buffer)

    @property
    def stream(self) -> bytes:
        return bytes(self._buffer)

    def payload(self) -> bytes:
        """
        Decode the captured stream and verify its checksum.

        Returns:
            Decoded payload with the checksum byte still attached

        Raises:
            FramingError: If SHDLC decoding fails
            ChecksumError: If the trailing checksum does not match
        """
        payload = shdlc.decode(self.stream)
        if not verify_checksum(payload):
            raise ChecksumError(compute_checksum(payload[:-1]), payload[-1])
        return payload

    def clear(self) -> None:
        """Clear collected bytes."""
        self._buffer = bytearray()
        self._delimiters = 0


def validate_response(payload: bytes, cmd: int) -> ResponseFrame:
    """
    Check a decoded MISO payload against the command that was sent.

    Args:
        payload: Decoded payload including the checksum byte
        cmd: Command code of the request

    Returns:
        Validated ResponseFrame

    Raises:
        InvalidResponseError: If too short, for another command, or the
            length field is wrong
        StatusError: If the sensor reported a non-zero state
    """
    if len(payload) < MISO_OVERHEAD:
        raise InvalidResponseError(f"Response too short ({len(payload)} bytes)")

    if payload[1] != cmd:
        raise InvalidResponseError(
            f"Response for command 0x{payload[1]:02X}, expected 0x{cmd:02X}"
        )

    if payload[2] != 0:
        raise StatusError(payload[2], cmd)

    data_len = len(payload) - MISO_OVERHEAD
    if payload[3] != data_len:
        raise InvalidResponseError(
            f"Length field {payload[3]} does not match {data_len} data bytes"
        )

    return ResponseFrame(
        address=payload[0],
        cmd=payload[1],
        state=payload[2],
        data=bytes(payload[4:4 + data_len]),
        checksum=payload[-1],
    )
