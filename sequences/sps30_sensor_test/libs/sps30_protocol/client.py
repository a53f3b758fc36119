"""
High-level protocol client.

Provides a simple API for the SPS30 command set. Every call is one
synchronous request/response exchange; nothing is retried and every
failure is raised to the caller.
"""

import time
import logging
from typing import Optional
import struct

from .constants import (
    MISO_OVERHEAD, MEASUREMENT_DATA_LEN, DEVICE_INFO_SIZE,
    Command, DeviceInfoType
)
from .exceptions import (
    EmptyResultError, InvalidFrameError, InvalidResponseError, ResponseTimeoutError
)
from .frame import FrameBuilder, FrameReader, ResponseFrame, validate_response
from .measurement import Measurement, DeviceInfoString
from .transport import ByteTransport
from . import shdlc

logger = logging.getLogger(__name__)


class SPS30Client:
    """Client for the SPS30 SHDLC protocol."""

    def __init__(
        self,
        transport: ByteTransport,
        response_timeout: Optional[float] = 5.0
    ):
        """
        Initialize SPS30 client.

        Args:
            transport: Transport providing write_all(), read_byte() and flush()
            response_timeout: Seconds to keep polling while no byte is
                available (None polls forever)
        """
        self.transport = transport
        self.response_timeout = response_timeout

    def _send(self, payload: bytes) -> None:
        """SHDLC-encode a MOSI payload and write it."""
        logger.debug(f"Sending frame: {payload.hex(' ')}")
        self.transport.write_all(shdlc.encode(payload))

    def _receive(self) -> bytes:
        """
        Read one MISO frame.

        Returns:
            Decoded payload with verified checksum still attached

        Raises:
            ReadError: On a hard transport failure or when the deadline passes
            InvalidFrameError: If no frame completes within the read limit
            FramingError: If SHDLC decoding fails
            ChecksumError: If the checksum does not match
        """
        reader = FrameReader()
        deadline = None
        if self.response_timeout is not None:
            deadline = time.monotonic() + self.response_timeout

        while True:
            byte = self.transport.read_byte()
            if byte is None:
                if deadline is not None and time.monotonic() > deadline:
                    raise ResponseTimeoutError(self.response_timeout, reader.buffer_size)
                continue
            if reader.feed(byte):
                break

        payload = reader.payload()
        logger.debug(f"Received frame: {payload.hex(' ')}")
        return payload

    def _transceive(self, payload: bytes) -> bytes:
        # Drop leftovers, e.g. a late answer to a timed out request
        self.transport.flush()
        self._send(payload)
        return self._receive()

    def _execute(self, payload: bytes, cmd: Command) -> ResponseFrame:
        """Send a command and validate its response."""
        return validate_response(self._transceive(payload), cmd)

    def start_measurement(self) -> ResponseFrame:
        """Enter measurement mode with IEEE754 float output."""
        frame = self._execute(FrameBuilder.build_start_measurement(), Command.START_MEASUREMENT)
        logger.info("Measurement started")
        return frame

    def stop_measurement(self) -> ResponseFrame:
        """Leave measurement mode."""
        frame = self._execute(FrameBuilder.build_stop_measurement(), Command.STOP_MEASUREMENT)
        logger.info("Measurement stopped")
        return frame

    def read_measurement(self) -> Measurement:
        """
        Read the latest measured values.

        Returns:
            Measurement with ten float values

        Raises:
            EmptyResultError: If no new measurement is available yet
            InvalidFrameError: If the response has an unexpected length
        """
        payload = self._transceive(FrameBuilder.build_read_measured_data())

        if len(payload) not in (MISO_OVERHEAD, MISO_OVERHEAD + MEASUREMENT_DATA_LEN):
            raise InvalidFrameError(
                f"Unexpected measurement response length {len(payload)}"
            )

        frame = validate_response(payload, Command.READ_MEASURED_DATA)
        if not frame.data:
            raise EmptyResultError("No new measurement available")

        measurement = Measurement.from_bytes(frame.data)
        logger.info(f"Read {measurement}")
        return measurement

    def read_cleaning_interval(self) -> int:
        """
        Read the auto cleaning interval.

        Returns:
            Interval in seconds
        """
        frame = self._execute(
            FrameBuilder.build_read_cleaning_interval(),
            Command.AUTO_CLEANING_INTERVAL
        )
        if frame.data_len != 4:
            raise InvalidResponseError(
                f"Cleaning interval needs 4 data bytes, got {frame.data_len}"
            )

        seconds = struct.unpack('>I', frame.data)[0]
        logger.info(f"Auto cleaning interval: {seconds}s")
        return seconds

    def write_cleaning_interval(self, seconds: int) -> ResponseFrame:
        """
        Write the auto cleaning interval.

        Args:
            seconds: Interval in seconds (0 disables auto cleaning)
        """
        frame = self._execute(
            FrameBuilder.build_write_cleaning_interval(seconds),
            Command.AUTO_CLEANING_INTERVAL
        )
        if frame.data_len != 0:
            raise InvalidResponseError(
                f"Write cleaning interval expects no data, got {frame.data_len} bytes"
            )

        logger.info(f"Set auto cleaning interval: {seconds}s")
        return frame

    def start_fan_cleaning(self) -> ResponseFrame:
        """Start a manual fan cleaning cycle (measurement mode only)."""
        frame = self._execute(FrameBuilder.build_start_fan_cleaning(), Command.START_FAN_CLEANING)
        logger.info("Fan cleaning started")
        return frame

    def device_info(self, info_type: DeviceInfoType) -> DeviceInfoString:
        """
        Read an identification string.

        Args:
            info_type: Which string to read

        Returns:
            DeviceInfoString with a 32-byte buffer and the reported length

        Raises:
            EmptyResultError: If the sensor reports more than 32 bytes
        """
        info_type = DeviceInfoType(info_type)
        frame = self._execute(
            FrameBuilder.build_device_information(info_type),
            Command.DEVICE_INFORMATION
        )
        if frame.data_len > DEVICE_INFO_SIZE:
            raise EmptyResultError(
                f"{info_type.name} length {frame.data_len} exceeds {DEVICE_INFO_SIZE} bytes"
            )

        info = DeviceInfoString.from_bytes(info_type, frame.data)
        logger.info(f"{info_type.name}: {info.value}")
        return info

    def reset(self) -> ResponseFrame:
        """
        Soft reset the sensor.

        The sensor needs RESET_SETTLE_TIME before it accepts the next
        command; waiting is up to the caller.
        """
        frame = self._execute(FrameBuilder.build_reset(), Command.RESET)
        logger.info("Sensor reset")
        return frame
