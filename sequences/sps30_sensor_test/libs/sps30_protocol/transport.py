"""
Serial transport layer.

Provides blocking writes and byte-at-a-time non-blocking reads over a
pyserial port configured the way the SPS30 expects it (115200 8N1, no flow
control).
"""

import serial
import logging
from typing import Optional, Protocol

from .exceptions import SerialConnectionError, WriteError, ReadError

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200


class ByteTransport(Protocol):
    """What the protocol client needs from a transport."""

    def write_all(self, data: bytes) -> None:
        ...

    def read_byte(self) -> Optional[int]:
        ...

    def flush(self) -> None:
        ...


class SerialTransport:
    """Serial communication transport layer."""

    def __init__(
        self,
        port: str,
        baudrate: int = DEFAULT_BAUDRATE,
        read_timeout: float = 0.0,
        write_timeout: Optional[float] = 1.0
    ):
        """
        Initialize serial transport.

        Args:
            port: Serial port name (e.g., '/dev/ttyUSB0' or 'COM3')
            baudrate: Baud rate (default: 115200)
            read_timeout: Time a single byte read may wait; 0 never blocks
            write_timeout: Write timeout in seconds (None blocks forever)
        """
        self.port = port
        self.baudrate = baudrate
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self._serial: Optional[serial.Serial] = None

    def open(self) -> None:
        """Open serial port."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=self.read_timeout,
                write_timeout=self.write_timeout
            )
            logger.info(f"Opened serial port {self.port} at {self.baudrate} bps")
        except serial.SerialException as e:
            raise SerialConnectionError(f"Failed to open {self.port}: {e}") from e

    def close(self) -> None:
        """Close serial port."""
        if self._serial:
            try:
                self._serial.close()
            except serial.SerialException as e:
                logger.warning(f"Error closing {self.port}: {e}")
            self._serial = None
            logger.info(f"Closed serial port {self.port}")

    def write_all(self, data: bytes) -> None:
        """
        Write all bytes and wait until they are transmitted.

        Args:
            data: Bytes to send

        Raises:
            WriteError: If the port is not open or the write fails
        """
        if not self.is_open:
            raise WriteError("Serial port not open")

        try:
            count = self._serial.write(data)
            self._serial.flush()
        except serial.SerialException as e:
            raise WriteError(f"Send failed: {e}") from e

        if count != len(data):
            raise WriteError(f"Short write: {count} of {len(data)} bytes")
        logger.debug(f"TX ({count} bytes): {data.hex(' ')}")

    def read_byte(self) -> Optional[int]:
        """
        Read a single byte without blocking beyond read_timeout.

        Returns:
            Byte value, or None if no data is available yet

        Raises:
            ReadError: If the port is not open or the read fails
        """
        if not self.is_open:
            raise ReadError("Serial port not open")

        try:
            data = self._serial.read(1)
        except serial.SerialException as e:
            raise ReadError(f"Receive failed: {e}") from e

        if not data:
            return None
        return data[0]

    def flush(self) -> None:
        """Discard anything waiting in the serial buffers."""
        if self.is_open:
            try:
                self._serial.reset_input_buffer()
                self._serial.reset_output_buffer()
            except serial.SerialException as e:
                raise ReadError(f"Flush failed: {e}") from e

    @property
    def is_open(self) -> bool:
        """Check if port is open."""
        return self._serial is not None and self._serial.is_open

    def __enter__(self) -> 'SerialTransport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport({self.port}, {self.baudrate}, {status})"
