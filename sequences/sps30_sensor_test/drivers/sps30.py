"""
SPS30 Driver Module

Driver for the Sensirion SPS30 particulate matter sensor on a UART port.
Wraps the sps30_protocol package for sequence integration.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from .base import BaseDriver
from ..libs.sps30_protocol import (
    SerialTransport,
    SPS30Client,
    DeviceInfoType,
    RESET_SETTLE_TIME,
)
from ..libs.sps30_protocol.transport import ByteTransport

logger = logging.getLogger(__name__)


class SPS30Driver(BaseDriver):
    """
    SPS30 particulate matter sensor driver.

    The protocol allows one outstanding request per port, so every command
    goes through a single lock.

    Attributes:
        port: Serial port path
        baudrate: Communication speed
        timeout: Response timeout in seconds
        reset_settle_time: Wait after reset before the next command
    """

    def __init__(
        self,
        name: str = "SPS30Driver",
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[ByteTransport] = None
    ):
        """
        Initialize SPS30 driver.

        Args:
            name: Driver name
            config: Configuration with keys:
                - port: Serial port (default: "/dev/ttyUSB0")
                - baudrate: Baud rate (default: 115200)
                - timeout: Response timeout (default: 5.0)
                - read_timeout: Single byte poll time (default: 0.01)
                - reset_settle_time: Seconds to wait after reset (default: 0.1)
            transport: Already open transport to use instead of a serial port
        """
        super().__init__(name=name, config=config)

        self.port: str = self.config.get("port", "/dev/ttyUSB0")
        self.baudrate: int = self.config.get("baudrate", 115200)
        self.timeout: float = self.config.get("timeout", 5.0)
        self.read_timeout: float = self.config.get("read_timeout", 0.01)
        self.reset_settle_time: float = self.config.get("reset_settle_time", RESET_SETTLE_TIME)

        self._external_transport = transport
        self._transport: Optional[ByteTransport] = None
        self._client: Optional[SPS30Client] = None
        self._lock = asyncio.Lock()
        self._product_name: Optional[str] = None
        self._serial_number: Optional[str] = None

    async def connect(self) -> bool:
        """
        Open the port and read the sensor identification.

        Returns:
            bool: True if connection successful
        """
        try:
            if self._external_transport is not None:
                self._transport = self._external_transport
            else:
                logger.info(f"Connecting to SPS30 on {self.port} at {self.baudrate} bps")
                transport = SerialTransport(
                    port=self.port,
                    baudrate=self.baudrate,
                    read_timeout=self.read_timeout
                )
                transport.open()
                self._transport = transport

            self._client = SPS30Client(
                transport=self._transport,
                response_timeout=self.timeout
            )

            # Identification doubles as a link check
            product = await self._call(self._client.device_info, DeviceInfoType.PRODUCT_NAME)
            serial_number = await self._call(self._client.device_info, DeviceInfoType.SERIAL_NUMBER)
            self._product_name = product.value
            self._serial_number = serial_number.value

            self._connected = True
            logger.info(f"Connected to SPS30 {self._product_name}, serial {self._serial_number}")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to SPS30: {e}")
            await self.disconnect()
            return False

    async def disconnect(self) -> None:
        """Close the serial port."""
        if isinstance(self._transport, SerialTransport):
            self._transport.close()
        self._transport = None
        self._client = None
        self._connected = False
        logger.info("Disconnected from SPS30")

    async def reset(self) -> None:
        """Soft reset the sensor and wait until it accepts commands again."""
        await self._call(self._require_client().reset)
        await asyncio.sleep(self.reset_settle_time)
        logger.info("SPS30 reset complete")

    async def identify(self) -> str:
        """
        Return sensor identification string.

        Returns:
            str: "Sensirion,<product>,<serial>"
        """
        product = self._product_name or "SPS30"
        serial_number = self._serial_number or "Unknown"
        return f"Sensirion,{product},{serial_number}"

    # === Measurement Methods ===

    async def start_measurement(self) -> None:
        await self._call(self._require_client().start_measurement)

    async def stop_measurement(self) -> None:
        await self._call(self._require_client().stop_measurement)

    async def read_measurement(self) -> Dict[str, float]:
        """
        Read the latest measured values.

        Returns:
            Dict of value name to float (see Measurement fields)
        """
        measurement = await self._call(self._require_client().read_measurement)
        return measurement.to_dict()

    async def read_cleaning_interval(self) -> int:
        return await self._call(self._require_client().read_cleaning_interval)

    async def write_cleaning_interval(self, seconds: int) -> None:
        await self._call(self._require_client().write_cleaning_interval, seconds)

    async def start_fan_cleaning(self) -> None:
        await self._call(self._require_client().start_fan_cleaning)

    async def device_info(self, info_type: DeviceInfoType) -> str:
        """Read an identification string as text."""
        info = await self._call(self._require_client().device_info, info_type)
        return info.value

    # === Helper Methods ===

    def _require_client(self) -> SPS30Client:
        if not self._client:
            raise RuntimeError("Not connected to SPS30")
        return self._client

    async def _call(self, func, *args) -> Any:
        """
        Run a blocking client call in the executor, one at a time.

        The client uses synchronous serial communication, so it runs in a
        thread pool to avoid blocking the event loop. A cancelled caller
        keeps the lock until the exchange in the thread has finished.
        """
        async with self._lock:
            loop = asyncio.get_event_loop()
            future = loop.run_in_executor(None, lambda: func(*args))
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                await asyncio.wait([future])
                raise
