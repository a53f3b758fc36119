"""
Base Driver Module

Common async interface for the sensor drivers used by the sequence.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseDriver(ABC):
    """
    Async sensor driver.

    Subclasses own one port each; a blocking protocol client underneath
    is run in an executor by the concrete driver.

    Attributes:
        name: Name used in logs and repr
        config: Port and timing settings
    """

    def __init__(self, name: str = "BaseDriver", config: Optional[Dict[str, Any]] = None):
        self.name = name
        self.config = config or {}
        self._connected = False

    @abstractmethod
    async def connect(self) -> bool:
        """
        Open the port and check that the sensor answers.

        Returns:
            bool: False if the port or the sensor is unavailable
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the port. Safe to call when not connected."""
        ...

    @abstractmethod
    async def reset(self) -> None:
        """Soft reset the sensor and wait until it accepts commands."""
        ...

    async def identify(self) -> str:
        """Vendor, product and serial number, comma separated."""
        return "Unknown"

    async def is_connected(self) -> bool:
        return self._connected

    async def __aenter__(self) -> "BaseDriver":
        if not await self.connect():
            raise RuntimeError(f"{self.name}: connection failed")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    def __repr__(self) -> str:
        state = "connected" if self._connected else "disconnected"
        return f"{self.__class__.__name__}({self.name!r}, {state})"
