"""
SPS30 data structures.

All multi-byte values use Big-endian byte order.
"""

from dataclasses import dataclass, fields
from typing import Dict, Iterator, Tuple
import struct

from .constants import DEVICE_INFO_SIZE, MEASUREMENT_COUNT, MEASUREMENT_DATA_LEN, DeviceInfoType


@dataclass
class Measurement:
    """
    One set of measured values, in the order the sensor sends them.

    Behaves as a sequence of its ten values, so ``m[0]`` is the PM1.0
    mass concentration and ``list(m)`` gives all of them.
    """
    mass_pm1_0: float     # ug/m3
    mass_pm2_5: float     # ug/m3
    mass_pm4_0: float     # ug/m3
    mass_pm10: float      # ug/m3
    number_pm0_5: float   # #/cm3
    number_pm1_0: float   # #/cm3
    number_pm2_5: float   # #/cm3
    number_pm4_0: float   # #/cm3
    number_pm10: float    # #/cm3
    typical_size: float   # um

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Measurement':
        """Deserialize ten big-endian IEEE754 binary32 values."""
        if len(data) != MEASUREMENT_DATA_LEN:
            raise ValueError(
                f"Measurement needs {MEASUREMENT_DATA_LEN} bytes, got {len(data)}"
            )
        return cls(*struct.unpack(f'>{MEASUREMENT_COUNT}f', data))

    def to_bytes(self) -> bytes:
        """Serialize to big-endian bytes."""
        return struct.pack(f'>{MEASUREMENT_COUNT}f', *self.values())

    def values(self) -> Tuple[float, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __iter__(self) -> Iterator[float]:
        return iter(self.values())

    def __len__(self) -> int:
        return MEASUREMENT_COUNT

    def __getitem__(self, index):
        return self.values()[index]

    def __repr__(self) -> str:
        return (f"Measurement(PM1.0={self.mass_pm1_0:.2f}, PM2.5={self.mass_pm2_5:.2f}, "
                f"PM4.0={self.mass_pm4_0:.2f}, PM10={self.mass_pm10:.2f} ug/m3, "
                f"size={self.typical_size:.2f}um)")


@dataclass
class DeviceInfoString:
    """Identification string returned by DEVICE_INFORMATION."""
    info_type: DeviceInfoType
    raw: bytes     # Always DEVICE_INFO_SIZE bytes, zero filled
    length: int    # Bytes actually reported by the sensor

    @classmethod
    def from_bytes(cls, info_type: DeviceInfoType, data: bytes) -> 'DeviceInfoString':
        """Copy reported bytes into a zero-filled fixed size buffer."""
        if len(data) > DEVICE_INFO_SIZE:
            raise ValueError(
                f"Device info exceeds {DEVICE_INFO_SIZE} bytes ({len(data)})"
            )
        raw = bytes(data) + bytes(DEVICE_INFO_SIZE - len(data))
        return cls(info_type, raw, len(data))

    @property
    def value(self) -> str:
        """Reported bytes as text, without the NUL terminator."""
        return self.raw[:self.length].split(b'\x00', 1)[0].decode('ascii', errors='replace')

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"DeviceInfoString({self.info_type.name}={self.value!r}, length={self.length})"
