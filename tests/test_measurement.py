"""Tests for SPS30 data structures."""

import math
import struct

import pytest

from sequences.sps30_sensor_test.libs.sps30_protocol.constants import DeviceInfoType
from sequences.sps30_sensor_test.libs.sps30_protocol.measurement import (
    DeviceInfoString,
    Measurement,
)


def test_measurement_field_order():
    """Mass concentrations, number concentrations, then particle size."""
    data = struct.pack('>10f', 1.5, 2.5, 3.5, 4.5, 5.5, 6.5, 7.5, 8.5, 9.5, 0.75)
    m = Measurement.from_bytes(data)
    assert m.mass_pm1_0 == 1.5
    assert m.mass_pm10 == 4.5
    assert m.number_pm0_5 == 5.5
    assert m.number_pm10 == 9.5
    assert m.typical_size == 0.75
    assert m[-1] == 0.75


def test_measurement_big_endian():
    data = bytes.fromhex("41200000") + bytes(36)  # 10.0
    assert Measurement.from_bytes(data).mass_pm1_0 == 10.0


def test_measurement_nan_passes_through():
    data = bytes.fromhex("7FC00000") + bytes(36)
    assert math.isnan(Measurement.from_bytes(data)[0])


def test_measurement_wrong_length():
    with pytest.raises(ValueError):
        Measurement.from_bytes(bytes(39))


def test_measurement_to_dict():
    m = Measurement(*range(10))
    d = m.to_dict()
    assert list(d) == [
        "mass_pm1_0", "mass_pm2_5", "mass_pm4_0", "mass_pm10",
        "number_pm0_5", "number_pm1_0", "number_pm2_5", "number_pm4_0", "number_pm10",
        "typical_size",
    ]
    assert d["number_pm2_5"] == 6


def test_measurement_to_bytes():
    data = struct.pack('>10f', *[float(i) for i in range(10)])
    assert Measurement.from_bytes(data).to_bytes() == data


def test_measurement_repr():
    m = Measurement(*[1.0] * 10)
    assert "PM2.5=1.00" in repr(m)


def test_device_info_zero_fill():
    info = DeviceInfoString.from_bytes(DeviceInfoType.PRODUCT_NAME, b"SPS30\x00")
    assert info.raw == b"SPS30" + bytes(27)
    assert info.length == 6
    assert str(info) == "SPS30"


def test_device_info_without_terminator():
    """Length is authoritative, a terminator is not required."""
    info = DeviceInfoString.from_bytes(DeviceInfoType.ARTICLE_CODE, b"00080000")
    assert info.value == "00080000"


def test_device_info_full_buffer():
    info = DeviceInfoString.from_bytes(DeviceInfoType.SERIAL_NUMBER, b"X" * 32)
    assert info.length == 32
    assert info.value == "X" * 32


def test_device_info_too_long():
    with pytest.raises(ValueError):
        DeviceInfoString.from_bytes(DeviceInfoType.SERIAL_NUMBER, b"X" * 33)


def test_device_info_repr():
    info = DeviceInfoString.from_bytes(DeviceInfoType.PRODUCT_NAME, b"SPS30\x00")
    assert "PRODUCT_NAME='SPS30'" in repr(info)
