"""Tests for the SPS30 client request/response cycle."""

import struct

import pytest

from sequences.sps30_sensor_test.libs.sps30_protocol import (
    SPS30Client,
    Command,
    DeviceInfoType,
    ChecksumError,
    EmptyResultError,
    FramingError,
    InvalidFrameError,
    InvalidResponseError,
    ReadError,
    ResponseTimeoutError,
    StatusError,
    WriteError,
    TRANSPORT_ERRORS,
    PROTOCOL_ERRORS,
)
from sequences.sps30_sensor_test.libs.sps30_protocol import shdlc

from fake_sensor import (
    EndlessTransport,
    FailingTransport,
    FakeSPS30,
    ScriptedTransport,
    miso_payload,
    miso_stream,
)


def _measurement_data(*values):
    values = list(values) + [0.0] * (10 - len(values))
    return struct.pack('>10f', *values)


# --- sending ---------------------------------------------------------------

def test_start_measurement_wire_bytes():
    transport = ScriptedTransport(miso_stream(Command.START_MEASUREMENT))
    SPS30Client(transport).start_measurement()
    assert transport.written == [b"\x7E\x00\x00\x02\x01\x03\xF9\x7E"]


def test_read_cleaning_interval_request_is_stuffed():
    transport = ScriptedTransport(miso_stream(Command.AUTO_CLEANING_INTERVAL, b"\x00\x09\x3A\x80"))
    SPS30Client(transport).read_cleaning_interval()
    assert transport.written == [b"\x7E\x00\x80\x01\x00\x7D\x5E\x7E"]


def test_write_error_propagates():
    client = SPS30Client(FailingTransport(write_fails=True))
    with pytest.raises(WriteError):
        client.reset()


# --- receiving -------------------------------------------------------------

def test_read_error_propagates():
    client = SPS30Client(FailingTransport())
    with pytest.raises(ReadError):
        client.stop_measurement()


def test_retries_while_no_data():
    transport = ScriptedTransport(miso_stream(Command.RESET), gaps=3)
    frame = SPS30Client(transport).reset()
    assert frame.cmd == Command.RESET
    assert transport.reads == len(miso_stream(Command.RESET)) * 4


def test_response_timeout():
    client = SPS30Client(ScriptedTransport(), response_timeout=0.05)
    with pytest.raises(ResponseTimeoutError) as exc_info:
        client.reset()
    assert isinstance(exc_info.value, ReadError)
    assert exc_info.value.received == 0


def test_late_response_is_discarded():
    """A frame arriving after a timeout is not the answer to the next request."""
    transport = ScriptedTransport(
        b"",
        miso_stream(Command.READ_MEASURED_DATA, _measurement_data(1.0)),
    )
    client = SPS30Client(transport, response_timeout=0.05)
    with pytest.raises(ResponseTimeoutError):
        client.read_measurement()

    transport.deliver(miso_stream(Command.READ_MEASURED_DATA, _measurement_data(9.0)))
    assert client.read_measurement().mass_pm1_0 == 1.0
    assert transport.flushes == 2


def test_endless_stream_is_invalid_frame():
    """A stream without two delimiters stops after 600 bytes."""
    transport = EndlessTransport(0x00)
    with pytest.raises(InvalidFrameError):
        SPS30Client(transport, response_timeout=None).reset()
    assert transport.reads == 601


def test_single_delimiter_is_invalid_frame():
    transport = EndlessTransport(0x00, first=0x7E)
    with pytest.raises(InvalidFrameError):
        SPS30Client(transport).reset()


def test_leading_noise_is_framing_error():
    transport = ScriptedTransport(b"\x00" + miso_stream(Command.RESET))
    with pytest.raises(FramingError):
        SPS30Client(transport).reset()


def test_checksum_failed():
    payload = bytearray(miso_payload(Command.RESET))
    payload[-1] = (payload[-1] + 1) & 0xFF
    transport = ScriptedTransport(shdlc.encode(bytes(payload)))
    with pytest.raises(ChecksumError):
        SPS30Client(transport).reset()


def test_response_for_other_command():
    transport = ScriptedTransport(miso_stream(Command.STOP_MEASUREMENT))
    with pytest.raises(InvalidResponseError):
        SPS30Client(transport).start_measurement()


def test_status_error_keeps_state():
    transport = ScriptedTransport(miso_stream(Command.START_FAN_CLEANING, state=0x43))
    with pytest.raises(StatusError) as exc_info:
        SPS30Client(transport).start_fan_cleaning()
    assert exc_info.value.state == 0x43
    assert exc_info.value.command == Command.START_FAN_CLEANING


# --- read_measurement ------------------------------------------------------

def test_read_measurement_decodes_floats():
    data = _measurement_data(1.0, 2.5, 3.0, 4.0, 10.0, 11.0, 12.0, 13.0, 14.0, 0.5)
    transport = ScriptedTransport(miso_stream(Command.READ_MEASURED_DATA, data))
    result = SPS30Client(transport).read_measurement()
    assert result[0] == 1.0
    assert result.mass_pm2_5 == 2.5
    assert result.typical_size == 0.5
    assert len(result) == 10


def test_read_measurement_first_slot_bits():
    """0x3F800000 is 1.0 in binary32."""
    data = bytes.fromhex("3F800000") + bytes(36)
    transport = ScriptedTransport(miso_stream(Command.READ_MEASURED_DATA, data))
    result = SPS30Client(transport).read_measurement()
    assert list(result) == [1.0] + [0.0] * 9


def test_read_measurement_empty():
    transport = ScriptedTransport(miso_stream(Command.READ_MEASURED_DATA))
    with pytest.raises(EmptyResultError):
        SPS30Client(transport).read_measurement()


def test_read_measurement_empty_with_device_error():
    transport = ScriptedTransport(miso_stream(Command.READ_MEASURED_DATA, state=0x43))
    with pytest.raises(StatusError):
        SPS30Client(transport).read_measurement()


def test_read_measurement_other_length():
    transport = ScriptedTransport(miso_stream(Command.READ_MEASURED_DATA, bytes(20)))
    with pytest.raises(InvalidFrameError):
        SPS30Client(transport).read_measurement()


# --- cleaning interval -----------------------------------------------------

def test_read_cleaning_interval():
    transport = ScriptedTransport(miso_stream(Command.AUTO_CLEANING_INTERVAL, b"\x00\x09\x3A\x80"))
    assert SPS30Client(transport).read_cleaning_interval() == 604800


def test_read_cleaning_interval_wrong_length():
    transport = ScriptedTransport(miso_stream(Command.AUTO_CLEANING_INTERVAL, b"\x00\x09\x3A"))
    with pytest.raises(InvalidResponseError):
        SPS30Client(transport).read_cleaning_interval()


def test_write_cleaning_interval_unexpected_data():
    transport = ScriptedTransport(miso_stream(Command.AUTO_CLEANING_INTERVAL, b"\x00\x00\x00\x01"))
    with pytest.raises(InvalidResponseError):
        SPS30Client(transport).write_cleaning_interval(1)


def test_cleaning_interval_written_value_reads_back():
    sensor = FakeSPS30()
    client = SPS30Client(sensor)
    client.write_cleaning_interval(345600)
    assert sensor.cleaning_interval == 345600
    assert client.read_cleaning_interval() == 345600


# --- device info -----------------------------------------------------------

def test_device_info_serial_number():
    transport = ScriptedTransport(miso_stream(Command.DEVICE_INFORMATION, b"F1C2B3A4E5D6C7B8\x00"))
    info = SPS30Client(transport).device_info(DeviceInfoType.SERIAL_NUMBER)
    assert info.value == "F1C2B3A4E5D6C7B8"
    assert info.length == 17
    assert len(info.raw) == 32
    assert info.raw[17:] == bytes(15)
    assert transport.written == [shdlc.encode(bytes([0x00, 0xD0, 0x01, 0x03, 0x2B]))]


def test_device_info_empty_string():
    transport = ScriptedTransport(miso_stream(Command.DEVICE_INFORMATION))
    info = SPS30Client(transport).device_info(DeviceInfoType.PRODUCT_NAME)
    assert info.raw == bytes(32)
    assert info.length == 0
    assert info.value == ""


def test_device_info_too_long():
    transport = ScriptedTransport(miso_stream(Command.DEVICE_INFORMATION, b"A" * 33))
    with pytest.raises(EmptyResultError):
        SPS30Client(transport).device_info(DeviceInfoType.ARTICLE_CODE)


def test_device_info_accepts_plain_int():
    transport = ScriptedTransport(miso_stream(Command.DEVICE_INFORMATION, b"00080000\x00"))
    info = SPS30Client(transport).device_info(2)
    assert info.info_type is DeviceInfoType.ARTICLE_CODE


# --- full session against the fake sensor ----------------------------------

def test_session_against_fake_sensor():
    sensor = FakeSPS30()
    client = SPS30Client(sensor)

    client.reset()
    assert client.device_info(DeviceInfoType.PRODUCT_NAME).value == "SPS30"
    client.start_measurement()
    client.start_fan_cleaning()
    measurement = client.read_measurement()
    client.stop_measurement()

    assert list(measurement) == [float(i) for i in range(1, 11)]
    assert sensor.commands == [
        Command.RESET,
        Command.DEVICE_INFORMATION,
        Command.START_MEASUREMENT,
        Command.START_FAN_CLEANING,
        Command.READ_MEASURED_DATA,
        Command.STOP_MEASUREMENT,
    ]


def test_error_groups():
    assert issubclass(ResponseTimeoutError, TRANSPORT_ERRORS)
    assert issubclass(StatusError, PROTOCOL_ERRORS)
    assert not issubclass(EmptyResultError, TRANSPORT_ERRORS + PROTOCOL_ERRORS)
