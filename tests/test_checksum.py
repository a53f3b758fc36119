"""Tests for the SHDLC checksum."""

from sequences.sps30_sensor_test.libs.sps30_protocol.checksum import (
    compute_checksum,
    verify_checksum,
)


def test_checksum_empty():
    """Nothing summed leaves the inverted zero."""
    assert compute_checksum(b"") == 0xFF


def test_checksum_start_measurement():
    """Datasheet example: 7E 00 00 02 01 03 F9 7E."""
    assert compute_checksum(bytes([0x00, 0x00, 0x02, 0x01, 0x03])) == 0xF9


def test_checksum_wraps_modulo_256():
    data = bytes([0xFF, 0xFF, 0x03])  # sum 0x201
    assert compute_checksum(data) == 0xFF - 0x01


def test_checksum_matches_formula():
    for data in (b"\x00", b"\x80\x80", bytes(range(256)), b"\x12\x34\x56\x78"):
        assert compute_checksum(data) == 255 - (sum(data) % 256)


def test_checksum_deterministic_over_prefix():
    """Appending the checksum does not change the checksum of the prefix."""
    prefix = bytes([0x00, 0xD0, 0x01, 0x03])
    chk = compute_checksum(prefix)
    framed = prefix + bytes([chk])
    assert compute_checksum(framed[:-1]) == chk


def test_verify_checksum():
    assert verify_checksum(bytes([0x00, 0x00, 0x02, 0x01, 0x03, 0xF9]))
    assert not verify_checksum(bytes([0x00, 0x00, 0x02, 0x01, 0x03, 0xF8]))
    assert not verify_checksum(b"")
