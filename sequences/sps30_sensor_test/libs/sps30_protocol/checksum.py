"""
SHDLC checksum.

The checksum byte is the inverted least significant byte of the sum of all
frame bytes between the start delimiter and the checksum itself. The same
rule applies to MOSI and MISO frames.
"""

from typing import Iterable


def compute_checksum(data: Iterable[int]) -> int:
    """
    Calculate the SHDLC checksum.

    Args:
        data: Frame bytes preceding the checksum

    Returns:
        Checksum byte (0-255)
    """
    total = 0
    for byte in data:
        total = (total + byte) & 0xFF
    return 0xFF - total


def verify_checksum(payload: bytes) -> bool:
    """Check the trailing checksum byte of a decoded payload."""
    if not payload:
        return False
    return payload[-1] == compute_checksum(payload[:-1])
