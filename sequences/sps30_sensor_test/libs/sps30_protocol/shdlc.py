"""
SHDLC byte stuffing.

Stream Format: [0x7E][STUFFED PAYLOAD...][0x7E]
- 0x7E, 0x7D, 0x11 and 0x13 inside the payload are replaced by
  0x7D followed by the byte XOR 0x20 (0x5E, 0x5D, 0x31, 0x33)
- The payload carries the checksum byte; it is neither added
  nor verified here
"""

from .constants import FRAME_DELIMITER, ESCAPE, STUFFED_BYTES
from .exceptions import FramingError

_UNSTUFFED_BYTES = {escaped: raw for raw, escaped in STUFFED_BYTES.items()}


def encode(payload: bytes) -> bytes:
    """
    Stuff a payload and wrap it between two delimiters.

    Args:
        payload: Raw frame bytes (address through checksum)

    Returns:
        Byte stream ready for the wire
    """
    stream = bytearray([FRAME_DELIMITER])
    for byte in payload:
        if byte in STUFFED_BYTES:
            stream.append(ESCAPE)
            stream.append(STUFFED_BYTES[byte])
        else:
            stream.append(byte)
    stream.append(FRAME_DELIMITER)
    return bytes(stream)


def decode(stream: bytes) -> bytes:
    """
    Strip the delimiters of a received stream and undo the stuffing.

    Args:
        stream: Bytes captured from the first to the second delimiter

    Returns:
        De-stuffed payload, checksum byte still attached

    Raises:
        FramingError: If delimiters are missing or misplaced, the frame
            is empty, or an escape sequence is invalid
    """
    if len(stream) < 2 or stream[0] != FRAME_DELIMITER:
        raise FramingError("Missing start delimiter")
    if stream[-1] != FRAME_DELIMITER:
        raise FramingError("Missing end delimiter")

    body = stream[1:-1]
    if not body:
        raise FramingError("Empty frame")

    payload = bytearray()
    escaped = False
    for byte in body:
        if byte == FRAME_DELIMITER:
            raise FramingError("Delimiter inside frame")
        if escaped:
            if byte not in _UNSTUFFED_BYTES:
                raise FramingError(f"Invalid escape sequence 0x7D 0x{byte:02X}")
            payload.append(_UNSTUFFED_BYTES[byte])
            escaped = False
        elif byte == ESCAPE:
            escaped = True
        else:
            payload.append(byte)

    if escaped:
        raise FramingError("Frame ends inside an escape sequence")

    return bytes(payload)
