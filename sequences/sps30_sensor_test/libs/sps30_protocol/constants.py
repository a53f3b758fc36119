"""
Protocol constants for the SPS30 UART (SHDLC) interface.

Reference: Sensirion SPS30 datasheet, section 4 (UART interface)
"""

from enum import IntEnum

# SHDLC frame delimiter and escape byte
FRAME_DELIMITER = 0x7E
ESCAPE = 0x7D

# Bytes that must be stuffed inside a frame, mapped to their escaped value
STUFFED_BYTES = {
    0x7E: 0x5E,
    0x7D: 0x5D,
    0x11: 0x31,
    0x13: 0x33,
}

# Single device bus, the sensor always answers on address 0
SLAVE_ADDRESS = 0x00

# MISO header (ADR, CMD, STATE, L) plus trailing checksum
MISO_OVERHEAD = 5

# Maximum bytes read while waiting for two delimiters
MAX_FRAME_READ = 600

# Maximum data bytes in a single frame
MAX_DATA_LEN = 255

# Device information strings are at most 32 bytes
DEVICE_INFO_SIZE = 32

# Measured values in big-endian IEEE754 float format
MEASUREMENT_COUNT = 10
MEASUREMENT_DATA_LEN = MEASUREMENT_COUNT * 4

# Start measurement sub-command and output format (0x03 = IEEE754 float)
START_MEASUREMENT_SUBCOMMAND = 0x01
OUTPUT_FORMAT_FLOAT = 0x03

# Sub-command selecting the auto cleaning interval parameter
CLEANING_INTERVAL_SUBCOMMAND = 0x00

# Minimum wait after a reset before the next command, in seconds
RESET_SETTLE_TIME = 0.1

UINT32_MAX = 0xFFFFFFFF


class Command(IntEnum):
    """Command codes (MOSI CMD field)."""
    START_MEASUREMENT = 0x00
    STOP_MEASUREMENT = 0x01
    READ_MEASURED_DATA = 0x03
    AUTO_CLEANING_INTERVAL = 0x80
    START_FAN_CLEANING = 0x56
    DEVICE_INFORMATION = 0xD0
    RESET = 0xD3

    @classmethod
    def name_of(cls, code: int) -> str:
        """Get command name from code."""
        try:
            return cls(code).name
        except ValueError:
            return f"Unknown(0x{code:02X})"


class DeviceInfoType(IntEnum):
    """Device information selectors."""
    PRODUCT_NAME = 0x01
    ARTICLE_CODE = 0x02
    SERIAL_NUMBER = 0x03


class StateCode(IntEnum):
    """Error codes reported in the MISO STATE byte."""
    NONE = 0x00
    WRONG_DATA_LENGTH = 0x01
    UNKNOWN_COMMAND = 0x02
    NO_ACCESS_RIGHT = 0x03
    ILLEGAL_PARAMETER = 0x04
    INTERNAL_ARGUMENT_OUT_OF_RANGE = 0x28
    COMMAND_NOT_ALLOWED = 0x43

    # Bit 7 flags an error in the device status register
    DEVICE_ERROR_FLAG = 0x80

    @classmethod
    def name_of(cls, state: int) -> str:
        """Get state name from code."""
        names = {
            cls.NONE: "NONE",
            cls.WRONG_DATA_LENGTH: "WRONG_DATA_LENGTH",
            cls.UNKNOWN_COMMAND: "UNKNOWN_COMMAND",
            cls.NO_ACCESS_RIGHT: "NO_ACCESS_RIGHT",
            cls.ILLEGAL_PARAMETER: "ILLEGAL_PARAMETER",
            cls.INTERNAL_ARGUMENT_OUT_OF_RANGE: "INTERNAL_ARGUMENT_OUT_OF_RANGE",
            cls.COMMAND_NOT_ALLOWED: "COMMAND_NOT_ALLOWED",
        }
        code = state & ~cls.DEVICE_ERROR_FLAG
        name = names.get(code, f"Unknown(0x{code:02X})")
        if state & cls.DEVICE_ERROR_FLAG:
            name = f"DEVICE_ERROR|{name}" if code else "DEVICE_ERROR"
        return name
