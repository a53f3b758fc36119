"""Hardware drivers for the SPS30 sensor test sequence."""

from .base import BaseDriver
from .sps30 import SPS30Driver

__all__ = ["BaseDriver", "SPS30Driver"]
