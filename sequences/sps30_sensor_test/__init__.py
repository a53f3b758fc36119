"""
SPS30 Sensor Test Sequence Package

Provides an automated test sequence for the Sensirion SPS30 particulate
matter sensor over UART.
"""

from .sequence import SPS30SensorTestSequence

__all__ = ["SPS30SensorTestSequence"]
