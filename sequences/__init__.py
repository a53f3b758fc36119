"""
Sequences Package

This package contains test sequences for the NeuroHub station service.
Each sequence is a self-contained package with its own drivers,
protocol library and test logic.

Available sequences:
- sps30_sensor_test: Sensirion SPS30 particulate matter sensor test sequence
"""

__all__ = ["sps30_sensor_test"]
