#!/usr/bin/env python3
"""
SPS30 Sensor Test Sequence - CLI Entry Point (SDK 2.0)

This module provides the CLI entry point for running the sequence
as a subprocess from Station Service.

Usage:
    python -m sequences.sps30_sensor_test.main --start --config '{"wip_id": "WIP001"}'
    python -m sequences.sps30_sensor_test.main --start --dry-run
    python -m sequences.sps30_sensor_test.main --stop
"""

from .sequence import SPS30SensorTestSequence


def main() -> int:
    return SPS30SensorTestSequence.run_from_cli()


if __name__ == "__main__":
    exit(main())
