"""
SPS30 Sensor Test Sequence Module (SDK 2.0)

Automated test sequence for the Sensirion SPS30 particulate matter sensor
on a UART port.

This module uses the SDK 2.0 SequenceBase pattern with:
- setup(): Hardware initialization
- run(): Step-by-step execution with emit_* helpers
- teardown(): Resource cleanup
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from station_service_sdk import (
    SequenceBase,
    RunResult,
    ExecutionContext,
    SetupError,
)

logger = logging.getLogger(__name__)

# Lazy import for driver - allows metadata extraction without pyserial
SPS30Driver = None


def _get_driver_class():
    """Load driver class at runtime."""
    global SPS30Driver
    if SPS30Driver is None:
        from .drivers.sps30 import SPS30Driver as _Driver
        SPS30Driver = _Driver
    return SPS30Driver


class SPS30SensorTestSequence(SequenceBase):
    """
    SPS30 Sensor Test Sequence (SDK 2.0).

    Resets the sensor, checks its identification and auto cleaning
    interval, then takes a series of measurements and checks the PM2.5
    mass concentration against an upper limit.

    Attributes:
        name: Sequence identifier
        version: Semantic version
        description: Human-readable description
    """

    name = "sps30_sensor_test"
    version = "1.0.0"
    description = "SPS30 particulate matter sensor test sequence"

    def __init__(
        self,
        context: ExecutionContext,
        hardware_config: Optional[Dict[str, Dict[str, Any]]] = None,
        parameters: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> None:
        """
        Initialize sequence.

        Args:
            context: Execution context from Station Service
            hardware_config: Hardware configuration dictionary
            parameters: Test parameters dictionary
            **kwargs: Additional arguments for SequenceBase
        """
        super().__init__(
            context=context,
            hardware_config=hardware_config,
            parameters=parameters,
            **kwargs,
        )

        # Sensor driver instance (initialized in setup)
        self.sensor: Optional[Any] = None

        # Connection parameters
        self.port: str = self.get_parameter("port", "/dev/ttyUSB0")
        self.baudrate: int = self.get_parameter("baudrate", 115200)
        self.timeout: float = self.get_parameter("timeout", 5.0)

        # Measurement parameters
        self.measurement_count: int = self.get_parameter("measurement_count", 3)
        self.measurement_interval: float = self.get_parameter("measurement_interval", 1.0)
        self.warmup_time: float = self.get_parameter("warmup_time", 1.0)
        self.max_empty_reads: int = self.get_parameter("max_empty_reads", 5)
        self.pm25_max: float = self.get_parameter("pm25_max", 35.0)

        self.stop_on_failure: bool = self.get_parameter("stop_on_failure", True)

        logger.debug(f"Initialized {self.name} v{self.version}")

    # =========================================================================
    # Lifecycle Methods (Required by SequenceBase)
    # =========================================================================

    async def setup(self) -> None:
        """
        Open the sensor port.

        Raises:
            SetupError: If the sensor does not answer
        """
        self.emit_log("info", "Initializing hardware...")

        if self.context.dry_run:
            self.emit_log("info", "Simulation mode - skipping hardware connection")
            self.sensor = self.context.hardware.get("sps30")
            if self.sensor:
                await self.sensor.connect()
            return

        try:
            hw_config = self.get_hardware_config("sps30")
            port = hw_config.get("port", self.port)
            baudrate = hw_config.get("baudrate", self.baudrate)
            timeout = hw_config.get("timeout", self.timeout)

            self.emit_log("info", f"Connecting to SPS30: {port} @ {baudrate} bps")

            driver_class = _get_driver_class()
            self.sensor = driver_class(config={
                "port": port,
                "baudrate": baudrate,
                "timeout": timeout,
            })

            connected = await self.sensor.connect()
            if not connected:
                raise SetupError("SPS30 connection failed", details={"error_code": "SPS30_CONNECTION_FAILED"})

            idn = await self.sensor.identify()
            self.emit_log("info", f"SPS30 connected: {idn}")

        except SetupError:
            raise
        except Exception as e:
            raise SetupError(f"Hardware initialization failed: {e}", details={"original_error": str(e)})

    async def run(self) -> RunResult:
        """
        Execute the main test sequence.

        Returns:
            RunResult with passed status and measurements
        """
        total_steps = 5
        all_passed = True
        measurements: Dict[str, Any] = {}

        # =====================================================================
        # Step 1: Reset
        # =====================================================================
        self.emit_step_start("reset", 1, total_steps, "Sensor reset")
        start_time = time.time()

        try:
            self.check_abort()

            if self.sensor:
                await self.sensor.reset()
                idn = await self.sensor.identify()
                self.emit_log("info", f"Reset complete: {idn}")
                measurements["identification"] = idn

            self.emit_step_complete("reset", 1, True, time.time() - start_time)

        except Exception as e:
            self.emit_step_complete("reset", 1, False, time.time() - start_time, error=str(e))
            self.emit_error("RESET_ERROR", str(e))
            all_passed = False
            if self.stop_on_failure:
                return {"passed": False, "measurements": measurements, "data": {"stopped_at": "reset"}}

        # =====================================================================
        # Step 2: Auto cleaning interval
        # =====================================================================
        self.emit_step_start("cleaning_interval", 2, total_steps, "Read auto cleaning interval")
        start_time = time.time()

        try:
            self.check_abort()

            if self.sensor:
                interval = await self.sensor.read_cleaning_interval()
                self.emit_log("info", f"Auto cleaning interval: {interval}s")
                measurements["cleaning_interval_s"] = interval

            self.emit_step_complete("cleaning_interval", 2, True, time.time() - start_time)

        except Exception as e:
            self.emit_step_complete("cleaning_interval", 2, False, time.time() - start_time, error=str(e))
            self.emit_error("CLEANING_INTERVAL_ERROR", str(e))
            all_passed = False
            if self.stop_on_failure:
                return {"passed": False, "measurements": measurements, "data": {"stopped_at": "cleaning_interval"}}

        # =====================================================================
        # Step 3: Start measurement
        # =====================================================================
        self.emit_step_start("start_measurement", 3, total_steps, "Start measurement")
        start_time = time.time()

        try:
            self.check_abort()

            if self.sensor:
                await self.sensor.start_measurement()
                await asyncio.sleep(self.warmup_time)

            self.emit_step_complete("start_measurement", 3, True, time.time() - start_time)

        except Exception as e:
            self.emit_step_complete("start_measurement", 3, False, time.time() - start_time, error=str(e))
            self.emit_error("START_MEASUREMENT_ERROR", str(e))
            all_passed = False
            if self.stop_on_failure:
                return {"passed": False, "measurements": measurements, "data": {"stopped_at": "start_measurement"}}

        # =====================================================================
        # Step 4: Measure
        # =====================================================================
        self.emit_step_start("measure", 4, total_steps, "Particulate matter measurement")
        start_time = time.time()

        try:
            self.check_abort()

            pm25_values: List[float] = []
            if self.sensor:
                pm25_values = await self._collect_pm25()

            if pm25_values:
                pm25 = sum(pm25_values) / len(pm25_values)
                passed = pm25 <= self.pm25_max
                self.emit_measurement(
                    name="pm2_5_mass_concentration",
                    value=pm25,
                    unit="ug/m3",
                    passed=passed,
                    min_value=0.0,
                    max_value=self.pm25_max,
                )
                measurements["pm2_5_ug_m3"] = pm25
                measurements["pm2_5_passed"] = passed
                if not passed:
                    all_passed = False
                    self.emit_log("warning", f"PM2.5 {pm25:.2f} ug/m3 above limit {self.pm25_max}")
            else:
                passed = not self.sensor

            self.emit_step_complete(
                "measure",
                4,
                passed,
                time.time() - start_time,
                measurements={"pm2_5_mass_concentration": measurements.get("pm2_5_ug_m3")} if self.sensor else None,
            )

            if not passed and self.stop_on_failure:
                await self._stop_measurement_quietly()
                return {"passed": False, "measurements": measurements, "data": {"stopped_at": "measure"}}

        except Exception as e:
            self.emit_step_complete("measure", 4, False, time.time() - start_time, error=str(e))
            self.emit_error("MEASURE_ERROR", str(e))
            all_passed = False
            if self.stop_on_failure:
                await self._stop_measurement_quietly()
                return {"passed": False, "measurements": measurements, "data": {"stopped_at": "measure"}}

        # =====================================================================
        # Step 5: Stop measurement
        # =====================================================================
        self.emit_step_start("stop_measurement", 5, total_steps, "Stop measurement")
        start_time = time.time()

        try:
            if self.sensor:
                await self.sensor.stop_measurement()

            self.emit_log("info", f"Test complete - overall result: {'PASS' if all_passed else 'FAIL'}")
            self.emit_step_complete("stop_measurement", 5, True, time.time() - start_time)

        except Exception as e:
            self.emit_step_complete("stop_measurement", 5, False, time.time() - start_time, error=str(e))
            self.emit_error("STOP_MEASUREMENT_ERROR", str(e))
            all_passed = False

        return {
            "passed": all_passed,
            "measurements": measurements,
            "data": {
                "measurement_count": self.measurement_count,
                "pm25_max": self.pm25_max,
            },
        }

    async def teardown(self) -> None:
        """
        Clean up resources and disconnect hardware.

        Always called, even if setup or run failed.
        """
        self.emit_log("info", "Cleaning up resources...")

        try:
            if self.sensor:
                if hasattr(self.sensor, "is_connected"):
                    if await self.sensor.is_connected():
                        await self.sensor.disconnect()
                        self.emit_log("info", "SPS30 disconnected")
                else:
                    # For mock hardware
                    await self.sensor.disconnect()

        except Exception as e:
            self.emit_log("warning", f"Error during cleanup (ignored): {e}")

        self.sensor = None
        self.emit_log("info", "Cleanup complete")

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _collect_pm25(self) -> List[float]:
        """
        Read measurement_count measurements.

        A read before the sensor has new data is retried after
        measurement_interval, at most max_empty_reads times in total.
        """
        from .libs.sps30_protocol import EmptyResultError

        values: List[float] = []
        empty_reads = 0
        while len(values) < self.measurement_count:
            self.check_abort()
            try:
                result = await self.sensor.read_measurement()
            except EmptyResultError:
                empty_reads += 1
                if empty_reads > self.max_empty_reads:
                    raise
                self.emit_log("debug", "No new measurement yet, waiting")
                await asyncio.sleep(self.measurement_interval)
                continue

            self.emit_log(
                "info",
                f"PM1.0={result['mass_pm1_0']:.2f} PM2.5={result['mass_pm2_5']:.2f} "
                f"PM4.0={result['mass_pm4_0']:.2f} PM10={result['mass_pm10']:.2f} ug/m3, "
                f"size={result['typical_size']:.2f}um"
            )
            values.append(result["mass_pm2_5"])
            if len(values) < self.measurement_count:
                await asyncio.sleep(self.measurement_interval)

        return values

    async def _stop_measurement_quietly(self) -> None:
        try:
            if self.sensor:
                await self.sensor.stop_measurement()
        except Exception as e:
            self.emit_log("warning", f"Stop measurement failed: {e}")
