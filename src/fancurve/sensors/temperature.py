"""
System Temperature Module

This module reads the current system temperature used to look up a fan
speed on the active curve. IPMI CPU sensors are read with ipmitool and
averaged; when ipmitool is unavailable or fails, the sysfs thermal zone
is used instead.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from statistics import mean
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)


class SensorError(Exception):
    """Base exception for temperature sensor errors"""
    pass


class SensorCommandError(SensorError):
    """Raised when a sensor command fails or its output cannot be parsed"""
    pass


class SensorUnavailableError(SensorError):
    """Raised when no temperature source produced a reading"""
    pass


@dataclass
class TemperatureReading:
    """A temperature reading and where it came from.

    Attributes:
        value: Temperature in Celsius
        source: "ipmi" or "thermal_zone"
        timestamp: Unix timestamp when reading was taken
        sensors: Names of the sensors that contributed
    """
    value: float
    source: str
    timestamp: float
    sensors: Sequence[str] = ()

    @property
    def age(self) -> float:
        """Get age of reading in seconds"""
        return time.time() - self.timestamp


def parse_sensor_reading(output: str) -> float:
    """Parse the value of ``ipmitool sensor get`` output.

    Example output line:
        Sensor Reading        : 45 (+/- 0) degrees C

    Raises:
        SensorCommandError: If no reading line can be parsed
    """
    for line in output.splitlines():
        if "Sensor Reading" not in line:
            continue
        parts = line.split(':', 1)
        if len(parts) < 2:
            continue
        value_parts = parts[1].split()
        if not value_parts:
            continue
        try:
            return float(value_parts[0])
        except ValueError:
            raise SensorCommandError(f"Could not parse sensor value from: {line.strip()}")
    raise SensorCommandError("Sensor reading not found in output")


class SystemTemperatureReader:
    """Reads the system temperature from IPMI or sysfs"""

    def __init__(self, ipmi_sensors: Sequence[str] = ("CPU1 Temp", "CPU2 Temp"),
                 thermal_zone: Optional[str] = "/sys/class/thermal/thermal_zone0/temp",
                 use_sudo: bool = False, retries: int = 1, retry_delay: float = 1.0):
        """Initialize reader

        Args:
            ipmi_sensors: IPMI sensor names averaged for the reading
            thermal_zone: Path to sysfs temperature file in millidegrees, None to disable
            use_sudo: Prefix ipmitool with sudo
            retries: Attempts per ipmitool command
            retry_delay: Delay between attempts in seconds
        """
        self.ipmi_sensors = list(ipmi_sensors)
        self.thermal_zone = thermal_zone
        self.use_sudo = use_sudo
        self.retries = max(1, retries)
        self.retry_delay = retry_delay

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "SystemTemperatureReader":
        """Create reader from the ``sensors`` configuration section"""
        sensors_config = config.get("sensors") or {}
        return cls(
            ipmi_sensors=sensors_config.get("ipmi_sensors", ["CPU1 Temp", "CPU2 Temp"]),
            thermal_zone=sensors_config.get("thermal_zone", "/sys/class/thermal/thermal_zone0/temp"),
            use_sudo=bool(sensors_config.get("use_sudo", False))
        )

    def _execute_ipmitool(self, args: List[str]) -> str:
        """Run ipmitool and return its output

        Raises:
            SensorCommandError: If the command fails on every attempt
        """
        base_cmd = ["sudo", "ipmitool"] if self.use_sudo else ["ipmitool"]
        full_cmd = base_cmd + args

        last_error = None
        for attempt in range(self.retries):
            if attempt > 0:
                time.sleep(self.retry_delay)
                logger.debug(f"Retrying ipmitool (attempt {attempt + 1}/{self.retries})")
            try:
                result = subprocess.run(
                    full_cmd,
                    capture_output=True,
                    text=True,
                    check=True
                )
                return result.stdout
            except subprocess.CalledProcessError as e:
                last_error = e.stderr or str(e)
            except OSError as e:
                # ipmitool missing, retrying will not help
                raise SensorCommandError(f"Failed to run ipmitool: {e}")

        raise SensorCommandError(f"ipmitool failed after {self.retries} attempts: {last_error}")

    def read_ipmi(self) -> TemperatureReading:
        """Average the configured IPMI sensors.

        Raises:
            SensorError: If any sensor cannot be read
        """
        if not self.ipmi_sensors:
            raise SensorUnavailableError("No IPMI sensors configured")
        values = []
        for name in self.ipmi_sensors:
            value = parse_sensor_reading(self._execute_ipmitool(["sensor", "get", name]))
            logger.debug(f"Got temperature: {value}°C from {name}")
            values.append(value)
        return TemperatureReading(
            value=mean(values),
            source="ipmi",
            timestamp=time.time(),
            sensors=tuple(self.ipmi_sensors)
        )

    def read_thermal_zone(self) -> TemperatureReading:
        """Read the sysfs thermal zone (millidegrees Celsius).

        Raises:
            SensorError: If the file is missing or unparsable
        """
        if not self.thermal_zone:
            raise SensorUnavailableError("No thermal zone configured")
        try:
            with open(self.thermal_zone) as f:
                raw = f.read().strip()
        except OSError as e:
            raise SensorUnavailableError(f"Failed to read temperature file: {e}")
        try:
            millidegrees = int(raw)
        except ValueError:
            raise SensorCommandError(f"Failed to parse temperature: {raw!r}")
        return TemperatureReading(
            value=millidegrees / 1000.0,
            source="thermal_zone",
            timestamp=time.time(),
            sensors=(self.thermal_zone,)
        )

    def read(self) -> TemperatureReading:
        """Get the current system temperature.

        Raises:
            SensorUnavailableError: If neither source produced a reading
        """
        try:
            return self.read_ipmi()
        except SensorError as e:
            logger.debug(f"IPMI temperature unavailable: {e}")

        try:
            return self.read_thermal_zone()
        except SensorError as e:
            logger.error(f"No temperature source available: {e}")
            raise SensorUnavailableError(f"No temperature source available: {e}")
