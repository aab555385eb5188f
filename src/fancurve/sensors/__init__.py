"""
Temperature sensor package for fancurve

Provides the system temperature source used to look up the current
fan speed on the active curve.

Note:
    IPMI readings require ipmitool; the sysfs fallback needs no tools.
"""

from .temperature import (
    SensorCommandError,
    SensorError,
    SensorUnavailableError,
    SystemTemperatureReader,
    TemperatureReading,
    parse_sensor_reading
)

__all__ = [
    'SensorCommandError',
    'SensorError',
    'SensorUnavailableError',
    'SystemTemperatureReader',
    'TemperatureReading',
    'parse_sensor_reading'
]
