"""Fan curve implementations."""

from typing import Any, Dict, Iterable, List, NamedTuple, Sequence, Tuple, Union
from dataclasses import dataclass
from enum import Enum
import logging
import math

logger = logging.getLogger(__name__)


class FanCurveError(Exception):
    """Base exception for fan curve errors"""
    pass


class InvalidNumericError(FanCurveError, ValueError):
    """Raised when a temperature or fan speed is not a finite number"""
    pass


class InterpolationMode(Enum):
    """Policy used between control points"""
    GRADUAL = "gradual"  # Piecewise-linear
    HARDCUT = "hardcut"  # Step, holds the last point at or below the query

    @classmethod
    def parse(cls, value: Union[str, "InterpolationMode"]) -> "InterpolationMode":
        """Parse a mode from its JSON string.

        Args:
            value: "gradual" or "hardcut" (case-insensitive), or a mode

        Returns:
            Matching InterpolationMode

        Raises:
            ValueError: If value names no known mode
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid interpolation mode {value!r}, must be 'gradual' or 'hardcut'")


def _to_number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise InvalidNumericError(f"Invalid {field} {value!r}, must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidNumericError(f"Invalid {field} {value!r}, must be a number")
    except OverflowError:
        raise InvalidNumericError(f"Invalid {field} {value!r}, must be finite")
    if not math.isfinite(number):
        raise InvalidNumericError(f"Invalid {field} {value!r}, must be finite")
    return number


def check_sampling(start: Any, stop: Any, step: Any) -> None:
    """Validate sampling bounds.

    Raises:
        ValueError: If a bound is not a finite number or step is not positive
    """
    for name, value in (("start", start), ("stop", stop), ("step", step)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Invalid {name} {value!r}, must be a number")
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError(f"Invalid {name} {value!r}, must be finite")
    if not step > 0:
        raise ValueError(f"Invalid step {step}, must be > 0")


@dataclass(frozen=True)
class ControlPoint:
    """A (temperature, fan speed) anchor the curve passes through.

    Values are conventionally 0-100 but are never clamped here.
    """
    temperature: float
    fan_speed: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.temperature) and math.isfinite(self.fan_speed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControlPoint":
        """Build a point from its JSON form ``{"temperature", "fanSpeed"}``.

        Raises:
            InvalidNumericError: If either value is missing, non-numeric or non-finite
        """
        if not isinstance(data, dict):
            raise InvalidNumericError(f"Invalid control point {data!r}, must be an object")
        return cls(
            temperature=_to_number(data.get("temperature"), "temperature"),
            fan_speed=_to_number(data.get("fanSpeed"), "fanSpeed"),
        )

    @classmethod
    def from_pair(cls, pair: Sequence[Any]) -> "ControlPoint":
        """Build a point from a ``[temperature, fan_speed]`` pair (config form)."""
        if isinstance(pair, ControlPoint):
            return pair
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidNumericError(f"Invalid control point {pair!r}, must be [temperature, speed]")
        return cls(_to_number(pair[0], "temperature"), _to_number(pair[1], "fan speed"))

    def to_dict(self) -> Dict[str, float]:
        return {"temperature": self.temperature, "fanSpeed": self.fan_speed}

    def to_pair(self) -> List[float]:
        return [self.temperature, self.fan_speed]


class CurveDataPoint(NamedTuple):
    """One sampled (x, y) pair of a curve"""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


def validate_points(points: Iterable[Any]) -> List[ControlPoint]:
    """Validate and normalize input points.

    Accepts ControlPoint instances, JSON dicts or [temperature, speed] pairs.

    Args:
        points: Raw control points

    Returns:
        List of ControlPoint in input order

    Raises:
        InvalidNumericError: If any point is malformed or non-finite
    """
    validated = []
    for point in points:
        if isinstance(point, ControlPoint):
            if not point.is_finite:
                raise InvalidNumericError(f"Invalid control point {point}, values must be finite")
            validated.append(point)
        elif isinstance(point, dict):
            validated.append(ControlPoint.from_dict(point))
        else:
            validated.append(ControlPoint.from_pair(point))
    return validated


@dataclass(frozen=True)
class CurveSpec:
    """Unordered control points plus the interpolation mode"""
    points: Tuple[ControlPoint, ...] = ()
    mode: InterpolationMode = InterpolationMode.GRADUAL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveSpec":
        """Build from ``{"points": [...], "interpolationMode": "..."}``.

        A missing mode defaults to gradual.
        """
        if not isinstance(data, dict):
            raise ValueError("Curve must be an object")
        raw_points = data.get("points")
        if raw_points is None:
            raw_points = []
        if not isinstance(raw_points, list):
            raise ValueError("points must be a list")
        mode = InterpolationMode.parse(data.get("interpolationMode") or InterpolationMode.GRADUAL)
        return cls(points=tuple(validate_points(raw_points)), mode=mode)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "interpolationMode": self.mode.value,
        }

    def evaluate(self, temperature: float) -> float:
        return evaluate(self.points, self.mode, temperature)


class FanCurve:
    """Base class for fan speed curves.

    Holds a private, stably sorted copy of the control points. The caller's
    collection is never modified.
    """

    mode: InterpolationMode

    def __init__(self, points: Iterable[ControlPoint]):
        """Initialize with control points.

        Args:
            points: Control points in any order, duplicates allowed
        """
        # sorted() is stable, ties keep insertion order
        self.points: List[ControlPoint] = sorted(points, key=lambda p: p.temperature)

    @staticmethod
    def for_mode(points: Iterable[ControlPoint], mode: Union[str, InterpolationMode]) -> "FanCurve":
        """Create the curve implementation for an interpolation mode"""
        mode = InterpolationMode.parse(mode)
        if mode is InterpolationMode.HARDCUT:
            return HardCutCurve(points)
        return GradualCurve(points)

    def get_speed(self, temperature: float) -> float:
        """Get fan speed for a temperature.

        Args:
            temperature: Temperature in Celsius, any real number

        Returns:
            Fan speed, 0 for an empty curve, NaN for non-finite input
        """
        if not self.points:
            return 0
        # isnan() overflows on huge ints, which are never NaN
        is_nan = isinstance(temperature, float) and math.isnan(temperature)
        if is_nan or not all(p.is_finite for p in self.points):
            logger.debug(f"Non-finite input at {temperature}, returning NaN")
            return math.nan
        if len(self.points) == 1:
            return self.points[0].fan_speed
        return self._interpolate(temperature)

    def _interpolate(self, temperature: float) -> float:
        raise NotImplementedError

    def sample(self, start: float = 0, stop: float = 100, step: float = 1) -> List[CurveDataPoint]:
        """Sample the curve at regular steps from start to stop inclusive.

        Raises:
            ValueError: If start, stop or step is not a finite number,
                or step is not positive
        """
        check_sampling(start, stop, step)
        if start > stop:
            return []
        count = math.floor((stop - start) / step) + 1
        samples = []
        for i in range(count):
            x = start + i * step
            samples.append(CurveDataPoint(x, self.get_speed(x)))
        return samples


class GradualCurve(FanCurve):
    """Linear interpolation between temperature/speed points."""

    mode = InterpolationMode.GRADUAL

    def _interpolate(self, temperature: float) -> float:
        first, last = self.points[0], self.points[-1]

        # Flat below and above the defined range
        if temperature <= first.temperature:
            return first.fan_speed
        if temperature >= last.temperature:
            return last.fan_speed

        # First matching pair wins when duplicates overlap
        for p1, p2 in zip(self.points, self.points[1:]):
            if p1.temperature <= temperature <= p2.temperature:
                if p2.temperature == p1.temperature:
                    logger.debug(f"Zero-width interval at {p1.temperature}, using first point")
                    return p1.fan_speed
                if temperature == p1.temperature:
                    return p1.fan_speed
                if temperature == p2.temperature:
                    return p2.fan_speed
                ratio = (temperature - p1.temperature) / (p2.temperature - p1.temperature)
                return p1.fan_speed + ratio * (p2.fan_speed - p1.fan_speed)

        return first.fan_speed


class HardCutCurve(FanCurve):
    """Step function between temperature/speed points."""

    mode = InterpolationMode.HARDCUT

    def _interpolate(self, temperature: float) -> float:
        if temperature < self.points[0].temperature:
            return self.points[0].fan_speed

        # Greatest control temperature not above the query
        for point in reversed(self.points):
            if point.temperature <= temperature:
                return point.fan_speed

        return self.points[0].fan_speed


def evaluate(points: Iterable[ControlPoint], mode: Union[str, InterpolationMode],
             temperature: float) -> float:
    """Map a temperature to a fan speed.

    Args:
        points: Control points in any order (not modified)
        mode: Interpolation mode or its JSON string
        temperature: Query temperature

    Returns:
        Fan speed for the temperature
    """
    return FanCurve.for_mode(points, mode).get_speed(temperature)


def sample_curve(points: Iterable[ControlPoint], mode: Union[str, InterpolationMode],
                 start: float = 0, stop: float = 100, step: float = 1) -> List[CurveDataPoint]:
    """Evaluate the curve at each step from start to stop inclusive.

    Returns floor((stop - start) / step) + 1 entries, or none when start > stop.
    """
    return FanCurve.for_mode(points, mode).sample(start, stop, step)
