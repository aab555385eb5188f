"""
Curve Session Module

This module owns the curve currently being edited: its control points and
interpolation mode. The HTTP layer and the CLI read and update it; the
evaluator itself stays stateless.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Union

from .. import config as config_module
from .curve import (
    ControlPoint,
    CurveDataPoint,
    CurveSpec,
    InterpolationMode,
    evaluate,
    sample_curve,
    validate_points,
)

logger = logging.getLogger(__name__)


class CurveSession:
    """Current control points plus interpolation mode"""

    def __init__(self, points: Iterable[Any] = (),
                 mode: Union[str, InterpolationMode] = InterpolationMode.GRADUAL,
                 config: Optional[Dict[str, Any]] = None,
                 config_path: Optional[str] = None):
        """Initialize session

        Args:
            points: Initial control points (ControlPoint, dicts or pairs)
            mode: Initial interpolation mode
            config: Configuration the session was loaded from, updated on save()
            config_path: Where save() writes the configuration, None to disable
        """
        self._points: List[ControlPoint] = validate_points(points)
        self._mode = InterpolationMode.parse(mode)
        self._lock = threading.Lock()
        self.config = config if config is not None else {}
        self.config_path = config_path

    @classmethod
    def from_config(cls, config: Dict[str, Any], config_path: Optional[str] = None) -> "CurveSession":
        """Create session from the ``curve`` section of a configuration

        Raises:
            ValueError: If the points are not a list or a point is invalid
        """
        curve_config = config.get("curve") or {}
        points = curve_config.get("points")
        if points is None:
            points = []
        if not isinstance(points, list):
            raise ValueError("curve.points must be a list")
        session = cls(
            points=points,
            mode=curve_config.get("interpolation_mode", "gradual"),
            config=config,
            config_path=config_path
        )
        logger.info(f"Loaded curve with {len(session.points)} points ({session.mode.value})")
        return session

    @classmethod
    def load(cls, config_path: str) -> "CurveSession":
        """Load session from a YAML configuration file"""
        return cls.from_config(config_module.load_config(config_path), config_path)

    @property
    def points(self) -> List[ControlPoint]:
        """Copy of the control points in insertion order"""
        with self._lock:
            return list(self._points)

    @property
    def mode(self) -> InterpolationMode:
        with self._lock:
            return self._mode

    def snapshot(self) -> CurveSpec:
        """Get points and mode as one consistent value"""
        with self._lock:
            return CurveSpec(points=tuple(self._points), mode=self._mode)

    def update(self, points: Iterable[Any], mode: Union[str, InterpolationMode, None] = None) -> None:
        """Replace the control points, and the mode if given.

        Raises:
            InvalidNumericError: If a point is invalid; the session is left unchanged
            ValueError: If mode is unknown
        """
        new_points = validate_points(points)
        new_mode = InterpolationMode.parse(mode) if mode is not None else None
        with self._lock:
            self._points = new_points
            if new_mode is not None:
                self._mode = new_mode
        logger.debug(f"Session updated: {len(new_points)} points")

    def set_mode(self, mode: Union[str, InterpolationMode]) -> None:
        new_mode = InterpolationMode.parse(mode)
        with self._lock:
            self._mode = new_mode

    def add_point(self, temperature: float, fan_speed: float) -> ControlPoint:
        """Append a control point"""
        point = validate_points([(temperature, fan_speed)])[0]
        with self._lock:
            self._points.append(point)
        return point

    def remove_point(self, index: int) -> ControlPoint:
        """Remove the control point at an index in insertion order.

        Raises:
            IndexError: If index is out of range
        """
        with self._lock:
            return self._points.pop(index)

    def speed_for(self, temperature: float) -> float:
        """Get fan speed for a temperature from the current curve"""
        spec = self.snapshot()
        return evaluate(spec.points, spec.mode, temperature)

    def sample(self, start: float = 0, stop: float = 100, step: float = 1) -> List[CurveDataPoint]:
        spec = self.snapshot()
        return sample_curve(spec.points, spec.mode, start, stop, step)

    def to_dict(self) -> Dict[str, Any]:
        """Get the JSON config shape ``{"points": [...], "interpolationMode": ...}``"""
        return self.snapshot().to_dict()

    def save(self) -> None:
        """Write the current curve back to the configuration file.

        Does nothing when the session has no configuration path.

        Raises:
            ConfigError: If the file cannot be written
        """
        if not self.config_path:
            return
        spec = self.snapshot()
        with self._lock:
            curve_config = self.config.setdefault("curve", {})
            curve_config["points"] = [p.to_pair() for p in spec.points]
            curve_config["interpolation_mode"] = spec.mode.value
            config_module.save_config(self.config_path, self.config)
        logger.info(f"Saved curve to {self.config_path}")
