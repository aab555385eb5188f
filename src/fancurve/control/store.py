"""
Named Curve Store Module

This module keeps named fan curves in memory, keyed by a caller-supplied
identifier. Curves are replaced wholesale on update.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .curve import ControlPoint, FanCurveError, InterpolationMode, evaluate, validate_points

logger = logging.getLogger(__name__)


class CurveNotFoundError(FanCurveError, KeyError):
    """Raised when no curve is stored under an identifier"""

    def __init__(self, curve_id: str):
        super().__init__(curve_id)
        self.curve_id = curve_id

    def __str__(self) -> str:
        return f"Curve not found: {self.curve_id}"


class FanControlMode(Enum):
    """How fan speed values are labeled. Not used by the curve math."""
    PERCENTAGE = "percentage"
    RPM = "rpm"


@dataclass
class NamedCurve:
    """A stored fan curve.

    Attributes:
        id: Caller-supplied identifier
        name: Display name
        mode: Whether speeds are percentages or RPM
        points: Control points in the order they were supplied
        interpolation_mode: Policy applied when evaluating
    """
    id: str
    name: str
    mode: FanControlMode = FanControlMode.PERCENTAGE
    points: List[ControlPoint] = field(default_factory=list)
    interpolation_mode: InterpolationMode = InterpolationMode.GRADUAL

    @classmethod
    def from_dict(cls, data: Dict[str, Any], curve_id: Optional[str] = None) -> "NamedCurve":
        """Build from JSON ``{"id", "name", "mode", "points", "interpolationMode"}``.

        Args:
            data: Decoded JSON object
            curve_id: Identifier overriding any ``id`` in data

        Raises:
            ValueError: If the identifier, mode or points are invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Curve must be an object")
        curve_id = curve_id if curve_id is not None else data.get("id")
        if not curve_id or not str(curve_id).strip():
            raise ValueError("Curve id required")
        raw_points = data.get("points")
        if raw_points is None:
            raw_points = []
        if not isinstance(raw_points, list):
            raise ValueError("points must be a list")
        try:
            mode = FanControlMode(str(data.get("mode", "percentage")).lower())
        except ValueError:
            raise ValueError(f"Invalid fan control mode {data.get('mode')!r}, must be 'percentage' or 'rpm'")
        return cls(
            id=str(curve_id).strip(),
            name=str(data.get("name") or curve_id),
            mode=mode,
            points=validate_points(raw_points),
            interpolation_mode=InterpolationMode.parse(
                data.get("interpolationMode") or InterpolationMode.GRADUAL
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mode": self.mode.value,
            "points": [p.to_dict() for p in self.points],
            "interpolationMode": self.interpolation_mode.value,
        }


class CurveStore:
    """In-memory mapping of curve id to NamedCurve.

    Every operation takes the store lock, so no partial update is visible.
    Both get() and delete() raise CurveNotFoundError for unknown ids.
    """

    def __init__(self):
        self._curves: Dict[str, NamedCurve] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._curves)

    def __contains__(self, curve_id: str) -> bool:
        with self._lock:
            return curve_id in self._curves

    def save(self, curve: NamedCurve) -> None:
        """Insert a curve or replace the one with the same id"""
        with self._lock:
            replaced = curve.id in self._curves
            self._curves[curve.id] = curve
        logger.info(f"{'Replaced' if replaced else 'Added'} curve {curve.id} ({len(curve.points)} points)")

    def get(self, curve_id: str) -> NamedCurve:
        """Get a curve by id.

        Raises:
            CurveNotFoundError: If no curve has this id
        """
        with self._lock:
            try:
                return self._curves[curve_id]
            except KeyError:
                raise CurveNotFoundError(curve_id)

    def list(self) -> List[NamedCurve]:
        """Get all curves. Order is not guaranteed."""
        with self._lock:
            return list(self._curves.values())

    def delete(self, curve_id: str) -> None:
        """Remove a curve.

        Raises:
            CurveNotFoundError: If no curve has this id
        """
        with self._lock:
            if curve_id not in self._curves:
                raise CurveNotFoundError(curve_id)
            del self._curves[curve_id]
        logger.info(f"Deleted curve {curve_id}")

    def evaluate(self, curve_id: str, temperature: float,
                 interpolation_mode: Union[str, InterpolationMode, None] = None) -> float:
        """Get fan speed from a stored curve.

        Args:
            curve_id: Stored curve id
            temperature: Query temperature
            interpolation_mode: Override for the curve's own mode

        Raises:
            CurveNotFoundError: If no curve has this id
        """
        curve = self.get(curve_id)
        mode = interpolation_mode if interpolation_mode is not None else curve.interpolation_mode
        return evaluate(curve.points, mode, temperature)
