"""
Control package for fancurve

This package provides fan curve evaluation, the current curve session
and the named curve store.
"""

from .curve import (
    ControlPoint,
    CurveDataPoint,
    CurveSpec,
    FanCurve,
    FanCurveError,
    GradualCurve,
    HardCutCurve,
    InterpolationMode,
    InvalidNumericError,
    check_sampling,
    evaluate,
    sample_curve,
    validate_points
)
from .session import CurveSession
from .store import CurveNotFoundError, CurveStore, FanControlMode, NamedCurve

__all__ = [
    'ControlPoint',
    'CurveDataPoint',
    'CurveSpec',
    'FanCurve',
    'FanCurveError',
    'GradualCurve',
    'HardCutCurve',
    'InterpolationMode',
    'InvalidNumericError',
    'check_sampling',
    'evaluate',
    'sample_curve',
    'validate_points',
    'CurveSession',
    'CurveNotFoundError',
    'CurveStore',
    'FanControlMode',
    'NamedCurve'
]
