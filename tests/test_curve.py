"""
Fan Curve Tests

This module contains tests for curve evaluation and sampling.
"""

import math
import pytest
from fancurve.control.curve import (
    ControlPoint,
    CurveDataPoint,
    CurveSpec,
    FanCurve,
    GradualCurve,
    HardCutCurve,
    InterpolationMode,
    InvalidNumericError,
    check_sampling,
    evaluate,
    sample_curve,
    validate_points
)

GRADUAL = InterpolationMode.GRADUAL
HARDCUT = InterpolationMode.HARDCUT

# Test Data
CURVE_POINTS = [
    ControlPoint(0, 30),    # 30% at 0°C
    ControlPoint(10, 50),
    ControlPoint(20, 70),
    ControlPoint(30, 100)   # Full speed from 30°C
]

UNSORTED_POINTS = [
    ControlPoint(80, 100),
    ControlPoint(20, 20),
    ControlPoint(60, 50),
    ControlPoint(40, 45)
]

EXAMPLE_POINTS = [ControlPoint(20, 20), ControlPoint(80, 100)]

# Edge cases shared by both modes

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_empty_curve_returns_zero(mode):
    """Test evaluation with no control points"""
    for temp in (-50, 0, 42.5, 100, 1000):
        assert evaluate([], mode, temp) == 0

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_single_point_curve(mode):
    """Test single point holds its speed everywhere"""
    points = [ControlPoint(50, 70)]
    assert evaluate(points, mode, -10) == 70
    assert evaluate(points, mode, 50) == 70
    assert evaluate(points, mode, 200) == 70

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_exact_control_points(mode):
    """Test evaluating at a point's own temperature returns its speed"""
    for point in UNSORTED_POINTS:
        assert evaluate(UNSORTED_POINTS, mode, point.temperature) == point.fan_speed

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_input_not_mutated(mode):
    """Test evaluation sorts a private copy"""
    points = list(UNSORTED_POINTS)
    evaluate(points, mode, 50)
    sample_curve(points, mode)
    assert points == UNSORTED_POINTS

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_nan_temperature_returns_nan(mode):
    """Test NaN input propagates instead of raising"""
    assert math.isnan(evaluate(CURVE_POINTS, mode, math.nan))

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_non_finite_point_returns_nan(mode):
    """Test a non-finite control point yields NaN"""
    points = [ControlPoint(0, 30), ControlPoint(math.inf, 50)]
    assert math.isnan(evaluate(points, mode, 10))

def test_infinite_temperature_uses_range_ends():
    """Test infinite queries follow the boundary rules"""
    assert evaluate(CURVE_POINTS, GRADUAL, math.inf) == 100
    assert evaluate(CURVE_POINTS, GRADUAL, -math.inf) == 30
    assert evaluate(CURVE_POINTS, HARDCUT, math.inf) == 100
    assert evaluate(CURVE_POINTS, HARDCUT, -math.inf) == 30

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_huge_integer_temperature(mode):
    """Test integers too large for a float follow the boundary rules"""
    assert evaluate(CURVE_POINTS, mode, 10**400) == 100
    assert evaluate(CURVE_POINTS, mode, -10**400) == 30

def test_mode_accepts_string():
    """Test evaluate accepts the JSON mode name"""
    assert evaluate(EXAMPLE_POINTS, "gradual", 50) == 60
    assert evaluate(EXAMPLE_POINTS, "hardcut", 50) == 20

# Gradual mode

def test_gradual_interpolation():
    """Test linear interpolation between points"""
    assert evaluate(CURVE_POINTS, GRADUAL, 5) == 40    # Halfway between 30% and 50%
    assert evaluate(CURVE_POINTS, GRADUAL, 15) == 60
    assert evaluate(CURVE_POINTS, GRADUAL, 25) == 85   # Halfway between 70% and 100%

def test_gradual_example():
    """Test ratio calculation on a two point curve"""
    assert evaluate(EXAMPLE_POINTS, GRADUAL, 50) == 60
    assert evaluate(EXAMPLE_POINTS, GRADUAL, 35) == 40

def test_gradual_flat_outside_range():
    """Test speed is held below the first and above the last point"""
    assert evaluate(EXAMPLE_POINTS, GRADUAL, 0) == 20
    assert evaluate(EXAMPLE_POINTS, GRADUAL, -40) == 20
    assert evaluate(EXAMPLE_POINTS, GRADUAL, 90) == 100
    assert evaluate(EXAMPLE_POINTS, GRADUAL, 500) == 100

def test_gradual_unsorted_input():
    """Test points are interpolated in temperature order"""
    assert evaluate(UNSORTED_POINTS, GRADUAL, 30) == 32.5
    assert evaluate(UNSORTED_POINTS, GRADUAL, 50) == 47.5
    assert evaluate(UNSORTED_POINTS, GRADUAL, 70) == 75

def test_gradual_within_speed_range():
    """Test interpolation never leaves the range of control speeds"""
    speeds = [p.fan_speed for p in UNSORTED_POINTS]
    for temp in range(-20, 121):
        speed = evaluate(UNSORTED_POINTS, GRADUAL, temp)
        assert min(speeds) <= speed <= max(speeds)

def test_gradual_bounded_by_neighbours():
    """Test interpolation stays between the two bounding points"""
    curve = GradualCurve(UNSORTED_POINTS)
    for p1, p2 in zip(curve.points, curve.points[1:]):
        low, high = sorted((p1.fan_speed, p2.fan_speed))
        previous = p1.fan_speed
        temp = p1.temperature
        while temp <= p2.temperature:
            speed = curve.get_speed(temp)
            assert low <= speed <= high
            if p2.fan_speed >= p1.fan_speed:
                assert speed >= previous
            previous = speed
            temp += 0.5

def test_gradual_negative_and_out_of_range_values():
    """Test values outside 0-100 are not clamped"""
    points = [ControlPoint(-20, -10), ControlPoint(120, 130)]
    assert evaluate(points, GRADUAL, -20) == -10
    assert evaluate(points, GRADUAL, 50) == 60
    assert evaluate(points, GRADUAL, 200) == 130

def test_gradual_duplicate_temperatures():
    """Test duplicate temperatures never divide by zero"""
    points = [
        ControlPoint(10, 10),
        ControlPoint(50, 40),
        ControlPoint(50, 60),
        ControlPoint(90, 90)
    ]
    assert evaluate(points, GRADUAL, 30) == 25
    # First matching pair ends at the first duplicate
    assert evaluate(points, GRADUAL, 50) == 40
    assert evaluate(points, GRADUAL, 70) == 75

def test_gradual_duplicate_temperatures_deterministic():
    """Test ties resolve by insertion order"""
    low_first = [ControlPoint(10, 20), ControlPoint(10, 80), ControlPoint(30, 100)]
    high_first = [ControlPoint(10, 80), ControlPoint(10, 20), ControlPoint(30, 100)]

    assert evaluate(low_first, GRADUAL, 10) == 20
    assert evaluate(high_first, GRADUAL, 10) == 80
    # Interpolation starts from the last duplicate
    assert evaluate(low_first, GRADUAL, 20) == 90
    assert evaluate(high_first, GRADUAL, 20) == 60
    for _ in range(3):
        assert evaluate(low_first, GRADUAL, 20) == 90

def test_gradual_all_points_same_temperature():
    """Test a curve collapsed to one temperature"""
    points = [ControlPoint(40, 10), ControlPoint(40, 90)]
    assert evaluate(points, GRADUAL, 40) == 10
    assert evaluate(points, GRADUAL, 0) == 10
    assert evaluate(points, GRADUAL, 100) == 90

# HardCut mode

def test_hardcut_example():
    """Test step behavior on a two point curve"""
    assert evaluate(EXAMPLE_POINTS, HARDCUT, 50) == 20
    assert evaluate(EXAMPLE_POINTS, HARDCUT, 85) == 100
    assert evaluate(EXAMPLE_POINTS, HARDCUT, 79.9) == 20

def test_hardcut_steps():
    """Test speed holds until the next point"""
    assert evaluate(CURVE_POINTS, HARDCUT, 5) == 30
    assert evaluate(CURVE_POINTS, HARDCUT, 15) == 50
    assert evaluate(CURVE_POINTS, HARDCUT, 25) == 70
    assert evaluate(CURVE_POINTS, HARDCUT, 35) == 100

def test_hardcut_below_range():
    """Test queries below the first point use its speed"""
    assert evaluate(EXAMPLE_POINTS, HARDCUT, 0) == 20
    assert evaluate(EXAMPLE_POINTS, HARDCUT, -100) == 20

def test_hardcut_only_control_speeds():
    """Test step output is always one of the control speeds"""
    speeds = {p.fan_speed for p in UNSORTED_POINTS}
    for temp in range(-20, 121):
        assert evaluate(UNSORTED_POINTS, HARDCUT, temp) in speeds

def test_hardcut_duplicate_temperatures():
    """Test the last inserted duplicate wins"""
    points = [ControlPoint(10, 10), ControlPoint(50, 40), ControlPoint(50, 60)]
    assert evaluate(points, HARDCUT, 50) == 60
    assert evaluate(points, HARDCUT, 70) == 60
    assert evaluate(points, HARDCUT, 49) == 10

# Curve classes

def test_curve_for_mode():
    """Test curve factory picks the implementation"""
    assert isinstance(FanCurve.for_mode(CURVE_POINTS, GRADUAL), GradualCurve)
    assert isinstance(FanCurve.for_mode(CURVE_POINTS, "hardcut"), HardCutCurve)
    assert HardCutCurve(CURVE_POINTS).mode is HARDCUT

def test_curve_sorts_points():
    """Test curves keep a sorted copy"""
    curve = GradualCurve(UNSORTED_POINTS)
    assert [p.temperature for p in curve.points] == [20, 40, 60, 80]
    assert curve.points is not UNSORTED_POINTS

def test_base_curve_not_implemented():
    """Test base class cannot interpolate"""
    with pytest.raises(NotImplementedError):
        FanCurve(CURVE_POINTS).get_speed(5)

# Sampling

@pytest.mark.parametrize("mode", [GRADUAL, HARDCUT])
def test_sample_curve_default_range(mode):
    """Test default sampling covers 0-100 inclusive"""
    data = sample_curve(UNSORTED_POINTS, mode)
    assert len(data) == 101
    assert [p.x for p in data] == list(range(101))
    for point in data:
        assert point.y == evaluate(UNSORTED_POINTS, mode, point.x)

def test_sample_curve_empty_points():
    """Test sampling an empty curve"""
    data = sample_curve([], GRADUAL)
    assert len(data) == 101
    assert all(p.y == 0 for p in data)

def test_sample_curve_custom_step():
    """Test sampling with a custom range and step"""
    data = sample_curve(EXAMPLE_POINTS, GRADUAL, 20, 80, 15)
    assert data == [
        CurveDataPoint(20, 20),
        CurveDataPoint(35, 40),
        CurveDataPoint(50, 60),
        CurveDataPoint(65, 80),
        CurveDataPoint(80, 100)
    ]

def test_sample_curve_partial_last_step():
    """Test length is floor((stop - start) / step) + 1"""
    data = sample_curve(EXAMPLE_POINTS, GRADUAL, 0, 10, 3)
    assert [p.x for p in data] == [0, 3, 6, 9]

def test_sample_curve_invalid_range():
    """Test invalid sampling parameters"""
    assert sample_curve(EXAMPLE_POINTS, GRADUAL, 50, 10, 1) == []
    with pytest.raises(ValueError, match="Invalid step"):
        sample_curve(EXAMPLE_POINTS, GRADUAL, 0, 100, 0)
    with pytest.raises(ValueError, match="Invalid step"):
        sample_curve(EXAMPLE_POINTS, GRADUAL, 0, 100, -1)

@pytest.mark.parametrize("start,stop", [
    (math.nan, 100),
    (0, math.nan),
    (-math.inf, 100),
    (0, math.inf),
    (0, 10**400),
])
def test_sample_curve_non_finite_bounds(start, stop):
    """Test non-finite bounds are rejected before sampling"""
    with pytest.raises(ValueError, match="must be finite"):
        sample_curve(EXAMPLE_POINTS, GRADUAL, start, stop, 1)

@pytest.mark.parametrize("start,stop,step", [
    ("0", 100, 1),
    (0, None, 1),
    (0, 100, "1"),
    (0, 100, True),
])
def test_sample_curve_non_numeric_bounds(start, stop, step):
    """Test non-numeric bounds are rejected"""
    with pytest.raises(ValueError, match="must be a number"):
        sample_curve(EXAMPLE_POINTS, GRADUAL, start, stop, step)

def test_check_sampling():
    """Test sampling bound validation on its own"""
    check_sampling(0, 100, 1)
    check_sampling(0.0, 1.0, 0.25)
    with pytest.raises(ValueError, match="Invalid step"):
        check_sampling(0, 100, 0)
    with pytest.raises(ValueError, match="Invalid stop"):
        check_sampling(0, math.inf, 1)

def test_curve_data_point_to_dict():
    """Test sampled point JSON form"""
    assert CurveDataPoint(10, 25.5).to_dict() == {"x": 10, "y": 25.5}

# Data model

def test_interpolation_mode_parse():
    """Test mode parsing from JSON strings"""
    assert InterpolationMode.parse("gradual") is GRADUAL
    assert InterpolationMode.parse("HardCut") is HARDCUT
    assert InterpolationMode.parse(" hardcut ") is HARDCUT
    assert InterpolationMode.parse(GRADUAL) is GRADUAL

    with pytest.raises(ValueError, match="Invalid interpolation mode"):
        InterpolationMode.parse("linear")

def test_control_point_from_dict():
    """Test control point JSON parsing and validation"""
    point = ControlPoint.from_dict({"temperature": 40, "fanSpeed": "55.5"})
    assert point == ControlPoint(40.0, 55.5)
    assert point.to_dict() == {"temperature": 40.0, "fanSpeed": 55.5}

    with pytest.raises(InvalidNumericError, match="temperature"):
        ControlPoint.from_dict({"fanSpeed": 50})
    with pytest.raises(InvalidNumericError, match="must be finite"):
        ControlPoint.from_dict({"temperature": float("nan"), "fanSpeed": 50})
    with pytest.raises(InvalidNumericError, match="must be finite"):
        ControlPoint.from_dict({"temperature": 40, "fanSpeed": float("inf")})
    with pytest.raises(InvalidNumericError, match="must be a number"):
        ControlPoint.from_dict({"temperature": "hot", "fanSpeed": 50})
    with pytest.raises(InvalidNumericError, match="must be a number"):
        ControlPoint.from_dict({"temperature": True, "fanSpeed": 50})
    with pytest.raises(InvalidNumericError, match="must be an object"):
        ControlPoint.from_dict([40, 50])

def test_validate_points_mixed_forms():
    """Test validation accepts points, dicts and pairs in input order"""
    points = validate_points([
        ControlPoint(60, 50),
        {"temperature": 30, "fanSpeed": 25},
        [80, 100]
    ])
    assert points == [ControlPoint(60, 50), ControlPoint(30, 25), ControlPoint(80, 100)]

    with pytest.raises(InvalidNumericError):
        validate_points([ControlPoint(math.nan, 10)])
    with pytest.raises(InvalidNumericError, match="must be \\[temperature, speed\\]"):
        validate_points([[1, 2, 3]])

def test_curve_spec_from_dict():
    """Test curve spec JSON parsing"""
    spec = CurveSpec.from_dict({
        "points": [{"temperature": 80, "fanSpeed": 100}, {"temperature": 20, "fanSpeed": 20}],
        "interpolationMode": "hardcut"
    })
    assert spec.mode is HARDCUT
    assert spec.points == (ControlPoint(80, 100), ControlPoint(20, 20))
    assert spec.evaluate(50) == 20
    assert spec.to_dict()["points"][0] == {"temperature": 80, "fanSpeed": 100}

    # Mode defaults to gradual
    assert CurveSpec.from_dict({"points": []}).mode is GRADUAL

    assert CurveSpec.from_dict({"points": None}).points == ()

    with pytest.raises(ValueError, match="points must be a list"):
        CurveSpec.from_dict({"points": "nope"})
    # Falsy non-lists are not an empty curve
    for bad_points in ({}, 0, ""):
        with pytest.raises(ValueError, match="points must be a list"):
            CurveSpec.from_dict({"points": bad_points})
    with pytest.raises(ValueError):
        CurveSpec.from_dict({"points": [], "interpolationMode": "cubic"})
