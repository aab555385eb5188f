"""
HTTP API Module

Flask application exposing the current curve, curve sampling for plotting,
fan speed lookup and the named curve store as JSON.
"""

import logging
import math
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from ..config import ConfigError
from ..control import (
    CurveNotFoundError,
    CurveSession,
    CurveSpec,
    CurveStore,
    FanCurveError,
    InterpolationMode,
    NamedCurve,
    check_sampling,
    sample_curve
)
from ..sensors import SensorError, SystemTemperatureReader

logger = logging.getLogger(__name__)

DEFAULT_SAMPLING = {"start": 0, "stop": 100, "step": 1}


def _json_number(value: float) -> Optional[float]:
    # JSON has no NaN, send null instead
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _query_temperature(name: str = "temperature") -> Optional[float]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"Invalid {name} {raw!r}, must be a number")
    if not math.isfinite(value):
        raise ValueError(f"Invalid {name} {raw!r}, must be finite")
    return value


def create_app(session: CurveSession, store: Optional[CurveStore] = None,
               reader: Optional[SystemTemperatureReader] = None,
               sampling: Optional[Dict[str, Any]] = None) -> Flask:
    """Create the Flask application

    Args:
        session: Current curve, updated and saved by generate-curve
        store: Named curve store, a new empty one if None
        reader: System temperature source for fan-speed without a query
        sampling: start/stop/step for generated curve data

    Returns:
        Configured Flask app

    Raises:
        ValueError: If sampling has a non-numeric or non-finite bound, or step <= 0
    """
    app = Flask(__name__)
    store = store if store is not None else CurveStore()
    sampling = {**DEFAULT_SAMPLING, **(sampling or {})}
    check_sampling(sampling["start"], sampling["stop"], sampling["step"])

    app.config["SESSION"] = session
    app.config["STORE"] = store
    app.config["READER"] = reader

    @app.after_request
    def enable_cors(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "POST, GET, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(CurveNotFoundError)
    def handle_not_found(e):
        return _error(str(e), 404)

    @app.errorhandler(FanCurveError)
    def handle_curve_error(e):
        return _error(str(e), 400)

    @app.errorhandler(SensorError)
    def handle_sensor_error(e):
        logger.warning(f"Temperature read failed: {e}")
        return _error(str(e), 503)

    @app.get("/api/config")
    def api_get_config():
        """Get current points and interpolation mode"""
        return jsonify(session.to_dict())

    @app.post("/api/generate-curve")
    def api_generate_curve():
        """Replace the current curve and return sampled data for plotting"""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Invalid request body", 400)
        try:
            spec = CurveSpec.from_dict(payload)
        except ValueError as e:
            return _error(str(e), 400)

        # Sample first so a failure leaves the session untouched
        curve_data = sample_curve(spec.points, spec.mode, sampling["start"], sampling["stop"], sampling["step"])

        session.update(spec.points, spec.mode)
        try:
            session.save()
        except ConfigError as e:
            logger.error(f"Could not save configuration: {e}")

        return jsonify({
            "curveData": [{"x": p.x, "y": _json_number(p.y)} for p in curve_data],
            # Input order, not sorted
            "controlPoints": [p.to_dict() for p in spec.points]
        })

    @app.get("/api/fan-speed")
    def api_fan_speed():
        """Get fan speed for a temperature, or for the current system temperature"""
        try:
            temperature = _query_temperature()
        except ValueError as e:
            return _error(str(e), 400)

        source = "query"
        if temperature is None:
            if reader is None:
                return _error("No temperature source configured", 503)
            reading = reader.read()
            temperature = reading.value
            source = reading.source

        speed = session.speed_for(temperature)
        logger.info(f"Fan speed {speed} at {temperature}°C ({source})")
        return jsonify({
            "temperature": temperature,
            "fanSpeed": _json_number(speed),
            "source": source
        })

    @app.get("/api/curves")
    def api_list_curves():
        """List all named curves"""
        return jsonify({"curves": [c.to_dict() for c in store.list()]})

    @app.get("/api/curves/<curve_id>")
    def api_get_curve(curve_id: str):
        return jsonify(store.get(curve_id).to_dict())

    @app.put("/api/curves/<curve_id>")
    def api_put_curve(curve_id: str):
        """Create or replace a named curve"""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Invalid request body", 400)
        try:
            curve = NamedCurve.from_dict(payload, curve_id=curve_id)
        except ValueError as e:
            return _error(str(e), 400)
        store.save(curve)
        return jsonify(curve.to_dict())

    @app.delete("/api/curves/<curve_id>")
    def api_delete_curve(curve_id: str):
        store.delete(curve_id)
        return jsonify({"success": True})

    @app.get("/api/curves/<curve_id>/speed")
    def api_curve_speed(curve_id: str):
        """Get fan speed from a named curve"""
        try:
            temperature = _query_temperature()
            if temperature is None:
                return _error("temperature required", 400)
            mode = request.args.get("interpolationMode")
            mode = InterpolationMode.parse(mode) if mode else None
        except ValueError as e:
            return _error(str(e), 400)

        speed = store.evaluate(curve_id, temperature, mode)
        return jsonify({"id": curve_id, "temperature": temperature, "fanSpeed": _json_number(speed)})

    return app
