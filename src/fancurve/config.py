"""
Configuration Module

Loads and saves the YAML configuration file. Missing sections and keys
fall back to DEFAULT_CONFIG.
"""

import copy
import logging
import os
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/fancurve/config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 8080
    },
    "curve": {
        "interpolation_mode": "gradual",
        "points": [[30, 25], [60, 50], [80, 100]]
    },
    "sampling": {
        "start": 0,
        "stop": 100,
        "step": 1
    },
    "sensors": {
        "ipmi_sensors": ["CPU1 Temp", "CPU2 Temp"],
        "thermal_zone": "/sys/class/thermal/thermal_zone0/temp",
        "use_sudo": False
    }
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed"""
    pass


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration, filling gaps from defaults.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file exists but cannot be read or parsed,
            or the sampling section is invalid
    """
    if not os.path.exists(config_path):
        logger.info(f"No configuration at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration {config_path}: top level must be a mapping")

    config = _merge(DEFAULT_CONFIG, data)
    _check_sampling(config_path, config)
    logger.debug(f"Loaded configuration from {config_path}")
    return config


def _check_sampling(config_path: str, config: Dict[str, Any]) -> None:
    from .control.curve import check_sampling

    sampling = config["sampling"]
    if not isinstance(sampling, dict):
        raise ConfigError(f"Invalid configuration {config_path}: sampling must be a mapping")
    try:
        check_sampling(sampling.get("start"), sampling.get("stop"), sampling.get("step"))
    except ValueError as e:
        raise ConfigError(f"Invalid configuration {config_path}: sampling {e}")


def save_config(config_path: str, config: Dict[str, Any]) -> None:
    """Write configuration to disk.

    Raises:
        ConfigError: If the file cannot be written
    """
    try:
        directory = os.path.dirname(config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=None, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Failed to write configuration {config_path}: {e}")
    logger.debug(f"Saved configuration to {config_path}")


def setup_config(config_path: str) -> str:
    """Create the configuration file with defaults if it does not exist.

    Args:
        config_path: Path to configuration file

    Returns:
        Path to active configuration file
    """
    if not os.path.exists(config_path):
        save_config(config_path, DEFAULT_CONFIG)
        logger.info(f"Created default configuration at {config_path}")
    return config_path
