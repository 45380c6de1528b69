# Configuration loading and validation
# World files are YAML documents; every section is a plain dict.

from pathlib import Path
from typing import Any, Dict, List

import yaml

from .core.errors import ConfigurationError


DEFAULT_CONFIG: Dict[str, Any] = {
    "world": {
        "dt": 0.01,
        "gravity": 9.81,
    },
    "comms": {
        "enabled": False,
        "node_name": "world",
    },
    "run": {
        "name": "sim",
        "num_ticks": 1000,
        "record": False,
        "log_every": 100,
    },
    "logging": {
        "level": "INFO",
    },
    "vehicle_classes": {},
    "vehicles": [],
}


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file

    Returns:
        Configuration dictionary, missing sections filled from DEFAULT_CONFIG
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Top level of {config_path} must be a mapping")
    return with_defaults(config)


def with_defaults(config: dict) -> dict:
    """Fill missing sections and keys from DEFAULT_CONFIG."""
    out = dict(config)
    for section, defaults in DEFAULT_CONFIG.items():
        if section not in out or out[section] is None:
            out[section] = type(defaults)(defaults)
        elif isinstance(defaults, dict) and isinstance(out[section], dict):
            out[section] = {**defaults, **out[section]}
    return out


def apply_overrides(config: dict, overrides: list) -> dict:
    """Apply command-line overrides to config.

    Args:
        config: Base configuration
        overrides: List of "key.subkey=value" strings

    Returns:
        Modified configuration
    """
    for override in overrides:
        if "=" not in override:
            raise ConfigurationError(f"Invalid override format: {override}. Expected key=value")

        key, value = override.split("=", 1)
        keys = key.split(".")

        # Navigate to nested key; integer keys index into lists (vehicles.0.name)
        d = config
        for k in keys[:-1]:
            if isinstance(d, list):
                d = d[int(k)]
                continue
            if k not in d:
                d[k] = {}
            d = d[k]

        last = int(keys[-1]) if isinstance(d, list) else keys[-1]
        d[last] = _parse_value(value)

    return config


def _parse_value(value: str) -> Any:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.startswith("["):
        return yaml.safe_load(value)
    return value


def validate_config(config: dict) -> List[str]:
    """Validate configuration.

    Args:
        config: Configuration dictionary

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    # Validate world
    world = config.get("world", {})
    dt = world.get("dt", 0)
    if not isinstance(dt, (int, float)) or dt <= 0:
        errors.append(f"world.dt must be positive, got {dt}")

    # Validate run
    run = config.get("run", {})
    num_ticks = run.get("num_ticks", 0)
    if not isinstance(num_ticks, int) or num_ticks <= 0:
        errors.append(f"run.num_ticks must be a positive integer, got {num_ticks}")

    # Validate logging
    level = config.get("logging", {}).get("level", "INFO")
    if str(level).upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        errors.append(f"logging.level must be DEBUG, INFO, WARNING or ERROR, got '{level}'")

    # Validate vehicle templates
    templates = config.get("vehicle_classes") or {}
    if not isinstance(templates, dict):
        errors.append("vehicle_classes must be a mapping of name to vehicle description")
        templates = {}
    for name, template in templates.items():
        if not isinstance(template, dict) or "dynamics" not in template:
            errors.append(f"vehicle_classes.{name}.dynamics is required")

    # Validate vehicles
    vehicles = config.get("vehicles")
    if not isinstance(vehicles, list) or not vehicles:
        errors.append("vehicles must be a non-empty list")
        return errors

    names = set()
    for i, node in enumerate(vehicles):
        prefix = f"vehicles[{i}]"
        if not isinstance(node, dict):
            errors.append(f"{prefix} must be a mapping")
            continue
        if "class" not in node:
            errors.append(f"{prefix}.class is required")
        name = node.get("name")
        if not name:
            errors.append(f"{prefix}.name is required")
        elif name in names:
            errors.append(f"{prefix}.name '{name}' is used twice")
        names.add(name)

        for key in ("init_pose", "init_vel"):
            if key in node:
                value = node[key]
                if not isinstance(value, (list, tuple)) or len(value) != 3:
                    errors.append(f"{prefix}.{key} must be a list of 3 numbers, got {value}")

        chassis = node.get("chassis", {})
        if "mass" in chassis and not (isinstance(chassis["mass"], (int, float)) and chassis["mass"] > 0):
            errors.append(f"{prefix}.chassis.mass must be positive, got {chassis['mass']}")
        if "polygon" in chassis and len(chassis["polygon"]) < 3:
            errors.append(f"{prefix}.chassis.polygon needs at least 3 vertices")

    return errors


def check_config(config: dict) -> None:
    """Raise ConfigurationError listing every validation error."""
    errors = validate_config(config)
    if errors:
        raise ConfigurationError("Invalid configuration:\n  - " + "\n  - ".join(errors))
