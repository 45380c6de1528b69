# Vehicle class registry and config entry point

import copy
import logging
from typing import Any, Dict, Optional, Type

from ..core.errors import ConfigurationError
from .ackermann import AckermannVehicle
from .base import VehicleDynamicsCore
from .differential import DifferentialDrive, DifferentialDrive4Wheels


logger = logging.getLogger(__name__)


VEHICLE_CLASSES: Dict[str, Type[VehicleDynamicsCore]] = {
    "differential": DifferentialDrive,
    "differential_4_wheels": DifferentialDrive4Wheels,
    "ackermann": AckermannVehicle,
}

# Named parameter sets built on a dynamics class (e.g. "small_robot")
VEHICLE_TEMPLATES: Dict[str, Dict[str, Any]] = {}


def register_vehicle_class(name: str, cls: Type[VehicleDynamicsCore] = None):
    """Register a dynamics class under a config name.

    Usable directly or as a class decorator.
    """
    def decorator(klass):
        if name in VEHICLE_CLASSES:
            raise ValueError(f"Vehicle class already registered: {name}")
        if not issubclass(klass, VehicleDynamicsCore):
            raise TypeError(f"{klass.__name__} is not a VehicleDynamicsCore")
        VEHICLE_CLASSES[name] = klass
        return klass

    if cls is not None:
        return decorator(cls)
    return decorator


def register_vehicle_template(name: str, node: Dict[str, Any]) -> None:
    """Register a reusable vehicle description.

    Vehicles naming the template in ``class`` start from its keys; their
    own keys take precedence.
    """
    if name in VEHICLE_CLASSES or name in VEHICLE_TEMPLATES:
        raise ConfigurationError(f"Vehicle class or template already defined: {name}")
    if "dynamics" not in node:
        raise ConfigurationError(f"Vehicle template '{name}' must name its dynamics class")
    VEHICLE_TEMPLATES[name] = copy.deepcopy(node)
    logger.debug(f"Registered vehicle template '{name}' ({node['dynamics']})")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def resolve_vehicle_node(
    node: Dict[str, Any],
    templates: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Expand a template reference into a node naming a dynamics class.

    Args:
        node: Vehicle node
        templates: Extra templates (e.g. from a world file), searched first
    """
    node = dict(node or {})
    name = node.get("class")
    lookup = {**VEHICLE_TEMPLATES, **(templates or {})}
    if name in lookup:
        template = lookup[name]
        if "dynamics" not in template:
            raise ConfigurationError(f"Vehicle template '{name}' must name its dynamics class")
        node = _deep_merge(template, {k: v for k, v in node.items() if k != "class"})
        node["class"] = node.pop("dynamics")
    return node


def load_from_config(
    node: Dict[str, Any],
    vehicle_index: int = 0,
    templates: Optional[Dict[str, Dict[str, Any]]] = None,
) -> VehicleDynamicsCore:
    """Build a vehicle from a config node.

    Args:
        node: Vehicle description; ``class`` names a dynamics class or template
        vehicle_index: Index of the vehicle in its world
        templates: Extra vehicle templates, see resolve_vehicle_node()

    Returns:
        Vehicle, ready for create_multibody_system()
    """
    node = resolve_vehicle_node(node, templates)
    name = node.get("class")
    if name is None:
        raise ConfigurationError(f"Vehicle node has no 'class' key: {node}")
    if name not in VEHICLE_CLASSES:
        raise ConfigurationError(
            f"Unknown vehicle class: {name}. "
            f"Available: {list(VEHICLE_CLASSES.keys()) + list(VEHICLE_TEMPLATES.keys())}"
        )

    vehicle = VEHICLE_CLASSES[name].load_from_config(node)
    vehicle.vehicle_index = vehicle_index
    logger.info(f"Vehicle '{vehicle.name}' ({name}) loaded, {vehicle.num_wheels} wheels")
    return vehicle
