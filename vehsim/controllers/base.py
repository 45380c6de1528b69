# Controller capability
# Converts the current vehicle state into per-wheel torque commands.

from abc import ABC, abstractmethod
from typing import Dict, Type
import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import TickContext, VehicleState


class Controller(ABC):
    """Low-level motor controller bound to one vehicle.

    Must be deterministic given (vehicle_state, context) and its own
    internal state. Any state carried across ticks (integrators, filters)
    belongs to the controller.
    """

    name = "base"

    def __init__(self, num_wheels: int):
        if num_wheels <= 0:
            raise ConfigurationError(f"Controller needs at least one wheel, got {num_wheels}")
        self.num_wheels = num_wheels

    @abstractmethod
    def compute_torques(
        self,
        vehicle_state: VehicleState,
        context: TickContext,
    ) -> np.ndarray:
        """Compute motor torques.

        Args:
            vehicle_state: Snapshot from the end of the previous tick
            context: Current tick timing

        Returns:
            Torque per wheel (N.m), length num_wheels
        """

    def on_command(self, command: dict) -> None:
        """Accept an external setpoint (e.g. from a joystick or topic)."""
        raise ValueError(f"Controller '{self.name}' does not accept commands: {command}")

    def reset(self) -> None:
        """Clear internal state carried across ticks."""

    def on_wheels_changed(self, wheels) -> None:
        """Called when the vehicle replaces its wheel definitions."""

    @classmethod
    def from_config(cls, node: dict, vehicle) -> "Controller":
        return cls(num_wheels=vehicle.num_wheels)


CONTROLLERS: Dict[str, Type[Controller]] = {}


def register_controller(name: str):
    """Class decorator adding a controller to the registry."""
    def decorator(cls):
        if name in CONTROLLERS:
            raise ValueError(f"Controller already registered: {name}")
        cls.name = name
        CONTROLLERS[name] = cls
        return cls
    return decorator


def create_controller(node: dict, vehicle, default: str = "raw") -> Controller:
    """Instantiate the controller named by ``node['class']`` for a vehicle.

    Args:
        node: Controller config node
        vehicle: Vehicle the controller drives (wheel layout is read from it)
        default: Controller used when the node names none

    Returns:
        Controller instance
    """
    node = node or {}
    name = node.get("class", default)
    if name not in CONTROLLERS:
        raise ConfigurationError(
            f"Unknown controller: {name}. Available: {list(CONTROLLERS.keys())}"
        )
    return CONTROLLERS[name].from_config(node, vehicle)
