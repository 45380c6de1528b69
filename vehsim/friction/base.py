# Friction model capability
# Wheel/ground contact forces from the chassis and wheel kinematics.

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Type
import numpy as np

from ..core.errors import ConfigurationError
from ..core.physics import GRAVITY
from ..core.types import Twist2D


def wheel_slip(wheels: Sequence, chassis_local_velocity: Twist2D) -> np.ndarray:
    """Slip velocity of every wheel in its own frame.

    s_lon = v_lon - omega * r  (positive: ground moves faster than tread)
    s_lat = v_lat

    Args:
        wheels: Sequence of WheelState
        chassis_local_velocity: Reference point twist, local frame

    Returns:
        Slip velocities, shape (n, 2), columns (longitudinal, lateral)
    """
    v = chassis_local_velocity
    slip = np.zeros((len(wheels), 2))
    for i, w in enumerate(wheels):
        # Wheel centre velocity in the chassis frame
        cvx = v.vx - v.omega * w.y
        cvy = v.vy + v.omega * w.x
        cos_a, sin_a = np.cos(w.yaw), np.sin(w.yaw)
        v_lon = cos_a * cvx + sin_a * cvy
        v_lat = -sin_a * cvx + cos_a * cvy
        slip[i, 0] = v_lon - w.omega * w.radius
        slip[i, 1] = v_lat
    return slip


def wheel_to_chassis(wheels: Sequence, forces_wheel_frame: np.ndarray) -> np.ndarray:
    """Rotate per-wheel (lon, lat) forces into the chassis frame."""
    out = np.zeros_like(forces_wheel_frame, dtype=np.float64)
    for i, w in enumerate(wheels):
        cos_a, sin_a = np.cos(w.yaw), np.sin(w.yaw)
        f_lon, f_lat = forces_wheel_frame[i]
        out[i, 0] = cos_a * f_lon - sin_a * f_lat
        out[i, 1] = sin_a * f_lon + cos_a * f_lat
    return out


class FrictionModel(ABC):
    """Converts wheel/chassis kinematics into contact forces.

    Implementations are pure: they read wheel states but never modify
    them, and return zero force when no wheel slips.
    """

    name = "base"

    @abstractmethod
    def compute_forces(
        self,
        wheels: Sequence,
        chassis_local_velocity: Twist2D,
    ) -> np.ndarray:
        """Compute ground contact forces.

        Args:
            wheels: Ordered WheelState sequence
            chassis_local_velocity: Reference point twist, local frame

        Returns:
            Forces on each wheel in the chassis frame, shape (n, 2)
        """

    @classmethod
    def from_config(cls, node: dict) -> "FrictionModel":
        return cls()


FRICTION_MODELS: Dict[str, Type[FrictionModel]] = {}


def register_friction_model(name: str):
    """Class decorator adding a model to the friction registry."""
    def decorator(cls):
        if name in FRICTION_MODELS:
            raise ValueError(f"Friction model already registered: {name}")
        cls.name = name
        FRICTION_MODELS[name] = cls
        return cls
    return decorator


def create_friction_model(node: dict) -> FrictionModel:
    """Instantiate the friction model named by ``node['class']``.

    Args:
        node: Friction config node (defaults to the Coulomb model)

    Returns:
        FrictionModel instance
    """
    node = node or {}
    name = node.get("class", "coulomb")
    if name not in FRICTION_MODELS:
        raise ConfigurationError(
            f"Unknown friction model: {name}. Available: {list(FRICTION_MODELS.keys())}"
        )
    return FRICTION_MODELS[name].from_config(node)


def effective_mass(weight: float, gravity: float = GRAVITY) -> float:
    """Share of the vehicle mass carried by a wheel."""
    return max(weight / gravity, 1e-6)
