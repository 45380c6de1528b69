# Viscous (linear damping) friction

from typing import Sequence
import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import Twist2D
from .base import FrictionModel, register_friction_model, wheel_slip, wheel_to_chassis


@register_friction_model("viscous")
class ViscousFriction(FrictionModel):
    """Force proportional to slip velocity.

    F_lon = -c_lon * s_lon, F_lat = -c_lat * s_lat, optionally saturated
    at mu * N per wheel.
    """

    def __init__(
        self,
        c_longitudinal: float = 50.0,
        c_lateral: float = 50.0,
        saturate: bool = False,
    ):
        if c_longitudinal < 0 or c_lateral < 0:
            raise ConfigurationError(
                f"Damping coefficients must be >= 0, got ({c_longitudinal}, {c_lateral})"
            )
        self.c_longitudinal = c_longitudinal
        self.c_lateral = c_lateral
        self.saturate = saturate

    def compute_forces(
        self,
        wheels: Sequence,
        chassis_local_velocity: Twist2D,
    ) -> np.ndarray:
        slip = wheel_slip(wheels, chassis_local_velocity)
        forces = -slip * np.array([self.c_longitudinal, self.c_lateral])

        if self.saturate:
            for i, w in enumerate(wheels):
                f_max = w.mu * w.weight
                f_norm = float(np.hypot(forces[i, 0], forces[i, 1]))
                if f_norm > f_max:
                    forces[i] *= f_max / f_norm

        return wheel_to_chassis(wheels, forces)

    @classmethod
    def from_config(cls, node: dict) -> "ViscousFriction":
        return cls(
            c_longitudinal=float(node.get("c_longitudinal", 50.0)),
            c_lateral=float(node.get("c_lateral", 50.0)),
            saturate=bool(node.get("saturate", False)),
        )
