# Dry (Coulomb) friction with slip relaxation

from typing import Sequence
import numpy as np

from ..core.errors import ConfigurationError
from ..core.physics import GRAVITY
from ..core.types import Twist2D
from .base import (
    FrictionModel,
    effective_mass,
    register_friction_model,
    wheel_slip,
    wheel_to_chassis,
)


@register_friction_model("coulomb")
class CoulombFriction(FrictionModel):
    """Dry friction bounded by the friction circle.

    Below saturation the tyre pushes back with the force that would cancel
    the slip within ``slip_relaxation_time``:

        F_lon = -m_lon * s_lon / tau,  m_lon = 1 / (1/m + r^2/I)
        F_lat = -m * s_lat / tau

    where m is the wheel's share of the vehicle mass. The combined force is
    then scaled down to at most mu * N.
    """

    def __init__(
        self,
        mu: float = None,
        slip_relaxation_time: float = 0.05,
        gravity: float = GRAVITY,
    ):
        """Initialize Coulomb friction.

        Args:
            mu: Friction coefficient overriding the per-wheel value
            slip_relaxation_time: Time constant of slip cancellation (s)
            gravity: Gravitational acceleration
        """
        if slip_relaxation_time <= 0:
            raise ConfigurationError(
                f"slip_relaxation_time must be positive, got {slip_relaxation_time}"
            )
        if mu is not None and mu < 0:
            raise ConfigurationError(f"mu must be >= 0, got {mu}")
        self.mu = mu
        self.slip_relaxation_time = slip_relaxation_time
        self.gravity = gravity

    def compute_forces(
        self,
        wheels: Sequence,
        chassis_local_velocity: Twist2D,
    ) -> np.ndarray:
        slip = wheel_slip(wheels, chassis_local_velocity)
        forces = np.zeros_like(slip)

        for i, w in enumerate(wheels):
            m = effective_mass(w.weight, self.gravity)
            m_lon = 1.0 / (1.0 / m + w.radius ** 2 / w.inertia)
            f = -np.array([m_lon * slip[i, 0], m * slip[i, 1]]) / self.slip_relaxation_time

            mu = w.mu if self.mu is None else self.mu
            f_max = mu * w.weight
            f_norm = float(np.hypot(f[0], f[1]))
            if f_norm > f_max:
                f *= f_max / f_norm
            forces[i] = f

        return wheel_to_chassis(wheels, forces)

    @classmethod
    def from_config(cls, node: dict) -> "CoulombFriction":
        return cls(
            mu=node.get("mu"),
            slip_relaxation_time=float(node.get("slip_relaxation_time", 0.05)),
        )
