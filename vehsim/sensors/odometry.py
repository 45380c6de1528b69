# Dead-reckoning odometry sensor

from typing import Any, Dict, Optional
import numpy as np

from ..core.math_utils import normalize_angle
from ..core.types import TickContext, VehicleState
from .base import SensorBase, register_sensor


@register_sensor("odometry")
class OdometrySensor(SensorBase):
    """Integrates the wheel-odometry twist into a pose estimate.

    Gaussian noise proportional to the travelled distance is added to each
    increment, like a real odometry pipeline drifting over time.
    """

    def __init__(
        self,
        name: str = "odometry",
        noise_std_linear: float = 0.0,
        noise_std_angular: float = 0.0,
        period: float = 0.0,
        dropout_probability: float = 0.0,
        seed: Optional[int] = None,
    ):
        super().__init__(name, period, dropout_probability, seed)
        self.noise_std_linear = noise_std_linear
        self.noise_std_angular = noise_std_angular
        self.x = 0.0
        self.y = 0.0
        self.yaw = 0.0

    def reset(self, x: float = 0.0, y: float = 0.0, yaw: float = 0.0) -> None:
        self.x, self.y, self.yaw = x, y, yaw
        self.last_time = None

    def measure(self, vehicle_state: VehicleState, context: TickContext) -> Dict[str, Any]:
        dt = context.dt if self.last_time is None else vehicle_state.time - self.last_time
        odo = vehicle_state.odometry

        dx = odo.vx * dt
        dy = odo.vy * dt
        dyaw = odo.omega * dt
        if self.noise_std_linear > 0:
            dist = np.hypot(dx, dy)
            dx += self.rng.normal(0.0, self.noise_std_linear * dist)
            dy += self.rng.normal(0.0, self.noise_std_linear * dist)
        if self.noise_std_angular > 0:
            dyaw += self.rng.normal(0.0, self.noise_std_angular * abs(dyaw))

        cos_a, sin_a = np.cos(self.yaw), np.sin(self.yaw)
        self.x += cos_a * dx - sin_a * dy
        self.y += sin_a * dx + cos_a * dy
        self.yaw = normalize_angle(self.yaw + dyaw)

        return {
            "x": self.x,
            "y": self.y,
            "yaw": self.yaw,
            "vx": odo.vx,
            "vy": odo.vy,
            "omega": odo.omega,
        }

    @classmethod
    def from_config(cls, node: dict) -> "OdometrySensor":
        return cls(
            name=node.get("name", "odometry"),
            noise_std_linear=float(node.get("noise_std_linear", 0.0)),
            noise_std_angular=float(node.get("noise_std_angular", 0.0)),
            period=float(node.get("period", 0.0)),
            dropout_probability=float(node.get("dropout_probability", 0.0)),
            seed=node.get("seed"),
        )
