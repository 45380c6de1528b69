# Car-like vehicle with Ackermann steering

from typing import List

import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import TickContext, Twist2D
from .base import VehicleDynamicsCore
from .wheel import WheelState


def ackermann_angles(
    steer_angle: float,
    wheel_x: np.ndarray,
    wheel_y: np.ndarray,
    rear_axle_x: float,
) -> np.ndarray:
    """Steer angle of each front wheel for a given centre steer angle.

    All wheel axes meet at the instantaneous centre of rotation, which
    lies on the rear axle line at lateral offset L / tan(steer_angle).

    Args:
        steer_angle: Steering angle of a virtual wheel at the axle centre (rad)
        wheel_x, wheel_y: Steered wheel positions, local frame
        rear_axle_x: x coordinate of the rear axle

    Returns:
        Steer angle per wheel (rad)
    """
    wheel_x = np.asarray(wheel_x, dtype=np.float64)
    wheel_y = np.asarray(wheel_y, dtype=np.float64)
    if abs(steer_angle) < 1e-9:
        return np.zeros_like(wheel_x)
    wheelbase = wheel_x - rear_axle_x
    t = np.tan(steer_angle)
    return np.arctan(wheelbase * t / (wheelbase - wheel_y * t))


class AckermannVehicle(VehicleDynamicsCore):
    """Four-wheeled car whose front wheels steer.

    Wheel order: [0] = rear-left, [1] = rear-right, [2] = front-left,
    [3] = front-right. The controller exposes a ``steer_angle`` which is
    turned into per-wheel angles with Ackermann geometry every tick.
    """

    NUM_WHEELS = 4
    DEFAULT_CHASSIS_MASS = 500.0
    DEFAULT_POLYGON = np.array([
        [-0.4, -0.8],
        [2.0, -0.8],
        [2.0, 0.8],
        [-0.4, 0.8],
    ])
    DEFAULT_COM = (0.8, 0.0)
    DEFAULT_CONTROLLER = "front_steer_pid"
    WHEEL_KEYS = ("rl_wheel", "rr_wheel", "fl_wheel", "fr_wheel")
    FRONT_WHEELS = (2, 3)

    def __init__(self, *args, max_steer_angle: float = np.deg2rad(30.0), **kwargs):
        self.max_steer_angle = max_steer_angle
        self._steer_angle = 0.0
        super().__init__(*args, **kwargs)

    @classmethod
    def default_wheels(cls) -> List[WheelState]:
        return [
            WheelState(x=0.0, y=0.7, diameter=0.6, mass=6.0),
            WheelState(x=0.0, y=-0.7, diameter=0.6, mass=6.0),
            WheelState(x=1.6, y=0.7, diameter=0.6, mass=6.0),
            WheelState(x=1.6, y=-0.7, diameter=0.6, mass=6.0),
        ]

    @property
    def rear_axle_x(self) -> float:
        return 0.5 * (self.wheels[0].x + self.wheels[1].x)

    @property
    def steer_angle(self) -> float:
        """Centre steering angle currently applied (rad)."""
        return self._steer_angle

    def finalize_geometry(self) -> None:
        front_x = [self.wheels[i].x for i in self.FRONT_WHEELS]
        if min(front_x) <= self.rear_axle_x:
            raise ConfigurationError(
                f"Front wheels (x={front_x}) must be ahead of the rear axle (x={self.rear_axle_x})"
            )
        super().finalize_geometry()

    def dynamics_load_params(self, node: dict) -> None:
        if "max_steer_ang_deg" in node:
            self.max_steer_angle = float(np.deg2rad(float(node["max_steer_ang_deg"])))
        self._load_wheels_and_controller(node, self.WHEEL_KEYS)

    def apply_steering(self, steer_angle: float) -> None:
        """Set the front wheel angles, both here and in the backend."""
        steer_angle = float(np.clip(steer_angle, -self.max_steer_angle, self.max_steer_angle))
        front = [self.wheels[i] for i in self.FRONT_WHEELS]
        angles = ackermann_angles(
            steer_angle,
            [w.x for w in front],
            [w.y for w in front],
            self.rear_axle_x,
        )
        for idx, w, angle in zip(self.FRONT_WHEELS, front, angles):
            w.yaw = float(angle)
            if self.wheel_fixtures:
                self._backend.set_wheel_yaw(self.wheel_fixtures[idx], w.yaw)
        self._steer_angle = steer_angle

    def invoke_controller(self, context: TickContext) -> np.ndarray:
        torques = self.controller.compute_torques(self.state_snapshot(context.time), context)
        self.apply_steering(getattr(self.controller, "steer_angle", 0.0))
        return torques

    def compute_odometry(self) -> Twist2D:
        return self.odometry_estimator.estimate(self.wheels)
