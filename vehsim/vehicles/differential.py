# Differential-drive vehicles

from typing import List

import numpy as np

from ..core.types import TickContext, Twist2D
from .base import VehicleDynamicsCore
from .wheel import WheelState


class DifferentialDrive(VehicleDynamicsCore):
    """Two independently driven wheels on a common axle.

    Wheel order: [0] = left, [1] = right.
    """

    NUM_WHEELS = 2
    DEFAULT_CHASSIS_MASS = 15.0
    DEFAULT_POLYGON = np.array([
        [-0.4, -0.5],
        [0.4, -0.5],
        [0.6, -0.3],
        [0.6, 0.3],
        [0.4, 0.5],
        [-0.4, 0.5],
    ])
    DEFAULT_CONTROLLER = "twist_pid"
    WHEEL_KEYS = ("l_wheel", "r_wheel")

    @classmethod
    def default_wheels(cls) -> List[WheelState]:
        return [
            WheelState(x=0.0, y=0.5),
            WheelState(x=0.0, y=-0.5),
        ]

    def dynamics_load_params(self, node: dict) -> None:
        self._load_wheels_and_controller(node, self.WHEEL_KEYS)

    def invoke_controller(self, context: TickContext) -> np.ndarray:
        return self.controller.compute_torques(self.state_snapshot(context.time), context)

    def compute_odometry(self) -> Twist2D:
        """Closed-form two-wheel odometry.

        omega = (v_r - v_l) / (y_l - y_r), vx = v_l + omega * y_l; the axle
        cannot slide sideways, so vy = -omega * x_axle.
        """
        left, right = self.wheels
        if left.yaw != 0.0 or right.yaw != 0.0 or left.x != right.x:
            return self.odometry_estimator.estimate(self.wheels)
        v_l = left.omega * left.radius
        v_r = right.omega * right.radius
        omega = (v_r - v_l) / (left.y - right.y)
        vx = v_l + omega * left.y
        return Twist2D(vx=vx, vy=-omega * left.x, omega=omega)


class DifferentialDrive4Wheels(DifferentialDrive):
    """Skid-steer vehicle: two wheels per side.

    Wheel order: [0] = rear-left, [1] = rear-right, [2] = front-left,
    [3] = front-right.
    """

    NUM_WHEELS = 4
    DEFAULT_CHASSIS_MASS = 20.0
    DEFAULT_POLYGON = np.array([
        [-0.6, -0.5],
        [0.6, -0.5],
        [0.6, 0.5],
        [-0.6, 0.5],
    ])
    WHEEL_KEYS = ("rl_wheel", "rr_wheel", "fl_wheel", "fr_wheel")

    @classmethod
    def default_wheels(cls) -> List[WheelState]:
        return [
            WheelState(x=-0.4, y=0.5),
            WheelState(x=-0.4, y=-0.5),
            WheelState(x=0.4, y=0.5),
            WheelState(x=0.4, y=-0.5),
        ]

    def compute_odometry(self) -> Twist2D:
        return self.odometry_estimator.estimate(self.wheels)
