# Closed-loop velocity controllers

from dataclasses import dataclass, field
from typing import Sequence
import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import TickContext, VehicleState
from .base import Controller, register_controller


@dataclass
class PID:
    """Vectorised PID with output saturation and integrator clamping."""
    kp: float = 10.0
    ki: float = 0.0
    kd: float = 0.0
    max_out: float = 0.0          # 0 disables saturation
    integral: np.ndarray = field(default_factory=lambda: np.zeros(1))
    prev_error: np.ndarray = None

    def reset(self, size: int = None) -> None:
        if size is None:
            size = len(self.integral)
        self.integral = np.zeros(size)
        self.prev_error = None

    def compute(self, error: np.ndarray, dt: float) -> np.ndarray:
        """One PID update.

        Args:
            error: Setpoint minus measurement
            dt: Time since the previous update (s)

        Returns:
            Controller output, same shape as error
        """
        error = np.asarray(error, dtype=np.float64)
        if self.integral.shape != error.shape:
            self.reset(len(error))

        self.integral = self.integral + error * dt
        if self.ki > 0 and self.max_out > 0:
            limit = self.max_out / self.ki
            self.integral = np.clip(self.integral, -limit, limit)

        derivative = np.zeros_like(error)
        if self.prev_error is not None and dt > 0:
            derivative = (error - self.prev_error) / dt
        self.prev_error = error

        out = self.kp * error + self.ki * self.integral + self.kd * derivative
        if self.max_out > 0:
            out = np.clip(out, -self.max_out, self.max_out)
        return out

    @classmethod
    def from_config(cls, node: dict, default_kp: float = 10.0) -> "PID":
        return cls(
            kp=float(node.get("KP", default_kp)),
            ki=float(node.get("KI", 0.0)),
            kd=float(node.get("KD", 0.0)),
            max_out=float(node.get("max_torque", 0.0)),
        )


@register_controller("twist_pid")
class TwistPIDController(Controller):
    """Differential-drive velocity controller.

    The (v, omega) setpoint is turned into a target surface speed for each
    wheel, v_i = v - omega * y_i, tracked by a per-wheel PID on the wheel
    encoders.
    """

    def __init__(
        self,
        wheel_y: Sequence[float],
        wheel_radius: Sequence[float],
        pid: PID = None,
    ):
        super().__init__(len(wheel_y))
        self.wheel_y = np.asarray(wheel_y, dtype=np.float64)
        self.wheel_radius = np.asarray(wheel_radius, dtype=np.float64)
        if self.wheel_radius.shape != self.wheel_y.shape:
            raise ConfigurationError("wheel_y and wheel_radius must have the same length")
        self.pid = pid if pid is not None else PID(max_out=20.0)
        self.pid.reset(self.num_wheels)
        self.setpoint_v = 0.0
        self.setpoint_omega = 0.0

    def set_twist(self, v: float, omega: float) -> None:
        self.setpoint_v = float(v)
        self.setpoint_omega = float(omega)

    def wheel_targets(self) -> np.ndarray:
        """Target surface speed of each wheel (m/s)."""
        return self.setpoint_v - self.setpoint_omega * self.wheel_y

    def compute_torques(self, vehicle_state: VehicleState, context: TickContext) -> np.ndarray:
        actual = np.asarray(vehicle_state.wheel_omega) * self.wheel_radius
        return self.pid.compute(self.wheel_targets() - actual, context.dt)

    def on_command(self, command: dict) -> None:
        self.set_twist(command.get("v", self.setpoint_v), command.get("omega", self.setpoint_omega))

    def reset(self) -> None:
        self.pid.reset(self.num_wheels)

    def on_wheels_changed(self, wheels) -> None:
        self.wheel_y = np.array([w.y for w in wheels], dtype=np.float64)
        self.wheel_radius = np.array([w.radius for w in wheels], dtype=np.float64)
        self.reset()

    @classmethod
    def from_config(cls, node: dict, vehicle) -> "TwistPIDController":
        ctrl = cls(
            wheel_y=[w.y for w in vehicle.wheels],
            wheel_radius=[w.radius for w in vehicle.wheels],
            pid=PID.from_config(node, default_kp=10.0),
        )
        ctrl.set_twist(node.get("V", 0.0), node.get("W", 0.0))
        return ctrl


@register_controller("front_steer_pid")
class FrontSteerPIDController(Controller):
    """Ackermann speed + steering controller.

    Forward speed is tracked with a PID on the odometry estimate; the torque
    is shared equally by the driven wheels. The steering setpoint is exposed
    as ``steer_angle`` for the vehicle to apply to its steered wheels.
    """

    def __init__(
        self,
        num_wheels: int,
        driven_wheels: Sequence[int],
        max_steer_angle: float = np.deg2rad(30.0),
        pid: PID = None,
    ):
        super().__init__(num_wheels)
        self.driven_wheels = list(driven_wheels)
        if not self.driven_wheels or any(i < 0 or i >= num_wheels for i in self.driven_wheels):
            raise ConfigurationError(f"Invalid driven wheel indices: {driven_wheels}")
        self.max_steer_angle = max_steer_angle
        self.pid = pid if pid is not None else PID(max_out=20.0)
        self.pid.reset(1)
        self.setpoint_v = 0.0
        self.steer_angle = 0.0

    def set_setpoint(self, v: float, steer_angle: float) -> None:
        self.setpoint_v = float(v)
        self.steer_angle = float(np.clip(steer_angle, -self.max_steer_angle, self.max_steer_angle))

    def compute_torques(self, vehicle_state: VehicleState, context: TickContext) -> np.ndarray:
        error = np.array([self.setpoint_v - vehicle_state.odometry.vx])
        total = float(self.pid.compute(error, context.dt)[0])
        torques = np.zeros(self.num_wheels)
        torques[self.driven_wheels] = total / len(self.driven_wheels)
        return torques

    def on_command(self, command: dict) -> None:
        self.set_setpoint(
            command.get("v", self.setpoint_v),
            command.get("steer_angle", self.steer_angle),
        )

    def reset(self) -> None:
        self.pid.reset(1)

    @classmethod
    def from_config(cls, node: dict, vehicle) -> "FrontSteerPIDController":
        drive = node.get("drive", "rear")
        layouts = {"rear": [0, 1], "front": [2, 3], "all": [0, 1, 2, 3]}
        if drive not in layouts:
            raise ConfigurationError(f"Unknown drive layout: {drive}. Available: {list(layouts.keys())}")
        ctrl = cls(
            num_wheels=vehicle.num_wheels,
            driven_wheels=layouts[drive],
            max_steer_angle=float(np.deg2rad(node.get("max_steer_ang_deg", 30.0))),
            pid=PID.from_config(node, default_kp=20.0),
        )
        ctrl.set_setpoint(node.get("V", 0.0), float(np.deg2rad(node.get("STEER_ANG_DEG", 0.0))))
        return ctrl
