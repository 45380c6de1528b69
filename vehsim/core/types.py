# Core type definitions
# FORBIDDEN: torch, logging, any I/O

from dataclasses import dataclass, field
from typing import Tuple
import numpy as np


@dataclass(frozen=True)
class Pose:
    """Global-frame pose of the vehicle reference point."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0

    def as_2d(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.yaw)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(
            [self.x, self.y, self.z, self.yaw, self.pitch, self.roll]
        )))


@dataclass(frozen=True)
class Twist2D:
    """Planar velocity: linear (vx, vy) in m/s and yaw rate omega in rad/s."""
    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    def to_array(self) -> np.ndarray:
        return np.array([self.vx, self.vy, self.omega], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Twist2D":
        assert len(arr) == 3, f"Expected 3 components, got {len(arr)}"
        return cls(vx=float(arr[0]), vy=float(arr[1]), omega=float(arr[2]))

    def rotated(self, angle: float) -> "Twist2D":
        """Express the same twist in a frame rotated by -angle.

        rotated(yaw) maps a local twist to the global frame,
        rotated(-yaw) maps a global twist to the local frame.
        """
        cos_a = np.cos(angle)
        sin_a = np.sin(angle)
        return Twist2D(
            vx=float(cos_a * self.vx - sin_a * self.vy),
            vy=float(sin_a * self.vx + cos_a * self.vy),
            omega=self.omega,
        )

    def is_close(self, other: "Twist2D", atol: float = 1e-9) -> bool:
        return bool(np.allclose(self.to_array(), other.to_array(), atol=atol))


@dataclass(frozen=True)
class TickContext:
    """Timing information for one simulation tick."""
    time: float
    dt: float
    tick: int = 0

    def next(self) -> "TickContext":
        return TickContext(time=self.time + self.dt, dt=self.dt, tick=self.tick + 1)


@dataclass(frozen=True)
class VehicleState:
    """Immutable snapshot handed to controllers and sensors.

    Per-wheel arrays follow the wheel order defined by the vehicle type.
    """
    pose: Pose
    velocity: Twist2D              # global frame, reference point
    velocity_local: Twist2D        # local frame, reference point
    odometry: Twist2D              # local frame, from wheel spin only
    wheel_omega: np.ndarray = field(default_factory=lambda: np.zeros(0))   # rad/s
    wheel_torque: np.ndarray = field(default_factory=lambda: np.zeros(0))  # N.m
    wheel_yaw: np.ndarray = field(default_factory=lambda: np.zeros(0))     # rad
    wheel_phi: np.ndarray = field(default_factory=lambda: np.zeros(0))     # rad, spin angle
    time: float = 0.0

    @property
    def num_wheels(self) -> int:
        return len(self.wheel_omega)

    @property
    def dimension(self) -> int:
        return 9 + 3 * self.num_wheels

    def to_array(self) -> np.ndarray:
        """Flatten to float32 vector.

        Layout: [yaw, v_local(3), odometry(3), cos(yaw), sin(yaw),
        wheel_omega(n), wheel_torque(n), wheel_yaw(n)]. Global position and
        wheel spin angles are left out.
        """
        return np.concatenate([
            np.array([self.pose.yaw]),
            self.velocity_local.to_array(),
            self.odometry.to_array(),
            np.array([np.cos(self.pose.yaw), np.sin(self.pose.yaw)]),
            self.wheel_omega,
            self.wheel_torque,
            self.wheel_yaw,
        ]).astype(np.float32)

    @classmethod
    def zeros(cls, num_wheels: int) -> "VehicleState":
        """Create a state for a vehicle at rest at the origin."""
        return cls(
            pose=Pose(),
            velocity=Twist2D(),
            velocity_local=Twist2D(),
            odometry=Twist2D(),
            wheel_omega=np.zeros(num_wheels),
            wheel_torque=np.zeros(num_wheels),
            wheel_yaw=np.zeros(num_wheels),
            wheel_phi=np.zeros(num_wheels),
        )
