# Physics backend contract
# The backend owns body/fixture lifetimes; vehicles only hold handles.

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple
import numpy as np


@dataclass(frozen=True)
class BodyHandle:
    """Opaque reference to a rigid body inside a backend."""
    id: int


@dataclass(frozen=True)
class FixtureHandle:
    """Opaque reference to a shape attached to a body."""
    id: int
    body: BodyHandle


@dataclass(frozen=True)
class WheelHandle:
    """Fixture with a spin degree of freedom (wheel on an axle)."""
    id: int
    body: BodyHandle


class PhysicsBackend(ABC):
    """Rigid-body engine interface consumed by the vehicle core.

    Forces are given in the global frame, application points in the local
    frame of the body the handle belongs to.
    """

    @abstractmethod
    def create_body(self, x: float, y: float, yaw: float) -> BodyHandle:
        """Create a dynamic body whose origin sits at (x, y, yaw)."""

    @abstractmethod
    def create_fixture(
        self,
        body: BodyHandle,
        polygon: np.ndarray,
        mass: float,
        center_of_mass: Sequence[float],
    ) -> FixtureHandle:
        """Attach a polygonal shape and add its mass to ``body``."""

    @abstractmethod
    def create_wheel_fixture(
        self,
        body: BodyHandle,
        position: Sequence[float],
        radius: float,
        mass: float,
        inertia: float,
        width: float = 0.0,
        yaw: float = 0.0,
    ) -> WheelHandle:
        """Attach a wheel at a local position; its spin is integrated by the backend."""

    @abstractmethod
    def apply_force(self, handle, force: Sequence[float], local_point: Sequence[float] = (0.0, 0.0)) -> None:
        """Accumulate a global-frame force at a body-local point until the next step."""

    @abstractmethod
    def apply_torque(self, handle, value: float) -> None:
        """Yaw torque for bodies, spin torque for wheels."""

    @abstractmethod
    def step(self, dt: float) -> None:
        """Integrate all bodies by dt and clear accumulated forces."""

    @abstractmethod
    def get_transform(self, handle) -> Tuple[float, float, float]:
        """Global (x, y, yaw) of a body origin or wheel centre."""

    @abstractmethod
    def get_velocity(self, handle) -> Tuple[np.ndarray, float]:
        """Global linear velocity and angular rate (yaw rate, or spin rate for wheels)."""

    @abstractmethod
    def get_wheel_angle(self, handle: WheelHandle) -> float:
        """Accumulated spin angle of a wheel (rad)."""

    @abstractmethod
    def set_wheel_yaw(self, handle: WheelHandle, yaw: float) -> None:
        """Steer a wheel about its vertical axis (local frame)."""

    def set_body_velocity(self, handle: BodyHandle, linear: Sequence[float], omega: float) -> None:
        """Set the initial velocity of a body origin (global frame)."""
        raise NotImplementedError(f"{type(self).__name__} does not support velocity initialisation")

    def set_wheel_omega(self, handle: WheelHandle, omega: float) -> None:
        """Set the initial spin rate of a wheel."""
        raise NotImplementedError(f"{type(self).__name__} does not support wheel spin initialisation")
