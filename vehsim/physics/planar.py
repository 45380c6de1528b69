# Planar rigid-body backend
# Semi-implicit Euler integration of 2D bodies with wheel spin joints.

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..core.physics import polygon_inertia
from .backend import BodyHandle, FixtureHandle, PhysicsBackend, WheelHandle


logger = logging.getLogger(__name__)


def _cross(a: np.ndarray, b: np.ndarray) -> float:
    return float(a[0] * b[1] - a[1] * b[0])


def _rot(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s], [s, c]])


@dataclass
class _MassElement:
    mass: float
    com: np.ndarray       # local frame
    inertia: float        # about its own com


@dataclass
class _Wheel:
    body_id: int
    position: np.ndarray  # local frame
    radius: float
    inertia: float        # spin inertia
    yaw: float = 0.0
    angle: float = 0.0
    omega: float = 0.0
    torque: float = 0.0


@dataclass
class _Body:
    position: np.ndarray               # origin, global frame
    yaw: float
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))  # origin, global frame
    omega: float = 0.0
    elements: List[_MassElement] = field(default_factory=list)
    mass: float = 0.0
    com: np.ndarray = field(default_factory=lambda: np.zeros(2))
    inertia: float = 0.0
    force: np.ndarray = field(default_factory=lambda: np.zeros(2))
    torque: float = 0.0

    def update_mass(self) -> None:
        """Recompute total mass, center of mass and inertia about it."""
        self.mass = sum(e.mass for e in self.elements)
        if self.mass <= 0:
            self.com = np.zeros(2)
            self.inertia = 0.0
            return
        self.com = sum(e.mass * e.com for e in self.elements) / self.mass
        self.inertia = sum(
            e.inertia + e.mass * float(np.sum((e.com - self.com) ** 2))
            for e in self.elements
        )


class PlanarRigidBodyBackend(PhysicsBackend):
    """Top-down rigid-body world on numpy arrays.

    Bodies move in the plane (x, y, yaw). Each wheel fixture adds a spin
    degree of freedom driven by the torques applied to its handle. There
    is no collision detection.
    """

    def __init__(self, gravity: float = 9.81):
        self.gravity = gravity
        self.time = 0.0
        self._bodies: Dict[int, _Body] = {}
        self._wheels: Dict[int, _Wheel] = {}
        self._next_id = 0

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    @property
    def num_bodies(self) -> int:
        return len(self._bodies)

    def create_body(self, x: float, y: float, yaw: float) -> BodyHandle:
        body_id = self._new_id()
        self._bodies[body_id] = _Body(position=np.array([x, y], dtype=np.float64), yaw=float(yaw))
        logger.debug(f"Created body {body_id} at ({x:.3f}, {y:.3f}, {yaw:.3f})")
        return BodyHandle(body_id)

    def create_fixture(
        self,
        body: BodyHandle,
        polygon: np.ndarray,
        mass: float,
        center_of_mass: Sequence[float],
    ) -> FixtureHandle:
        b = self._bodies[body.id]
        com = np.asarray(center_of_mass, dtype=np.float64)
        inertia = polygon_inertia(polygon, mass, about=com)
        b.elements.append(_MassElement(mass=float(mass), com=com, inertia=inertia))
        b.update_mass()
        return FixtureHandle(self._new_id(), body)

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
        if inertia <= 0:
            raise ValueError(f"Wheel spin inertia must be positive, got {inertia}")
        b = self._bodies[body.id]
        pos = np.asarray(position, dtype=np.float64)
        # Disc about its vertical diameter axis
        yaw_inertia = mass * (3.0 * radius ** 2 + width ** 2) / 12.0
        b.elements.append(_MassElement(mass=float(mass), com=pos, inertia=yaw_inertia))
        b.update_mass()

        wheel_id = self._new_id()
        self._wheels[wheel_id] = _Wheel(
            body_id=body.id,
            position=pos,
            radius=float(radius),
            inertia=float(inertia),
            yaw=float(yaw),
        )
        return WheelHandle(wheel_id, body)

    def _resolve(self, handle) -> Tuple[_Body, np.ndarray]:
        """Body owning a handle and the handle's local anchor point."""
        if isinstance(handle, WheelHandle):
            wheel = self._wheels[handle.id]
            return self._bodies[wheel.body_id], wheel.position
        if isinstance(handle, FixtureHandle):
            return self._bodies[handle.body.id], np.zeros(2)
        return self._bodies[handle.id], np.zeros(2)

    def apply_force(self, handle, force: Sequence[float], local_point: Sequence[float] = (0.0, 0.0)) -> None:
        body, anchor = self._resolve(handle)
        f = np.asarray(force, dtype=np.float64)
        point = anchor + np.asarray(local_point, dtype=np.float64)
        arm = _rot(body.yaw) @ (point - body.com)
        body.force += f
        body.torque += _cross(arm, f)

    def apply_torque(self, handle, value: float) -> None:
        if isinstance(handle, WheelHandle):
            self._wheels[handle.id].torque += float(value)
        else:
            body, _ = self._resolve(handle)
            body.torque += float(value)

    def step(self, dt: float) -> None:
        if dt <= 0:
            raise ValueError(f"Timestep must be positive, got {dt}")

        for wheel in self._wheels.values():
            wheel.omega += wheel.torque / wheel.inertia * dt
            wheel.angle += wheel.omega * dt
            wheel.torque = 0.0

        for body in self._bodies.values():
            if body.mass <= 0:
                body.force[:] = 0.0
                body.torque = 0.0
                continue

            # Move the state to the center of mass, integrate, move back
            arm = _rot(body.yaw) @ body.com
            com_pos = body.position + arm
            com_vel = body.velocity + body.omega * np.array([-arm[1], arm[0]])

            com_vel = com_vel + body.force / body.mass * dt
            if body.inertia > 0:
                body.omega += body.torque / body.inertia * dt
            com_pos = com_pos + com_vel * dt
            yaw = body.yaw + body.omega * dt
            body.yaw = float(np.arctan2(np.sin(yaw), np.cos(yaw)))

            arm = _rot(body.yaw) @ body.com
            body.position = com_pos - arm
            body.velocity = com_vel - body.omega * np.array([-arm[1], arm[0]])

            body.force = np.zeros(2)
            body.torque = 0.0

        self.time += dt

    def get_transform(self, handle) -> Tuple[float, float, float]:
        body, anchor = self._resolve(handle)
        pos = body.position + _rot(body.yaw) @ anchor
        yaw = body.yaw
        if isinstance(handle, WheelHandle):
            yaw += self._wheels[handle.id].yaw
        return float(pos[0]), float(pos[1]), float(yaw)

    def get_velocity(self, handle) -> Tuple[np.ndarray, float]:
        body, anchor = self._resolve(handle)
        arm = _rot(body.yaw) @ anchor
        linear = body.velocity + body.omega * np.array([-arm[1], arm[0]])
        if isinstance(handle, WheelHandle):
            return linear.copy(), float(self._wheels[handle.id].omega)
        return linear.copy(), float(body.omega)

    def get_wheel_angle(self, handle: WheelHandle) -> float:
        return float(self._wheels[handle.id].angle)

    def set_wheel_yaw(self, handle: WheelHandle, yaw: float) -> None:
        self._wheels[handle.id].yaw = float(yaw)

    def set_body_velocity(self, handle: BodyHandle, linear: Sequence[float], omega: float) -> None:
        """Initial condition: origin velocity (global frame) and yaw rate."""
        body = self._bodies[handle.id]
        body.velocity = np.asarray(linear, dtype=np.float64).copy()
        body.omega = float(omega)

    def set_wheel_omega(self, handle: WheelHandle, omega: float) -> None:
        """Initial condition: wheel spin rate."""
        self._wheels[handle.id].omega = float(omega)
