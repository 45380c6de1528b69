# Vehicle dynamics core
# Per-tick state machine between the controller, the friction model and
# the physics backend.

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..analysis.logger import TelemetryLogger
from ..controllers import Controller, create_controller
from ..core.errors import (
    BackendStateError,
    ConfigurationError,
    ContractViolation,
    SensorUnavailable,
)
from ..core.geometry import ChassisGeometry
from ..core.math_utils import normalize_angle, rigid_point_velocity, rotation_matrix
from ..core.physics import GRAVITY, static_wheel_loads
from ..core.types import Pose, TickContext, Twist2D, VehicleState
from ..friction import CoulombFriction, FrictionModel, create_friction_model
from ..physics.backend import BodyHandle, FixtureHandle, PhysicsBackend, WheelHandle
from ..sensors import SensorBase, create_sensor
from ..telemetry import fields
from ..telemetry.render import RenderSnapshotBuffer
from ..telemetry.validation import StateValidator
from .odometry import OdometryEstimator
from .wheel import WheelState


logger = logging.getLogger(__name__)

# Length of a rendered force arrow per Newton (m/N)
FORCE_RENDER_SCALE = 0.01


class SimState(Enum):
    IDLE = "idle"
    PRE_STEP = "pre_step"
    STEPPED = "stepped"
    POST_STEP = "post_step"


class VehicleDynamicsCore(ABC):
    """Base of every vehicle type (differential, Ackermann, ...).

    Owns the wheels, the chassis geometry and the last pose/velocity, and
    drives one friction model and one controller. Subclasses fix the wheel
    layout and implement the capability methods dynamics_load_params(),
    invoke_controller() and compute_odometry().

    Tick sequence, driven by the owning simulation loop:

        simul_pre_timestep(ctx) -> backend.step(dt) -> on_backend_stepped()
        -> simul_post_timestep(ctx)
    """

    NUM_WHEELS = 0
    DEFAULT_CHASSIS_MASS = 15.0
    DEFAULT_POLYGON = np.array([[-0.4, -0.5], [0.4, -0.5], [0.4, 0.5], [-0.4, 0.5]])
    DEFAULT_COM = (0.0, 0.0)
    DEFAULT_CONTROLLER = "raw"

    def __init__(
        self,
        name: str = "vehicle",
        chassis: Optional[ChassisGeometry] = None,
        wheels: Optional[Sequence[WheelState]] = None,
        friction: Optional[FrictionModel] = None,
        controller: Optional[Controller] = None,
    ):
        """Initialize vehicle.

        Args:
            name: User-supplied vehicle name (e.g. "r1")
            chassis: Chassis geometry (class default when None)
            wheels: Ordered wheels (class default layout when None)
            friction: Ground friction model (Coulomb when None)
            controller: Motor controller (class default when None)
        """
        if chassis is None:
            chassis = ChassisGeometry(self.DEFAULT_POLYGON, self.DEFAULT_CHASSIS_MASS, self.DEFAULT_COM)
        if wheels is None:
            wheels = self.default_wheels()
        if len(wheels) != self.NUM_WHEELS:
            raise ConfigurationError(
                f"{type(self).__name__} needs {self.NUM_WHEELS} wheels, got {len(wheels)}"
            )

        self.name = name
        self.vehicle_index = 0
        self.chassis = chassis
        self._wheels: Tuple[WheelState, ...] = tuple(w.copy() for w in wheels)
        self.friction = friction if friction is not None else CoulombFriction()
        self.odometry_estimator = OdometryEstimator()
        self.sensors: List[SensorBase] = []
        self.render_buffer = RenderSnapshotBuffer()

        self._pose = Pose()
        self._velocity = Twist2D()
        self._velocity_local = Twist2D()
        self._odometry = Twist2D()

        self._torques: Optional[np.ndarray] = None
        self._friction_forces = np.zeros((self.NUM_WHEELS, 2))
        self._pending_segments: List[np.ndarray] = []
        self._state = SimState.IDLE
        self._time = 0.0

        self._backend: Optional[PhysicsBackend] = None
        self._chassis_body: Optional[BodyHandle] = None
        self._chassis_fixture: Optional[FixtureHandle] = None
        self._wheel_fixtures: Tuple[WheelHandle, ...] = ()

        self._loggers: Dict[str, TelemetryLogger] = {}
        self.init_loggers()

        self.finalize_geometry()
        self.controller = controller if controller is not None else create_controller(
            {}, self, default=self.DEFAULT_CONTROLLER
        )

    # ------- Capability interface (per vehicle type) ------

    @classmethod
    @abstractmethod
    def default_wheels(cls) -> List[WheelState]:
        """Wheel layout used when the configuration gives none."""

    @abstractmethod
    def dynamics_load_params(self, node: dict) -> None:
        """Parse the wheel layout and controller from a vehicle config node."""

    @abstractmethod
    def invoke_controller(self, context: TickContext) -> np.ndarray:
        """Run the motor controller; returns one torque per wheel."""

    @abstractmethod
    def compute_odometry(self) -> Twist2D:
        """Local-frame twist estimated from wheel spin and geometry only."""

    # ------- Geometry / mass distribution ------

    def finalize_geometry(self) -> None:
        """Recompute per-wheel normal loads and check the wheel layout.

        Must be called after wheels or chassis change and before the
        multibody system is created.
        """
        if self._backend is not None:
            raise ContractViolation("Geometry cannot change after create_multibody_system()")

        positions = np.array([[w.x, w.y] for w in self._wheels])
        loads = static_wheel_loads(self.total_mass, self.center_of_mass, positions, GRAVITY)
        for w, load in zip(self._wheels, loads):
            w.weight = float(load)

        self.odometry_estimator.check_layout(self._wheels)

    def set_wheels(self, wheels: Sequence[WheelState]) -> None:
        """Replace the wheel definitions (same count, before construction only)."""
        if len(wheels) != self.NUM_WHEELS:
            raise ConfigurationError(
                f"{type(self).__name__} needs {self.NUM_WHEELS} wheels, got {len(wheels)}"
            )
        if self._backend is not None:
            raise ContractViolation("Wheels cannot change after create_multibody_system()")
        self._wheels = tuple(w.copy() for w in wheels)
        self.finalize_geometry()
        self.controller.on_wheels_changed(self._wheels)

    @property
    def wheels(self) -> Tuple[WheelState, ...]:
        return self._wheels

    @property
    def num_wheels(self) -> int:
        return len(self._wheels)

    def get_wheel_info(self, idx: int) -> WheelState:
        return self._wheels[idx]

    @property
    def chassis_mass(self) -> float:
        """Chassis mass, excluding wheels."""
        return self.chassis.mass

    @property
    def total_mass(self) -> float:
        return self.chassis.mass + sum(w.mass for w in self._wheels)

    @property
    def center_of_mass(self) -> np.ndarray:
        """Overall center of mass (chassis and wheels), local frame."""
        weighted = self.chassis.mass * self.chassis.center_of_mass
        for w in self._wheels:
            weighted = weighted + w.mass * w.position
        return weighted / self.total_mass

    @property
    def max_radius(self) -> float:
        return self.chassis.max_radius

    # ------- State accessors ------

    @property
    def pose(self) -> Pose:
        """Last tick pose of the reference point (global frame, ground truth)."""
        return self._pose

    @property
    def velocity(self) -> Twist2D:
        """Last tick velocity of the reference point (global frame, ground truth)."""
        return self._velocity

    @property
    def velocity_local(self) -> Twist2D:
        """Last tick velocity of the reference point (local frame, ground truth)."""
        return self._velocity_local

    @property
    def odometry_estimate(self) -> Twist2D:
        """Last tick wheel-odometry twist (local frame)."""
        return self._odometry

    @property
    def sim_state(self) -> SimState:
        return self._state

    @property
    def torque_buffer(self) -> Optional[np.ndarray]:
        """Torques of the tick in progress; None outside a tick."""
        return None if self._torques is None else self._torques.copy()

    @property
    def friction_forces(self) -> np.ndarray:
        """Friction forces of the last tick, chassis frame, shape (n, 2)."""
        return self._friction_forces.copy()

    @property
    def chassis_body(self) -> Optional[BodyHandle]:
        return self._chassis_body

    @property
    def wheel_fixtures(self) -> Tuple[WheelHandle, ...]:
        return self._wheel_fixtures

    def override_pose(self, pose: Pose) -> None:
        """Overwrite the pose without touching the backend or the velocity.

        Escape hatch: until the next simul_post_timestep() the pose is no
        longer consistent with the velocity or with the backend body.
        """
        logger.warning(f"Vehicle '{self.name}': pose manually overridden to {pose}")
        self._pose = pose

    def set_initial_state(self, pose: Pose, velocity: Twist2D = None) -> None:
        """Initial pose and local-frame velocity, before the multibody system exists."""
        if self._backend is not None:
            raise ContractViolation("Initial state must be set before create_multibody_system()")
        if velocity is None:
            velocity = Twist2D()
        self._pose = pose
        self._velocity_local = velocity
        self._velocity = velocity.rotated(pose.yaw)

        # Wheels start rolling without slip
        for w, (cvx, cvy) in zip(self._wheels, self.wheel_velocities_local(velocity)):
            v_lon = np.cos(w.yaw) * cvx + np.sin(w.yaw) * cvy
            w.omega = float(v_lon / w.radius)
        self._odometry = self.compute_odometry()

    def wheel_velocities_local(self, twist: Twist2D = None) -> np.ndarray:
        """Velocity of each wheel centre in the local frame.

        Args:
            twist: Reference point twist, local frame (ground truth by default)

        Returns:
            Array of shape (n, 2)
        """
        if twist is None:
            twist = self._velocity_local
        positions = np.array([[w.x, w.y] for w in self._wheels])
        return rigid_point_velocity(twist.vx, twist.vy, twist.omega, positions)

    def state_snapshot(self, time: float = None) -> VehicleState:
        """Immutable copy of the current state for controllers and sensors."""
        torques = self._torques if self._torques is not None else [w.torque for w in self._wheels]
        return VehicleState(
            pose=self._pose,
            velocity=self._velocity,
            velocity_local=self._velocity_local,
            odometry=self._odometry,
            wheel_omega=np.array([w.omega for w in self._wheels]),
            wheel_torque=np.array(torques, dtype=np.float64),
            wheel_yaw=np.array([w.yaw for w in self._wheels]),
            wheel_phi=np.array([w.phi for w in self._wheels]),
            time=self._time if time is None else time,
        )

    # ------- Construction in the physics backend ------

    def create_multibody_system(self, backend: PhysicsBackend) -> None:
        """Create the chassis body and wheel fixtures in the backend.

        May be called once per vehicle.
        """
        if self._backend is not None:
            raise ContractViolation(
                f"create_multibody_system() called twice on vehicle '{self.name}'"
            )
        # Wheels are mutable after construction; nothing reaches the backend unless all are valid
        for i, w in enumerate(self._wheels):
            if min(w.radius, w.mass, w.width, w.inertia) <= 0:
                raise ConfigurationError(
                    f"Wheel {i} of '{self.name}' has non-positive geometry "
                    f"(radius={w.radius}, mass={w.mass}, width={w.width}, inertia={w.inertia})"
                )

        body = backend.create_body(self._pose.x, self._pose.y, self._pose.yaw)
        chassis_fixture = backend.create_fixture(
            body,
            self.chassis.polygon,
            self.chassis.mass,
            self.chassis.center_of_mass,
        )
        wheel_fixtures = tuple(
            backend.create_wheel_fixture(
                body,
                (w.x, w.y),
                radius=w.radius,
                mass=w.mass,
                inertia=w.inertia,
                width=w.width,
                yaw=w.yaw,
            )
            for w in self._wheels
        )

        if self._velocity.to_array().any():
            backend.set_body_velocity(body, (self._velocity.vx, self._velocity.vy), self._velocity.omega)
        for handle, w in zip(wheel_fixtures, self._wheels):
            if w.omega != 0.0:
                backend.set_wheel_omega(handle, w.omega)

        self._backend = backend
        self._chassis_body = body
        self._chassis_fixture = chassis_fixture
        self._wheel_fixtures = wheel_fixtures
        logger.info(
            f"Vehicle '{self.name}': created multibody system "
            f"({self.num_wheels} wheels, mass {self.total_mass:.2f} kg)"
        )

    # ------- Tick state machine ------

    def _require_state(self, expected: SimState, operation: str) -> None:
        if self._state is not expected:
            raise ContractViolation(
                f"Vehicle '{self.name}': {operation}() called in state "
                f"{self._state.value}, expected {expected.value}"
            )

    def simul_pre_timestep(self, context: TickContext) -> None:
        """Compute torques and friction forces and hand them to the backend."""
        self._require_state(SimState.IDLE, "simul_pre_timestep")
        if self._backend is None:
            raise ContractViolation(
                f"Vehicle '{self.name}': create_multibody_system() must be called before stepping"
            )

        torques = np.asarray(self.invoke_controller(context), dtype=np.float64)
        if torques.ndim != 1 or len(torques) != self.num_wheels:
            raise ContractViolation(
                f"Controller '{self.controller.name}' returned {torques.shape} torques "
                f"for {self.num_wheels} wheels"
            )
        if not np.all(np.isfinite(torques)):
            raise ContractViolation(f"Controller '{self.controller.name}' returned non-finite torques: {torques}")

        forces = np.asarray(
            self.friction.compute_forces(
                tuple(w.copy() for w in self._wheels),
                self._velocity_local,
            ),
            dtype=np.float64,
        )
        if forces.shape != (self.num_wheels, 2):
            raise ContractViolation(
                f"Friction model '{self.friction.name}' returned forces of shape {forces.shape}, "
                f"expected ({self.num_wheels}, 2)"
            )

        rot = rotation_matrix(self._pose.yaw)
        for i, (w, handle) in enumerate(zip(self._wheels, self._wheel_fixtures)):
            f_global = rot @ forces[i]
            self._backend.apply_force(self._chassis_body, f_global, (w.x, w.y))

            # Ground reaction on the tread opposes the spin
            f_lon = np.cos(w.yaw) * forces[i, 0] + np.sin(w.yaw) * forces[i, 1]
            self._backend.apply_torque(handle, torques[i] - f_lon * w.radius)

            w.torque = float(torques[i])
            self._add_force_segment(f_global, (w.x, w.y), height=w.radius)

        self._torques = torques
        self._friction_forces = forces
        self._state = SimState.PRE_STEP

    def on_backend_stepped(self) -> None:
        """Mark that the backend has integrated this tick."""
        self._require_state(SimState.PRE_STEP, "on_backend_stepped")
        self._state = SimState.STEPPED

    def simul_post_timestep(self, context: TickContext) -> None:
        """Read the integrated state back from the backend and publish it."""
        self._require_state(SimState.STEPPED, "simul_post_timestep")
        self._state = SimState.POST_STEP

        x, y, yaw = self._backend.get_transform(self._chassis_body)
        linear, omega = self._backend.get_velocity(self._chassis_body)

        valid, violations = StateValidator.validate(np.array([x, y]), yaw, linear, omega)
        if not valid:
            for v in violations:
                logger.error(f"Vehicle '{self.name}': {v}")
            raise BackendStateError(
                f"Vehicle '{self.name}': backend returned invalid state at t={context.time:.4f}: "
                + "; ".join(violations)
            )
        for v in violations:
            logger.warning(f"Vehicle '{self.name}': {v}")

        wheel_omega = np.zeros(self.num_wheels)
        wheel_phi = np.zeros(self.num_wheels)
        for i, handle in enumerate(self._wheel_fixtures):
            _, wheel_omega[i] = self._backend.get_velocity(handle)
            wheel_phi[i] = self._backend.get_wheel_angle(handle)
        if not StateValidator.check_nan_inf(wheel_omega, wheel_phi):
            raise BackendStateError(
                f"Vehicle '{self.name}': backend returned non-finite wheel spin {wheel_omega}"
            )
        for v in StateValidator.check_wheel_omega(wheel_omega):
            logger.warning(f"Vehicle '{self.name}': {v}")

        # Whole-object replacement: readers never see a half-updated pose
        pose = Pose(
            x=float(x),
            y=float(y),
            z=0.0,
            yaw=normalize_angle(float(yaw)),
            pitch=0.0,
            roll=0.0,
        )
        velocity = Twist2D(vx=float(linear[0]), vy=float(linear[1]), omega=float(omega))
        self._pose = pose
        self._velocity = velocity
        self._velocity_local = velocity.rotated(-pose.yaw)

        for w, om, phi in zip(self._wheels, wheel_omega, wheel_phi):
            w.omega = float(om)
            w.phi = float(phi)

        self._odometry = self.compute_odometry()
        self._time = context.time + context.dt

        snapshot = self.state_snapshot(self._time)
        self._run_sensors(snapshot, context)
        self._write_logs()

        self.render_buffer.publish(self._pending_segments, tick=context.tick, time=self._time)
        self._pending_segments = []

        self._torques = None
        self._state = SimState.IDLE

    def _run_sensors(self, snapshot: VehicleState, context: TickContext) -> None:
        for sensor in self.sensors:
            try:
                sensor.simulate(snapshot, context)
            except SensorUnavailable as e:
                logger.warning(f"Vehicle '{self.name}': {e}")

    # ------- External perturbations ------

    def apply_force(self, fx: float, fy: float, local_ptx: float = 0.0, local_pty: float = 0.0) -> None:
        """Apply a global-frame force at a chassis-local point until the next step."""
        if self._backend is None:
            raise ContractViolation(
                f"Vehicle '{self.name}': apply_force() before create_multibody_system()"
            )
        if self._state is SimState.STEPPED:
            raise ContractViolation(
                f"Vehicle '{self.name}': apply_force() while the backend state is being read"
            )
        force = np.array([fx, fy], dtype=np.float64)
        self._backend.apply_force(self._chassis_body, force, (local_ptx, local_pty))
        self._add_force_segment(force, (local_ptx, local_pty), height=self.chassis.z_max)

    def _add_force_segment(self, f_global: np.ndarray, local_point, height: float) -> None:
        px, py = np.asarray(local_point, dtype=np.float64)
        start_xy = np.array([self._pose.x, self._pose.y]) + rotation_matrix(self._pose.yaw) @ np.array([px, py])
        end_xy = start_xy + np.asarray(f_global) * FORCE_RENDER_SCALE
        self._pending_segments.append(np.array([
            [start_xy[0], start_xy[1], height],
            [end_xy[0], end_xy[1], height],
        ]))

    # ------- Telemetry ------

    def telemetry_fields(self) -> Dict[str, Dict[str, float]]:
        """Named scalar fields of the last tick, per logger.

        Returns:
            {"logger_pose": {...}, "logger_wheel1": {...}, ...}
        """
        out = {
            fields.LOGGER_POSE: {
                fields.DL_TIMESTAMP: self._time,
                fields.PL_Q_X: self._pose.x,
                fields.PL_Q_Y: self._pose.y,
                fields.PL_Q_Z: self._pose.z,
                fields.PL_Q_YAW: self._pose.yaw,
                fields.PL_Q_PITCH: self._pose.pitch,
                fields.PL_Q_ROLL: self._pose.roll,
                fields.PL_DQ_X: self._velocity.vx,
                fields.PL_DQ_Y: self._velocity.vy,
                fields.PL_DQ_Z: self._velocity.omega,
            }
        }
        wheel_vels = self.wheel_velocities_local()
        for i, w in enumerate(self._wheels):
            out[fields.wheel_logger_name(i)] = {
                fields.DL_TIMESTAMP: self._time,
                fields.WL_TORQUE: w.torque,
                fields.WL_WEIGHT: w.weight,
                fields.WL_VEL_X: float(wheel_vels[i, 0]),
                fields.WL_VEL_Y: float(wheel_vels[i, 1]),
                fields.WL_FRIC_X: float(self._friction_forces[i, 0]),
                fields.WL_FRIC_Y: float(self._friction_forces[i, 1]),
            }
        return out

    def init_loggers(self, log_dir: Optional[Path] = None) -> None:
        """Create one telemetry logger for the pose and one per wheel."""
        names = [fields.LOGGER_POSE] + [fields.wheel_logger_name(i) for i in range(self.num_wheels)]
        self._loggers = {
            n: TelemetryLogger(f"{self.name}_{n}", log_dir) for n in names
        }

    def get_logger(self, logger_name: str):
        return self._loggers.get(logger_name)

    def _write_logs(self) -> None:
        if not any(lg.recording for lg in self._loggers.values()):
            return
        for name, row in self.telemetry_fields().items():
            if name in self._loggers:
                self._loggers[name].log(row)

    def set_recording(self, record: bool) -> None:
        for lg in self._loggers.values():
            lg.set_recording(record)

    def clear_logs(self) -> None:
        for lg in self._loggers.values():
            lg.clear()

    def new_log_session(self) -> None:
        for lg in self._loggers.values():
            lg.new_session()

    # ------- Configuration ------

    @classmethod
    def load_from_config(cls, node: dict) -> "VehicleDynamicsCore":
        """Build a vehicle of this class from a config node.

        Recognised keys: name, chassis, wheel layout (per class), friction,
        controller, init_pose [x, y, yaw_deg], init_vel [vx, vy, omega_deg/s]
        (local frame), sensors, log_path.
        """
        node = node or {}
        chassis_node = {
            "mass": cls.DEFAULT_CHASSIS_MASS,
            "com": list(cls.DEFAULT_COM),
            **(node.get("chassis") or {}),
        }
        chassis = ChassisGeometry.from_config(chassis_node, cls.DEFAULT_POLYGON)

        vehicle = cls(
            name=str(node.get("name", "vehicle")),
            chassis=chassis,
            friction=create_friction_model(node.get("friction")),
        )
        vehicle.dynamics_load_params(node)

        pose, velocity = _parse_initial_state(node)
        vehicle.set_initial_state(pose, velocity)

        for sensor_node in node.get("sensors") or []:
            vehicle.sensors.append(create_sensor(sensor_node))

        log_path = node.get("log_path")
        vehicle.init_loggers(Path(log_path) if log_path else None)

        logger.debug(f"Loaded vehicle '{vehicle.name}' of class {cls.__name__}")
        return vehicle

    def _load_wheels_and_controller(self, node: dict, wheel_keys: Sequence[str]) -> None:
        """Shared part of dynamics_load_params().

        Wheels may be given as a list under ``wheels`` or one node per
        wheel under the class-specific keys.
        """
        defaults = self.default_wheels()
        if "wheels" in node:
            wheel_nodes = node["wheels"]
            if not isinstance(wheel_nodes, (list, tuple)) or len(wheel_nodes) != self.NUM_WHEELS:
                raise ConfigurationError(
                    f"{type(self).__name__} needs a list of {self.NUM_WHEELS} wheels, got {wheel_nodes}"
                )
        else:
            wheel_nodes = [node.get(k) for k in wheel_keys]

        self.set_wheels([WheelState.from_config(n, d) for n, d in zip(wheel_nodes, defaults)])
        self.controller = create_controller(node.get("controller"), self, default=self.DEFAULT_CONTROLLER)


def _parse_initial_state(node: dict) -> Tuple[Pose, Twist2D]:
    try:
        x, y, yaw_deg = [float(v) for v in node.get("init_pose", [0.0, 0.0, 0.0])]
        vx, vy, omega_deg = [float(v) for v in node.get("init_vel", [0.0, 0.0, 0.0])]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"init_pose/init_vel must be 3 numbers: {e}") from e
    pose = Pose(x=x, y=y, yaw=float(np.deg2rad(yaw_deg)))
    velocity = Twist2D(vx=vx, vy=vy, omega=float(np.deg2rad(omega_deg)))
    return pose, velocity
