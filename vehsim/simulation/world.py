# Simulation world
# Owns the physics backend and drives every vehicle through the tick sequence.

import logging
from queue import Empty, Queue
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..analysis.metrics import check_run_health, compute_odometry_error, compute_trajectory_metrics
from ..comms import Client, TopicBroker
from ..config import check_config, with_defaults
from ..core.errors import ConfigurationError, VehicleSimError
from ..core.types import TickContext
from ..physics import PhysicsBackend, PlanarRigidBodyBackend
from ..vehicles import VehicleDynamicsCore, load_from_config


logger = logging.getLogger(__name__)


class World:
    """Owning simulation loop.

    Every tick runs, for all vehicles in insertion order:

        simul_pre_timestep -> backend.step -> on_backend_stepped
        -> simul_post_timestep

    Vehicle errors are logged with the tick they happened in and re-raised.
    """

    def __init__(
        self,
        dt: float = 0.01,
        backend: Optional[PhysicsBackend] = None,
        client: Optional[Client] = None,
    ):
        """Initialize world.

        Args:
            dt: Fixed timestep (s)
            backend: Physics backend (planar numpy backend when None)
            client: Connected messaging client; vehicles then publish their
                pose on ``<name>/pose`` and take commands from ``<name>/cmd``
        """
        if dt <= 0:
            raise ConfigurationError(f"Timestep must be positive, got {dt}")

        self.dt = dt
        self.backend = backend if backend is not None else PlanarRigidBodyBackend()
        self.client = client
        self.context = TickContext(time=0.0, dt=dt, tick=0)
        self.vehicles: Dict[str, VehicleDynamicsCore] = {}

        # Commands arrive on the client worker thread, applied at tick start
        self._commands: Queue = Queue()

        self._history: Dict[str, Dict[str, List]] = {}

    @property
    def time(self) -> float:
        return self.context.time

    def add_vehicle(self, vehicle: VehicleDynamicsCore) -> VehicleDynamicsCore:
        """Insert a vehicle and build its bodies in the backend."""
        if vehicle.name in self.vehicles:
            raise ConfigurationError(f"Duplicate vehicle name: {vehicle.name}")

        vehicle.vehicle_index = len(self.vehicles)
        vehicle.create_multibody_system(self.backend)
        self.vehicles[vehicle.name] = vehicle
        self._history[vehicle.name] = {
            "time": [], "x": [], "y": [], "speed": [], "true": [], "odometry": [],
        }

        if self.client is not None:
            self.client.advertise_topic(f"{vehicle.name}/pose")
            self.client.subscribe_topic(
                f"{vehicle.name}/cmd",
                lambda msg, name=vehicle.name: self._commands.put((name, msg)),
            )

        logger.info(f"Added vehicle '{vehicle.name}' (index {vehicle.vehicle_index})")
        return vehicle

    def get_vehicle(self, name: str) -> VehicleDynamicsCore:
        if name not in self.vehicles:
            raise KeyError(f"No vehicle named '{name}'. Available: {list(self.vehicles.keys())}")
        return self.vehicles[name]

    def send_command(self, vehicle_name: str, command: dict) -> None:
        """Queue a controller command, applied at the start of the next tick."""
        self._commands.put((vehicle_name, command))

    def _apply_commands(self) -> None:
        while True:
            try:
                name, command = self._commands.get_nowait()
            except Empty:
                return
            vehicle = self.vehicles.get(name)
            if vehicle is None:
                logger.warning(f"Command for unknown vehicle '{name}' dropped")
                continue
            try:
                vehicle.controller.on_command(command)
            except (ValueError, TypeError) as e:
                logger.warning(f"Vehicle '{name}': rejected command {command}: {e}")

    def step(self) -> TickContext:
        """Advance the world by one tick.

        Returns:
            Context of the tick just simulated
        """
        ctx = self.context
        self._apply_commands()

        try:
            for vehicle in self.vehicles.values():
                vehicle.simul_pre_timestep(ctx)

            self.backend.step(ctx.dt)

            for vehicle in self.vehicles.values():
                vehicle.on_backend_stepped()
            for vehicle in self.vehicles.values():
                vehicle.simul_post_timestep(ctx)
        except VehicleSimError as e:
            logger.error(f"Simulation failed at tick {ctx.tick} (t={ctx.time:.4f}): {e}")
            raise

        for vehicle in self.vehicles.values():
            self._record(vehicle, ctx.time + ctx.dt)
            if self.client is not None:
                self.client.publish_topic(f"{vehicle.name}/pose", self._pose_message(vehicle))

        self.context = ctx.next()
        return ctx

    def run(
        self,
        num_ticks: int,
        callback: Optional[Callable[["World", TickContext], None]] = None,
        log_every: int = 0,
    ) -> Dict[str, Dict[str, Any]]:
        """Run a fixed number of ticks.

        Args:
            num_ticks: Ticks to simulate
            callback: Called after every tick with (world, context)
            log_every: Log vehicle poses every N ticks (0 disables)

        Returns:
            Per-vehicle summary, see summary()
        """
        for _ in range(num_ticks):
            ctx = self.step()
            if callback is not None:
                callback(self, ctx)
            if log_every and (ctx.tick + 1) % log_every == 0:
                for vehicle in self.vehicles.values():
                    p = vehicle.pose
                    logger.info(
                        f"t={self.time:.2f} | {vehicle.name}: "
                        f"x={p.x:.3f} y={p.y:.3f} yaw={np.rad2deg(p.yaw):.1f}deg "
                        f"v={vehicle.velocity_local.vx:.3f}"
                    )
        return self.summary()

    @staticmethod
    def _pose_message(vehicle: VehicleDynamicsCore) -> Dict[str, float]:
        p = vehicle.pose
        v = vehicle.velocity
        return {
            "x": p.x, "y": p.y, "yaw": p.yaw,
            "vx": v.vx, "vy": v.vy, "omega": v.omega,
        }

    def _record(self, vehicle: VehicleDynamicsCore, time: float) -> None:
        h = self._history[vehicle.name]
        h["time"].append(time)
        h["x"].append(vehicle.pose.x)
        h["y"].append(vehicle.pose.y)
        h["speed"].append(float(np.hypot(vehicle.velocity.vx, vehicle.velocity.vy)))
        h["true"].append(vehicle.velocity_local.to_array())
        h["odometry"].append(vehicle.odometry_estimate.to_array())

    def summary(self) -> Dict[str, Dict[str, Any]]:
        """Trajectory and odometry metrics per vehicle, with health warnings."""
        out = {}
        for name, h in self._history.items():
            metrics = compute_trajectory_metrics(h["time"], h["x"], h["y"], h["speed"])
            if h["true"]:
                metrics.update(compute_odometry_error(np.array(h["true"]), np.array(h["odometry"])))
            warnings = check_run_health(metrics)
            for w in warnings:
                logger.warning(f"Vehicle '{name}': {w}")
            out[name] = {"metrics": metrics, "warnings": warnings}
        return out

    def set_recording(self, record: bool) -> None:
        for vehicle in self.vehicles.values():
            vehicle.set_recording(record)

    def close(self) -> None:
        """Stop recording and shut the messaging client down."""
        self.set_recording(False)
        if self.client is not None:
            self.client.shutdown()

    @classmethod
    def from_config(cls, config: dict, broker: Optional[TopicBroker] = None) -> "World":
        """Build a world and its vehicles from a configuration dict.

        Args:
            config: Configuration (see configs/*.yaml)
            broker: Broker for the messaging client, when comms are enabled

        Returns:
            World with every vehicle added
        """
        config = with_defaults(config)
        check_config(config)

        world_cfg = config["world"]
        backend = PlanarRigidBodyBackend(gravity=float(world_cfg.get("gravity", 9.81)))

        client = None
        if config["comms"].get("enabled", False):
            client = Client(config["comms"].get("node_name", "world"), broker)
            client.connect()

        world = cls(dt=float(world_cfg["dt"]), backend=backend, client=client)

        templates = config.get("vehicle_classes") or {}
        try:
            for i, node in enumerate(config["vehicles"]):
                world.add_vehicle(load_from_config(node, vehicle_index=i, templates=templates))
        except VehicleSimError:
            world.close()
            raise

        if config["run"].get("record", False):
            world.set_recording(True)

        logger.info(f"World ready: {len(world.vehicles)} vehicles, dt={world.dt}")
        return world


def load_world_from_config(config: dict, broker: Optional[TopicBroker] = None) -> World:
    """Shorthand for World.from_config()."""
    return World.from_config(config, broker)
