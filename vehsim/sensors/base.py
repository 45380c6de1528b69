# Sensor capability
# Sensors read the vehicle state at the end of each tick.

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
import numpy as np

from ..core.errors import ConfigurationError, SensorUnavailable
from ..core.types import TickContext, VehicleState


class SensorBase(ABC):
    """A sensor attached to a vehicle.

    Sensors run after the vehicle state is extracted. A sensor that cannot
    measure this tick raises SensorUnavailable; the vehicle logs it and keeps
    going.
    """

    kind = "base"

    def __init__(
        self,
        name: str,
        period: float = 0.0,
        dropout_probability: float = 0.0,
        seed: Optional[int] = None,
    ):
        """Initialize sensor.

        Args:
            name: Sensor label, unique per vehicle
            period: Minimum time between measurements (0: every tick)
            dropout_probability: Chance a measurement is unavailable
            seed: Seed of the sensor's noise generator
        """
        if period < 0:
            raise ConfigurationError(f"Sensor period must be >= 0, got {period}")
        if not 0.0 <= dropout_probability <= 1.0:
            raise ConfigurationError(f"dropout_probability must be in [0, 1], got {dropout_probability}")
        self.name = name
        self.period = period
        self.dropout_probability = dropout_probability
        self.rng = np.random.default_rng(seed)
        self.last_measurement: Optional[Dict[str, Any]] = None
        self.last_time: Optional[float] = None
        self.num_measurements = 0

    def is_due(self, time: float) -> bool:
        if self.last_time is None:
            return True
        return time - self.last_time >= self.period - 1e-12

    def simulate(self, vehicle_state: VehicleState, context: TickContext) -> Optional[Dict[str, Any]]:
        """Take a measurement if one is due.

        Measurements are stamped with the time of the state they observe.

        Returns:
            The new measurement, or None when the sensor is not due
        """
        if not self.is_due(vehicle_state.time):
            return None
        if self.dropout_probability > 0 and self.rng.random() < self.dropout_probability:
            raise SensorUnavailable(f"Sensor '{self.name}' dropped a measurement at t={vehicle_state.time:.3f}")

        measurement = self.measure(vehicle_state, context)
        measurement["timestamp"] = vehicle_state.time
        self.last_measurement = measurement
        self.last_time = vehicle_state.time
        self.num_measurements += 1
        return measurement

    @abstractmethod
    def measure(self, vehicle_state: VehicleState, context: TickContext) -> Dict[str, Any]:
        """Produce a measurement from the vehicle state."""

    @classmethod
    def from_config(cls, node: dict) -> "SensorBase":
        return cls(
            name=node.get("name", cls.kind),
            period=float(node.get("period", 0.0)),
            dropout_probability=float(node.get("dropout_probability", 0.0)),
            seed=node.get("seed"),
        )


SENSORS: Dict[str, Type[SensorBase]] = {}


def register_sensor(kind: str):
    """Class decorator adding a sensor to the registry."""
    def decorator(cls):
        if kind in SENSORS:
            raise ValueError(f"Sensor already registered: {kind}")
        cls.kind = kind
        SENSORS[kind] = cls
        return cls
    return decorator


def create_sensor(node: dict) -> SensorBase:
    """Instantiate the sensor named by ``node['class']``."""
    kind = (node or {}).get("class")
    if kind not in SENSORS:
        raise ConfigurationError(f"Unknown sensor: {kind}. Available: {list(SENSORS.keys())}")
    return SENSORS[kind].from_config(node)
