# Quadrature wheel encoders

from typing import Any, Dict, Optional
import numpy as np

from ..core.errors import ConfigurationError
from ..core.types import TickContext, VehicleState
from .base import SensorBase, register_sensor


@register_sensor("wheel_encoder")
class WheelEncoderSensor(SensorBase):
    """Integer tick counts per wheel, quantised from the spin angle."""

    def __init__(
        self,
        name: str = "encoders",
        ticks_per_revolution: int = 1024,
        period: float = 0.0,
        dropout_probability: float = 0.0,
        seed: Optional[int] = None,
    ):
        super().__init__(name, period, dropout_probability, seed)
        if ticks_per_revolution <= 0:
            raise ConfigurationError(f"ticks_per_revolution must be positive, got {ticks_per_revolution}")
        self.ticks_per_revolution = ticks_per_revolution

    def measure(self, vehicle_state: VehicleState, context: TickContext) -> Dict[str, Any]:
        ticks = np.floor(
            np.asarray(vehicle_state.wheel_phi) / (2 * np.pi) * self.ticks_per_revolution
        ).astype(np.int64)
        return {"ticks": ticks}

    @classmethod
    def from_config(cls, node: dict) -> "WheelEncoderSensor":
        return cls(
            name=node.get("name", "encoders"),
            ticks_per_revolution=int(node.get("ticks_per_revolution", 1024)),
            period=float(node.get("period", 0.0)),
            dropout_probability=float(node.get("dropout_probability", 0.0)),
            seed=node.get("seed"),
        )
