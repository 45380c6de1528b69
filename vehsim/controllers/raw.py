# Open-loop torque controller

import numpy as np

from ..core.types import TickContext, VehicleState
from .base import Controller, register_controller


@register_controller("raw")
class RawTorqueController(Controller):
    """Applies a fixed, externally set torque to each wheel."""

    def __init__(self, num_wheels: int, torques=None):
        super().__init__(num_wheels)
        if torques is None:
            torques = np.zeros(num_wheels)
        self.setpoint = np.asarray(torques, dtype=np.float64)

    def set_torques(self, torques) -> None:
        self.setpoint = np.asarray(torques, dtype=np.float64)

    def compute_torques(self, vehicle_state: VehicleState, context: TickContext) -> np.ndarray:
        return self.setpoint.copy()

    def on_command(self, command: dict) -> None:
        if "torques" not in command:
            raise ValueError(f"Raw controller expects a 'torques' command, got {command}")
        self.set_torques(command["torques"])

    @classmethod
    def from_config(cls, node: dict, vehicle) -> "RawTorqueController":
        return cls(num_wheels=vehicle.num_wheels, torques=node.get("torques"))
