# Learned torque controller

import logging
from pathlib import Path
from typing import List

import numpy as np
import torch

from ..core.types import TickContext, VehicleState
from ..models import TorquePolicy
from .base import Controller, register_controller


logger = logging.getLogger(__name__)


@register_controller("neural")
class NeuralTorqueController(Controller):
    """Runs a TorquePolicy on the flattened vehicle state.

    The network is evaluated in inference mode on CPU, so identical inputs
    always give identical torques.
    """

    def __init__(
        self,
        num_wheels: int,
        hidden_dims: List[int] = None,
        activation: str = "tanh",
        max_torque: float = 20.0,
        policy: TorquePolicy = None,
    ):
        super().__init__(num_wheels)
        self.state_dim = 9 + 3 * num_wheels
        if policy is None:
            policy = TorquePolicy(
                state_dim=self.state_dim,
                num_wheels=num_wheels,
                hidden_dims=hidden_dims,
                activation=activation,
                max_torque=max_torque,
            )
        if policy.state_dim != self.state_dim or policy.num_wheels != num_wheels:
            raise ValueError(
                f"Policy shape ({policy.state_dim} -> {policy.num_wheels}) does not match "
                f"vehicle ({self.state_dim} -> {num_wheels})"
            )
        self.policy = policy
        self.policy.eval()
        self.device = torch.device("cpu")

    def compute_torques(self, vehicle_state: VehicleState, context: TickContext) -> np.ndarray:
        obs = torch.tensor(vehicle_state.to_array(), device=self.device).unsqueeze(0)
        with torch.no_grad():
            torques = self.policy(obs)
        return torques.cpu().numpy().squeeze(0).astype(np.float64)

    def load_weights(self, path: Path) -> None:
        """Load policy weights from a checkpoint written by save_policy_checkpoint."""
        from ..analysis.checkpointing import load_policy_checkpoint

        checkpoint = load_policy_checkpoint(path, device=self.device)
        self.policy.load_state_dict(checkpoint["policy_state_dict"])
        self.policy.eval()

    @classmethod
    def from_config(cls, node: dict, vehicle) -> "NeuralTorqueController":
        ctrl = cls(
            num_wheels=vehicle.num_wheels,
            hidden_dims=node.get("hidden_dims", [64, 64]),
            activation=node.get("activation", "tanh"),
            max_torque=float(node.get("max_torque", 20.0)),
        )
        if node.get("checkpoint"):
            ctrl.load_weights(Path(node["checkpoint"]))
            logger.info(f"Loaded torque policy from {node['checkpoint']}")
        return ctrl
