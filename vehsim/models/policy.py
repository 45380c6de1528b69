# Torque policy network
# FORBIDDEN: vehicles.*, simulation.*, logging, pathlib

import torch
import torch.nn as nn
from typing import List
from .blocks import MLP


class TorquePolicy(nn.Module):
    """Deterministic policy mapping a vehicle state vector to wheel torques.
    
    Output is squashed with tanh and scaled to [-max_torque, max_torque].
    """
    
    def __init__(
        self,
        state_dim: int,
        num_wheels: int,
        hidden_dims: List[int] = None,
        activation: str = "tanh",
        max_torque: float = 20.0,
    ):
        super().__init__()
        
        if hidden_dims is None:
            hidden_dims = [64, 64]
        
        self.state_dim = state_dim
        self.num_wheels = num_wheels
        self.max_torque = max_torque
        
        # Small output gain keeps the untrained policy close to zero torque
        self.network = MLP(
            input_dim=state_dim,
            output_dim=num_wheels,
            hidden_dims=hidden_dims,
            activation=activation,
            output_activation="tanh",
            gain=0.01,
        )
    
    def forward(self, state: torch.Tensor) -> torch.Tensor:
        """Compute torques.
        
        Args:
            state: Observation, shape (batch, state_dim)
            
        Returns:
            torques: shape (batch, num_wheels)
        """
        return self.network(state) * self.max_torque
