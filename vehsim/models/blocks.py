# Network building blocks for learned controllers
# FORBIDDEN: vehicles.*, simulation.*, logging, pathlib

import torch
import torch.nn as nn
from typing import List, Optional


ACTIVATIONS = {
    "relu": nn.ReLU,
    "elu": nn.ELU,
    "tanh": nn.Tanh,
    "gelu": nn.GELU,
    "silu": nn.SiLU,
}


def get_activation(name: str) -> nn.Module:
    """Instantiate an activation layer by name (see ACTIVATIONS)."""
    if name not in ACTIVATIONS:
        raise ValueError(f"Unknown activation: {name}. Available: {list(ACTIVATIONS.keys())}")
    return ACTIVATIONS[name]()


class MLP(nn.Module):
    """Feedforward network from a state vector to per-wheel outputs.

    Hidden layers use orthogonal weights with unit gain; the output layer
    gets its own gain so an untrained network can start near zero.
    """

    def __init__(
        self,
        input_dim: int,
        output_dim: int,
        hidden_dims: List[int],
        activation: str = "relu",
        output_activation: Optional[str] = None,
        gain: float = 1.0,
    ):
        """Initialize network.

        Args:
            input_dim: Size of the input vector
            output_dim: Size of the output vector
            hidden_dims: Width of each hidden layer
            activation: Hidden activation name
            output_activation: Optional activation after the last layer
            gain: Orthogonal init gain of the output layer
        """
        super().__init__()

        sizes = [input_dim] + list(hidden_dims)
        layers = []
        for n_in, n_out in zip(sizes[:-1], sizes[1:]):
            layers += [self._linear(n_in, n_out, 1.0), get_activation(activation)]

        self.output_layer = self._linear(sizes[-1], output_dim, gain)
        layers.append(self.output_layer)
        if output_activation is not None:
            layers.append(get_activation(output_activation))

        self.network = nn.Sequential(*layers)

    @staticmethod
    def _linear(n_in: int, n_out: int, gain: float) -> nn.Linear:
        layer = nn.Linear(n_in, n_out)
        nn.init.orthogonal_(layer.weight, gain=gain)
        nn.init.zeros_(layer.bias)
        return layer

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.network(x)
