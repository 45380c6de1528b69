# Models module - Neural networks
# FORBIDDEN: vehicles.*, simulation.*, logging, pathlib

from .blocks import MLP, get_activation
from .policy import TorquePolicy
