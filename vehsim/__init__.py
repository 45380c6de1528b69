# Ground vehicle dynamics simulation

from .core.errors import (
    VehicleSimError,
    ConfigurationError,
    BackendStateError,
    ContractViolation,
    SensorUnavailable,
)
from .vehicles import load_from_config
from .simulation import World, load_world_from_config

__version__ = "0.1.0"
