# Friction module - wheel/ground contact models
# FORBIDDEN: torch, logging, any I/O

from .base import (
    FrictionModel,
    FRICTION_MODELS,
    register_friction_model,
    create_friction_model,
    wheel_slip,
)
from .coulomb import CoulombFriction
from .viscous import ViscousFriction
