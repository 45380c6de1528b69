# Core module - Pure functions, no side effects
# FORBIDDEN: torch, logging, pathlib, any I/O

from .types import Pose, Twist2D, TickContext, VehicleState
from .errors import (
    VehicleSimError,
    ConfigurationError,
    BackendStateError,
    ContractViolation,
    SensorUnavailable,
)
from .geometry import ChassisGeometry, max_radius_from_polygon
from .math_utils import normalize_angle, rotation_matrix, rigid_point_velocity
from .physics import static_wheel_loads, polygon_inertia, GRAVITY
