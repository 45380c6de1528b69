# Vehicles module - dynamics core, vehicle types, config entry point
# May import from core, physics, friction, controllers, sensors, telemetry, analysis

from .wheel import WheelState
from .odometry import OdometryEstimator
from .base import VehicleDynamicsCore, SimState
from .differential import DifferentialDrive, DifferentialDrive4Wheels
from .ackermann import AckermannVehicle, ackermann_angles
from .registry import (
    VEHICLE_CLASSES,
    register_vehicle_class,
    register_vehicle_template,
    load_from_config,
)
