# Sensors module - measurements derived from the vehicle state

from .base import SensorBase, SENSORS, register_sensor, create_sensor
from .wheel_encoder import WheelEncoderSensor
from .odometry import OdometrySensor
