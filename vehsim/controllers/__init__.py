# Controllers module - motor controllers producing per-wheel torques

from .base import Controller, CONTROLLERS, register_controller, create_controller
from .raw import RawTorqueController
from .pid import PID, TwistPIDController, FrontSteerPIDController
from .neural import NeuralTorqueController
