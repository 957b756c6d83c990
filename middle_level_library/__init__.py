"""Middle-level robotics components (PID, actuators, sensors, robot assembly)."""

from .pid import PIDConfig, PIDController
from .base import Actuator, ControllerNotFoundError, Sensor, SensorReading
from .motors import Wheel, Motor, DriveController
from .sensors import UltrasonicSensor, ColorSensor
from .robots import ControllerMap, ChassisWrapper, ChassisMesh, Ev3, EV3_PARTS, create_default_ev3
from . import presets

__all__ = [
    "PIDConfig",
    "PIDController",
    "Actuator",
    "ControllerNotFoundError",
    "Sensor",
    "SensorReading",
    "Wheel",
    "Motor",
    "DriveController",
    "UltrasonicSensor",
    "ColorSensor",
    "ControllerMap",
    "ChassisWrapper",
    "ChassisMesh",
    "Ev3",
    "EV3_PARTS",
    "create_default_ev3",
    "presets",
]
