"""Default EV3 hardware profile: part geometry, PID gains and mesh colours."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from low_level_mechanics.materials import Color
from low_level_mechanics.math3d import Vec3Tuple

from .pid import PIDConfig

WHEEL_PID = PIDConfig(
    proportional_gain=30.0,
    integral_gain=20.0,
    derivative_gain=3.0,
    output_min=0.0,
    output_max=6.0,
)

MOTOR_PID = PIDConfig(
    proportional_gain=0.005,
    integral_gain=0.02,
    derivative_gain=0.0,
    output_min=-0.2,
    output_max=0.2,
)

PART_COLORS: Dict[str, Color] = {
    "chassis": (200, 200, 60),
    "wheel": (40, 40, 40),
    "motor": (90, 90, 90),
    "ultrasonic": (60, 200, 220),
    "color_sensor": (220, 80, 200),
}


@dataclass
class ChassisConfig:
    width: float = 0.145
    height: float = 0.09
    length: float = 0.18
    mass: float = 0.6
    position: Vec3Tuple = (0.0, 0.1, 0.0)
    heading: float = 0.0  # radians about world up
    linear_damping: float = 0.1
    angular_damping: float = 2.0
    color: Color = PART_COLORS["chassis"]


@dataclass
class WheelConfig:
    """Suspension wheels, keyed by part name."""

    displacements: Dict[str, Vec3Tuple] = field(
        default_factory=lambda: {
            "frontLeftWheel": (-0.0575, -0.045, 0.065),
            "frontRightWheel": (0.0575, -0.045, 0.065),
            "backLeftWheel": (-0.0575, -0.045, -0.065),
            "backRightWheel": (0.0575, -0.045, -0.065),
        }
    )
    pid: PIDConfig = WHEEL_PID
    rest_height: float = 0.03
    max_ray_distance: float = 0.1
    radius: float = 0.028
    width: float = 0.02


@dataclass
class MotorConfig:
    """Drive motors; the traction point sits under each motor."""

    displacements: Dict[str, Vec3Tuple] = field(
        default_factory=lambda: {
            "leftMotor": (-0.0575, -0.045, 0.0),
            "rightMotor": (0.0575, -0.045, 0.0),
        }
    )
    pid: PIDConfig = MOTOR_PID
    wheel_radius: float = 0.028
    wheel_width: float = 0.02


@dataclass
class UltrasonicSensorConfig:
    displacement: Vec3Tuple = (0.0, 0.02, 0.09)
    direction: Vec3Tuple = (0.0, 0.0, 1.0)
    max_distance: float = 2.5
    debug: bool = False


@dataclass
class ColorSensorConfig:
    displacement: Vec3Tuple = (0.0, -0.045, 0.08)
    max_distance: float = 0.1
    debug: bool = False


@dataclass
class Ev3Config:
    chassis: ChassisConfig = field(default_factory=ChassisConfig)
    wheel: WheelConfig = field(default_factory=WheelConfig)
    motor: MotorConfig = field(default_factory=MotorConfig)
    ultrasonic_sensor: UltrasonicSensorConfig = field(default_factory=UltrasonicSensorConfig)
    color_sensor: ColorSensorConfig = field(default_factory=ColorSensorConfig)


__all__ = [
    "WHEEL_PID",
    "MOTOR_PID",
    "PART_COLORS",
    "ChassisConfig",
    "WheelConfig",
    "MotorConfig",
    "UltrasonicSensorConfig",
    "ColorSensorConfig",
    "Ev3Config",
]
