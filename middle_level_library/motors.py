"""Suspension wheels, drive motors and the robot-level drive controller."""
from __future__ import annotations

import logging
import math
from typing import Dict, Mapping, Optional, Tuple

from low_level_mechanics.entities import Entity, MountedVisual
from low_level_mechanics.math3d import DOWN, FORWARD, RIGHT, UP, Quaternion, Vector3
from low_level_mechanics.physics import PhysicsBackend, Ray
from low_level_mechanics.timing import TimeController, TimingInfo

from .base import Actuator, Controller, ControllerNotFoundError
from .pid import PIDConfig

log = logging.getLogger(__name__)


class Wheel(Actuator):
    """Suspension actuator.

    The tracked quantity is suspension travel: the distance from the mount
    point to the ground along chassis-down. The PID pushes the chassis up at
    the mount point until the travel matches ``rest_height``. When the ray
    finds nothing (wheel in the air) the travel reads as ``max_ray_distance``.
    """

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        pid: PIDConfig,
        *,
        physics: PhysicsBackend,
        rest_height: float,
        max_ray_distance: float,
        radius: float = 0.0,
        visual: Optional[MountedVisual] = None,
    ) -> None:
        super().__init__(name, chassis, displacement, pid, target=rest_height)
        self.physics = physics
        self.max_ray_distance = max_ray_distance
        self.radius = radius
        self.visual = visual
        self.in_contact = False

    def measure_travel(self) -> float:
        ray = Ray(self.mount_point(), self.chassis.transform_direction(DOWN))
        hit = self._cast(self.physics, ray, self.max_ray_distance)
        self.in_contact = hit is not None
        if hit is None:
            return self.max_ray_distance
        return hit.distance

    def _sense_state(self) -> float:
        return self.measure_travel()

    def _apply(self, output: float) -> None:
        up = self.chassis.transform_direction(UP)
        self.chassis.apply_force(up * output, self.mount_point())

    def refresh_visual(self) -> None:
        if self.visual is None:
            return
        # Wheel hub sits one radius above the ground point under the mount.
        self.visual.offset = Vector3(0.0, self.radius - self.measure_travel(), 0.0)


class Motor(Actuator):
    """Drive actuator tracking the wheel's angular velocity (rad/s).

    The PID output is a wheel torque; it reaches the chassis as the traction
    force ``torque / wheel_radius`` along chassis-forward at the mount point.
    """

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        pid: PIDConfig,
        *,
        wheel_radius: float,
        visual: Optional[MountedVisual] = None,
    ) -> None:
        if wheel_radius <= 0.0:
            raise ValueError("wheel_radius must be positive")
        super().__init__(name, chassis, displacement, pid)
        self.wheel_radius = wheel_radius
        self.visual = visual
        self.wheel_angle = 0.0

    @property
    def speed(self) -> float:
        return self.sensed

    def _sense_state(self) -> float:
        velocity = self.chassis.world_velocity(self.displacement)
        forward = self.chassis.transform_direction(FORWARD)
        return velocity.dot(forward) / self.wheel_radius

    def _apply(self, output: float) -> None:
        forward = self.chassis.transform_direction(FORWARD)
        self.chassis.apply_force(forward * (output / self.wheel_radius), self.mount_point())

    def _update_visual(self, timing: TimingInfo) -> None:
        self.wheel_angle = (self.wheel_angle + self.sensed * timing.dt) % (2.0 * math.pi)
        if self.visual is not None:
            self.visual.spin = Quaternion.from_axis_angle(RIGHT, self.wheel_angle)


class DriveController(Controller):
    """Turns drive commands into per-motor angular velocity targets.

    ``turn_rate`` is in rad/s about chassis-up; positive values yaw the
    chassis towards its +x side.
    """

    def __init__(self, motors: Mapping[str, Motor], timer: TimeController) -> None:
        self.motors: Dict[str, Motor] = dict(motors)
        self.timer = timer
        self._command: Optional[Tuple[float, float]] = None
        self._timeouts: Dict[str, int] = {}

    @property
    def active(self) -> bool:
        return self._command is not None

    def drive(self, speed: float, turn_rate: float = 0.0) -> None:
        """Hold a chassis speed (m/s) and turn rate (rad/s) until told otherwise."""
        self._cancel_all()
        self._command = (float(speed), float(turn_rate))

    def run_motor(self, name: str, speed: float, duration_ms: float) -> None:
        """Spin one motor at ``speed`` rad/s for ``duration_ms`` of simulated time."""
        motor = self._motor(name)
        self._command = None
        self._cancel(name)
        motor.set_target(speed)
        self._timeouts[name] = self.timer.set_timeout(lambda: self._expire(name), duration_ms)

    def stop(self) -> None:
        self._command = None
        self._cancel_all()
        for motor in self.motors.values():
            motor.set_target(0.0)

    def step(self, timing: TimingInfo) -> None:
        if self._command is None:
            return
        speed, turn_rate = self._command
        for motor in self.motors.values():
            linear = speed - turn_rate * motor.displacement.x
            motor.set_target(linear / motor.wheel_radius)

    def _motor(self, name: str) -> Motor:
        try:
            return self.motors[name]
        except KeyError:
            raise ControllerNotFoundError(name) from None

    def _expire(self, name: str) -> None:
        self._timeouts.pop(name, None)
        self.motors[name].set_target(0.0)
        log.debug("motor %s run finished", name)

    def _cancel(self, name: str) -> None:
        handle = self._timeouts.pop(name, None)
        if handle is not None:
            self.timer.clear_timeout(handle)

    def _cancel_all(self) -> None:
        for name in list(self._timeouts):
            self._cancel(name)


__all__ = ["Wheel", "Motor", "DriveController"]
