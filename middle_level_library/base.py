"""Common abstractions for sensors and actuators mounted on a chassis."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from low_level_mechanics.entities import Entity, MountedVisual
from low_level_mechanics.math3d import Vector3
from low_level_mechanics.physics import PhysicsBackend, PhysicsError, Ray, RayHit
from low_level_mechanics.timing import TimingInfo

from .pid import PIDConfig, PIDController

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class ControllerNotFoundError(KeyError):
    """A robot part name that is not part of the robot's fixed shape."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Controller '{self.key}' not found"


class SensorReading(NamedTuple):
    timestamp: float
    value: Any


class Controller:
    """Anything the robot advances once per frame."""

    def step(self, timing: TimingInfo) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class MountedComponent:
    """Base class for parts fixed to the chassis at a displacement.

    The chassis Entity is a back-reference only; the chassis wrapper owns it.
    """

    def __init__(self, name: str, chassis: Entity, displacement: Vector3) -> None:
        self.name = name
        self.chassis = chassis
        self.displacement = displacement
        self.visual: Optional[MountedVisual] = None

    def mount_point(self) -> Vector3:
        return self.chassis.world_translation(self.displacement)

    def visuals(self) -> List[MountedVisual]:
        return [self.visual] if self.visual is not None else []

    def refresh_visual(self) -> None:
        """Match the visual to the physics state resolved by the latest physics step."""
        return None

    def _cast(self, physics: PhysicsBackend, ray: Ray, max_distance: float) -> Optional[RayHit]:
        try:
            return physics.cast_ray(ray, max_distance, exclude=self.chassis.body)
        except PhysicsError as exc:
            self._on_cast_error(exc)
            return None

    def _on_cast_error(self, exc: PhysicsError) -> None:
        log.warning("%s: ray cast failed: %s", self.name, exc)


class Sensor(MountedComponent):
    """Read-only environment query.

    ``sense()`` never caches and never advances time; the debug visual is only
    touched from ``refresh_visual()``.
    """

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        *,
        physics: PhysicsBackend,
        clock: Clock,
        debug: bool = False,
    ) -> None:
        super().__init__(name, chassis, displacement)
        self.physics = physics
        self.clock = clock
        self.debug = debug
        self.failed_reads = 0
        self.last_reading: Optional[SensorReading] = None

    def sense(self) -> SensorReading:
        return SensorReading(self.clock(), self._measure())

    def _measure(self) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def _on_cast_error(self, exc: PhysicsError) -> None:
        self.failed_reads += 1
        super()._on_cast_error(exc)

    def refresh_visual(self) -> None:
        if not self.debug:
            return
        self.last_reading = self.sense()
        self._update_debug_visual(self.last_reading)

    def _update_debug_visual(self, reading: SensorReading) -> None:
        return None


class Actuator(MountedComponent, Controller):
    """PID-driven effector: one control decision per step.

    ``target`` may be changed between steps; it is read once at the start of
    the actuator's own step.
    """

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        pid: PIDConfig,
        *,
        target: float = 0.0,
    ) -> None:
        super().__init__(name, chassis, displacement)
        self.pid = PIDController(pid)
        self.target = float(target)
        self.sensed = 0.0

    def set_target(self, target: float) -> None:
        self.target = float(target)

    def get_target(self) -> float:
        return self.target

    def step(self, timing: TimingInfo) -> None:
        target = self.target
        self.sensed = self._sense_state()
        output = self.pid.calculate(self.sensed, target, timing.elapsed)
        self._apply(output)
        self._update_visual(timing)

    def _sense_state(self) -> float:  # pragma: no cover - interface
        raise NotImplementedError

    def _apply(self, output: float) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def _update_visual(self, timing: TimingInfo) -> None:
        return None

    @property
    def error(self) -> float:
        return self.pid.error

    @property
    def output(self) -> float:
        return self.pid.output

    def status(self) -> Dict[str, float]:
        return {
            "target": self.target,
            "sensed": self.sensed,
            "error": self.pid.error,
            "output": self.pid.output,
        }


__all__ = [
    "Clock",
    "ControllerNotFoundError",
    "SensorReading",
    "Controller",
    "MountedComponent",
    "Sensor",
    "Actuator",
]
