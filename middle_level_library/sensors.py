"""Ray-cast sensors: ultrasonic ranging and downward colour sampling."""
from __future__ import annotations

from typing import Optional

from low_level_mechanics.entities import Entity, MountedVisual
from low_level_mechanics.materials import NO_COLOR, classify_color
from low_level_mechanics.math3d import DOWN, Vector3
from low_level_mechanics.physics import PhysicsBackend, Ray
from low_level_mechanics.render import ArrowShape

from .base import Clock, Sensor, SensorReading


class UltrasonicSensor(Sensor):
    """Distance to the nearest collider along ``direction`` (chassis frame)."""

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        direction: Vector3,
        *,
        physics: PhysicsBackend,
        clock: Clock,
        max_distance: float,
        debug: bool = False,
        visual: Optional[MountedVisual] = None,
    ) -> None:
        if direction.length() == 0.0:
            raise ValueError("Ultrasonic direction must be non-zero")
        if max_distance <= 0.0:
            raise ValueError("max_distance must be positive")
        super().__init__(name, chassis, displacement, physics=physics, clock=clock, debug=debug)
        self.direction = direction.normalized()
        self.max_distance = max_distance
        self.visual = visual

    def ray(self) -> Ray:
        return Ray(self.mount_point(), self.chassis.transform_direction(self.direction))

    def _measure(self) -> float:
        hit = self._cast(self.physics, self.ray(), self.max_distance)
        if hit is None:
            return self.max_distance
        return hit.distance

    def _update_debug_visual(self, reading: SensorReading) -> None:
        if self.visual is None:
            return
        # Arrow stops where the ray stopped.
        self.visual.mesh.shape = ArrowShape(max(reading.value, 1e-3))


class ColorSensor(Sensor):
    """Palette name of the surface straight below the sensor, or ``"none"``."""

    def __init__(
        self,
        name: str,
        chassis: Entity,
        displacement: Vector3,
        *,
        physics: PhysicsBackend,
        clock: Clock,
        max_distance: float = 0.1,
        debug: bool = False,
        visual: Optional[MountedVisual] = None,
    ) -> None:
        super().__init__(name, chassis, displacement, physics=physics, clock=clock, debug=debug)
        self.max_distance = max_distance
        self.visual = visual

    def _measure(self) -> str:
        ray = Ray(self.mount_point(), self.chassis.transform_direction(DOWN))
        hit = self._cast(self.physics, ray, self.max_distance)
        if hit is None or hit.collider.color is None:
            return NO_COLOR
        return classify_color(hit.collider.color)

    def sample_distance(self) -> Optional[float]:
        ray = Ray(self.mount_point(), self.chassis.transform_direction(DOWN))
        hit = self._cast(self.physics, ray, self.max_distance)
        return None if hit is None else hit.distance

    def _update_debug_visual(self, reading: SensorReading) -> None:
        if self.visual is None:
            return
        distance = self.sample_distance()
        drop = self.max_distance if distance is None else distance
        self.visual.offset = Vector3(0.0, -drop, 0.0)


__all__ = ["UltrasonicSensor", "ColorSensor"]
