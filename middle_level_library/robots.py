"""Robot assembly: the ControllerMap registry and the default EV3 blueprint."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Union

from low_level_mechanics.entities import (
    Entity,
    EntityCuboidOptions,
    MountedVisual,
    PhysicsObject,
    add_cuboid,
)
from low_level_mechanics.math3d import FORWARD, UP, Orientation, Quaternion, Vector3
from low_level_mechanics.physics import PhysicsBackend
from low_level_mechanics.render import ArrowShape, CuboidShape, MeshMaterial, RenderBackend
from low_level_mechanics.timing import TimingInfo

from .base import Actuator, Clock, Controller, ControllerNotFoundError, MountedComponent, Sensor
from .motors import Motor, Wheel
from .presets import PART_COLORS, ChassisConfig, Ev3Config
from .sensors import ColorSensor, UltrasonicSensor

log = logging.getLogger(__name__)

Visual = Union[PhysicsObject, MountedVisual]


class ControllerMap:
    """Fixed-shape registry of a robot's named parts.

    Keys are set at construction; there is no add, remove or replace.
    """

    def __init__(self, parts: Mapping[str, Any]) -> None:
        self._parts = MappingProxyType(dict(parts))

    def get(self, key: str) -> Any:
        try:
            return self._parts[key]
        except KeyError:
            raise ControllerNotFoundError(key) from None

    __getitem__ = get

    def __contains__(self, key: object) -> bool:
        return key in self._parts

    def __iter__(self) -> Iterator[str]:
        return iter(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def keys(self):
        return self._parts.keys()

    def items(self):
        return self._parts.items()

    def step(self, timing: TimingInfo) -> None:
        for part in self._parts.values():
            if isinstance(part, Controller):
                part.step(timing)

    def refresh_visuals(self) -> None:
        for part in self._parts.values():
            if isinstance(part, MountedComponent):
                part.refresh_visual()

    def visuals(self) -> List[Visual]:
        found: List[Visual] = []
        for part in self._parts.values():
            if isinstance(part, PhysicsObject):
                found.append(part)
            elif isinstance(part, MountedComponent):
                found.extend(part.visuals())
        return found

    def actuators(self) -> Dict[str, Actuator]:
        return {name: part for name, part in self._parts.items() if isinstance(part, Actuator)}

    def sensors(self) -> Dict[str, Sensor]:
        return {name: part for name, part in self._parts.items() if isinstance(part, Sensor)}


class ChassisWrapper:
    """Owns the chassis Entity; every mounted part refers back to it."""

    def __init__(self, physics: PhysicsBackend, config: ChassisConfig) -> None:
        self.config = config
        rotation = Quaternion.from_axis_angle(UP, config.heading)
        self.entity: Entity = add_cuboid(
            physics,
            EntityCuboidOptions(
                orientation=Orientation(Vector3.from_tuple(config.position), rotation),
                width=config.width,
                height=config.height,
                length=config.length,
                mass=config.mass,
                color=config.color,
                linear_damping=config.linear_damping,
                angular_damping=config.angular_damping,
            ),
        )

    @property
    def orientation(self) -> Orientation:
        return self.entity.orientation

    @property
    def position(self) -> Vector3:
        return self.entity.position

    @property
    def velocity(self) -> Vector3:
        return self.entity.velocity

    def heading(self) -> float:
        return self.entity.rotation.yaw()


class ChassisMesh(PhysicsObject):
    """Chassis body visual; mirrors the chassis Entity every step."""

    def __init__(self, chassis: ChassisWrapper, renderer: RenderBackend) -> None:
        cfg = chassis.config
        mesh = renderer.create_mesh(
            CuboidShape(cfg.width, cfg.height, cfg.length),
            MeshMaterial(color=cfg.color),
        )
        renderer.add_to_scene(mesh)
        super().__init__(chassis.entity, mesh, renderer)


EV3_PARTS = frozenset(
    {
        "frontLeftWheel",
        "frontRightWheel",
        "backLeftWheel",
        "backRightWheel",
        "leftMotor",
        "rightMotor",
        "colorSensor",
        "ultrasonicSensor",
        "mesh",
        "chassis",
    }
)


class Ev3(ControllerMap):
    """ControllerMap whose key set is exactly ``EV3_PARTS``."""

    def __init__(self, parts: Mapping[str, Any]) -> None:
        missing = EV3_PARTS - set(parts)
        extra = set(parts) - EV3_PARTS
        if missing or extra:
            raise ValueError(
                f"EV3 assembly mismatch: missing={sorted(missing)} extra={sorted(extra)}"
            )
        super().__init__(parts)

    @property
    def chassis(self) -> ChassisWrapper:
        return self.get("chassis")


def _mounted(
    renderer: RenderBackend,
    chassis: ChassisWrapper,
    displacement: Vector3,
    shape,
    color,
    *,
    wireframe: bool = False,
) -> MountedVisual:
    mesh = renderer.create_mesh(shape, MeshMaterial(color=color, wireframe=wireframe))
    renderer.add_to_scene(mesh)
    return MountedVisual(chassis.entity, mesh, renderer, displacement)


def create_default_ev3(
    physics: PhysicsBackend,
    renderer: RenderBackend,
    clock: Clock,
    config: Ev3Config | None = None,
) -> Ev3:
    """Assemble chassis, four suspension wheels, two motors and two sensors."""
    config = config or Ev3Config()
    chassis = ChassisWrapper(physics, config.chassis)
    parts: Dict[str, Any] = {"chassis": chassis, "mesh": ChassisMesh(chassis, renderer)}

    wheel_cfg = config.wheel
    for name, raw in wheel_cfg.displacements.items():
        displacement = Vector3.from_tuple(raw)
        visual = _mounted(
            renderer,
            chassis,
            displacement,
            CuboidShape(wheel_cfg.width, wheel_cfg.radius * 2, wheel_cfg.radius * 2),
            PART_COLORS["wheel"],
        )
        parts[name] = Wheel(
            name,
            chassis.entity,
            displacement,
            wheel_cfg.pid,
            physics=physics,
            rest_height=wheel_cfg.rest_height,
            max_ray_distance=wheel_cfg.max_ray_distance,
            radius=wheel_cfg.radius,
            visual=visual,
        )

    motor_cfg = config.motor
    for name, raw in motor_cfg.displacements.items():
        displacement = Vector3.from_tuple(raw)
        visual = _mounted(
            renderer,
            chassis,
            displacement,
            CuboidShape(motor_cfg.wheel_width, motor_cfg.wheel_radius * 2, motor_cfg.wheel_radius * 2),
            PART_COLORS["motor"],
            wireframe=True,
        )
        parts[name] = Motor(
            name,
            chassis.entity,
            displacement,
            motor_cfg.pid,
            wheel_radius=motor_cfg.wheel_radius,
            visual=visual,
        )

    us_cfg = config.ultrasonic_sensor
    us_displacement = Vector3.from_tuple(us_cfg.displacement)
    us_direction = Vector3.from_tuple(us_cfg.direction)
    us_visual = None
    if us_cfg.debug:
        us_visual = _mounted(
            renderer, chassis, us_displacement, ArrowShape(us_cfg.max_distance), PART_COLORS["ultrasonic"]
        )
        us_visual.spin = Quaternion.from_unit_vectors(FORWARD, us_direction)
    parts["ultrasonicSensor"] = UltrasonicSensor(
        "ultrasonicSensor",
        chassis.entity,
        us_displacement,
        us_direction,
        physics=physics,
        clock=clock,
        max_distance=us_cfg.max_distance,
        debug=us_cfg.debug,
        visual=us_visual,
    )

    cs_cfg = config.color_sensor
    cs_displacement = Vector3.from_tuple(cs_cfg.displacement)
    cs_visual = None
    if cs_cfg.debug:
        cs_visual = _mounted(
            renderer,
            chassis,
            cs_displacement,
            CuboidShape(0.01, 0.002, 0.01),
            PART_COLORS["color_sensor"],
        )
    parts["colorSensor"] = ColorSensor(
        "colorSensor",
        chassis.entity,
        cs_displacement,
        physics=physics,
        clock=clock,
        max_distance=cs_cfg.max_distance,
        debug=cs_cfg.debug,
        visual=cs_visual,
    )

    ev3 = Ev3(parts)
    log.debug("assembled EV3 with parts %s", sorted(ev3.keys()))
    return ev3


__all__ = [
    "ControllerNotFoundError",
    "ControllerMap",
    "ChassisWrapper",
    "ChassisMesh",
    "EV3_PARTS",
    "Ev3",
    "create_default_ev3",
]
