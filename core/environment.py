"""Static arena: floor, obstacles and coloured floor marks."""
from __future__ import annotations

import logging
from typing import List

from low_level_mechanics.entities import EntityCuboidOptions, PhysicsObject, add_cuboid
from low_level_mechanics.materials import resolve_color
from low_level_mechanics.math3d import UP, Orientation, Quaternion, Vector3
from low_level_mechanics.physics import BodyType, PhysicsBackend
from low_level_mechanics.render import CuboidShape, MeshMaterial, RenderBackend

from .config import EnvironmentConfig, ColorSpec

log = logging.getLogger(__name__)

FLOOR_THICKNESS = 1.0
MARK_THICKNESS = 0.002


class Environment:
    """Builds fixed bodies for the arena. The floor's top surface is y = 0."""

    def __init__(self, physics: PhysicsBackend, renderer: RenderBackend, config: EnvironmentConfig) -> None:
        self.physics = physics
        self.renderer = renderer
        self.config = config
        self.objects: List[PhysicsObject] = []

    def build(self) -> List[PhysicsObject]:
        cfg = self.config
        width, length = cfg.floor_size
        self.objects = [
            self._fixed_cuboid(
                Vector3(0.0, -FLOOR_THICKNESS / 2.0, 0.0),
                (width, FLOOR_THICKNESS, length),
                cfg.floor_color,
            )
        ]
        for mark in cfg.marks:
            x, z = mark.position
            self.objects.append(
                self._fixed_cuboid(
                    Vector3(x, MARK_THICKNESS / 2.0, z),
                    (mark.size[0], MARK_THICKNESS, mark.size[1]),
                    mark.color,
                )
            )
        for obstacle in cfg.obstacles:
            self.objects.append(
                self._fixed_cuboid(
                    Vector3.from_tuple(obstacle.position),
                    obstacle.size,
                    obstacle.color,
                    heading=obstacle.heading,
                )
            )
        log.debug(
            "environment built: %d marks, %d obstacles", len(cfg.marks), len(cfg.obstacles)
        )
        return list(self.objects)

    def _fixed_cuboid(self, position: Vector3, size, color: ColorSpec, *, heading: float = 0.0) -> PhysicsObject:
        rgb = resolve_color(color)
        width, height, length = size
        entity = add_cuboid(
            self.physics,
            EntityCuboidOptions(
                orientation=Orientation(position, Quaternion.from_axis_angle(UP, heading)),
                width=width,
                height=height,
                length=length,
                body_type=BodyType.FIXED,
                color=rgb,
            ),
        )
        mesh = self.renderer.create_mesh(CuboidShape(width, height, length), MeshMaterial(color=rgb))
        self.renderer.add_to_scene(mesh)
        return PhysicsObject(entity, mesh, self.renderer)


__all__ = ["Environment", "FLOOR_THICKNESS", "MARK_THICKNESS"]
