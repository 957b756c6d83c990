"""Entities bind rigid bodies to poses; physics objects bind entities to meshes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .materials import Color
from .math3d import Orientation, Quaternion, Vector3, ZERO
from .physics import BodyType, Collider, ColliderDesc, PhysicsBackend, RigidBody, RigidBodyDesc
from .render import Mesh, RenderBackend


class Entity:
    """One rigid body and its collider. Pose is always read from the backend."""

    def __init__(self, physics: PhysicsBackend, body: RigidBody, collider: Collider) -> None:
        self.physics = physics
        self.body = body
        self.collider = collider

    @property
    def orientation(self) -> Orientation:
        return self.physics.resolve_orientation(self.body)

    @property
    def position(self) -> Vector3:
        return self.orientation.position

    @property
    def rotation(self) -> Quaternion:
        return self.orientation.rotation

    def set_orientation(self, orientation: Orientation) -> None:
        """Teleport the body; velocities are left as they are."""
        self.body.set_orientation(orientation)

    def world_translation(self, local: Vector3) -> Vector3:
        return self.orientation.transform_point(local)

    def transform_direction(self, local: Vector3) -> Vector3:
        return self.orientation.transform_direction(local)

    def world_velocity(self, local: Vector3) -> Vector3:
        return self.body.velocity_at_point(self.world_translation(local))

    @property
    def velocity(self) -> Vector3:
        return self.body.linear_velocity

    @property
    def angular_velocity(self) -> Vector3:
        return self.body.angular_velocity

    @property
    def mass(self) -> float:
        return self.body.mass

    def apply_impulse(self, impulse: Vector3, point: Optional[Vector3] = None) -> None:
        self.body.apply_impulse(impulse, point)

    def apply_force(self, force: Vector3, point: Optional[Vector3] = None) -> None:
        self.body.apply_force(force, point)


@dataclass
class EntityCuboidOptions:
    orientation: Orientation
    width: float
    height: float
    length: float
    mass: float = 1.0
    body_type: BodyType = BodyType.DYNAMIC
    color: Optional[Color] = None
    linear_damping: float = 0.0
    angular_damping: float = 0.0


def add_cuboid(physics: PhysicsBackend, options: EntityCuboidOptions) -> Entity:
    """Create a cuboid body + collider and wrap them in an Entity."""
    body_desc = RigidBodyDesc(
        body_type=options.body_type,
        linear_damping=options.linear_damping,
        angular_damping=options.angular_damping,
    )
    collider_desc = ColliderDesc.cuboid(options.width / 2, options.height / 2, options.length / 2)
    collider_desc.mass = options.mass
    collider_desc.color = options.color

    body = physics.create_rigid_body(body_desc)
    collider = physics.create_collider(collider_desc, body)
    entity = Entity(physics, body, collider)
    entity.set_orientation(options.orientation)
    return entity


class PhysicsObject:
    """Owns an Entity and mirrors its resolved pose into a mesh each step."""

    def __init__(self, entity: Entity, mesh: Mesh, renderer: RenderBackend) -> None:
        self.entity = entity
        self.mesh = mesh
        self.renderer = renderer

    def step(self) -> None:
        orientation = self.entity.orientation
        self.renderer.set_transform(self.mesh, orientation.position, orientation.rotation)


class MountedVisual:
    """A mesh riding on an entity it does not own, at a fixed displacement.

    ``offset`` and ``spin`` are written by the owning component during its own
    step and only take effect when the visual is synchronised.
    """

    def __init__(
        self,
        entity: Entity,
        mesh: Mesh,
        renderer: RenderBackend,
        displacement: Vector3,
    ) -> None:
        self.entity = entity
        self.mesh = mesh
        self.renderer = renderer
        self.displacement = displacement
        self.offset: Vector3 = ZERO
        self.spin: Quaternion = Quaternion.identity()

    def step(self) -> None:
        orientation = self.entity.orientation
        position = orientation.transform_point(self.displacement + self.offset)
        self.renderer.set_transform(self.mesh, position, orientation.rotation * self.spin)


__all__ = [
    "Entity",
    "EntityCuboidOptions",
    "add_cuboid",
    "PhysicsObject",
    "MountedVisual",
]
