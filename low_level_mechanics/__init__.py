"""Core low-level mechanics package for 3D robot simulations."""

from .math3d import Vector3, Quaternion, Orientation
from .materials import NO_COLOR, NAMED_COLORS, classify_color, resolve_color
from .physics import Physics, PhysicsBackend, PhysicsError, Ray, RayHit, RigidBodyDesc, ColliderDesc
from .entities import Entity, EntityCuboidOptions, add_cuboid, PhysicsObject, MountedVisual
from .render import RenderBackend, HeadlessRenderer, Mesh, MeshMaterial, CuboidShape, ArrowShape
from .timing import TimeController, TimingInfo
from .visualizer import PygameRenderer

__all__ = [
    "Vector3",
    "Quaternion",
    "Orientation",
    "NO_COLOR",
    "NAMED_COLORS",
    "classify_color",
    "resolve_color",
    "Physics",
    "PhysicsBackend",
    "PhysicsError",
    "Ray",
    "RayHit",
    "RigidBodyDesc",
    "ColliderDesc",
    "Entity",
    "EntityCuboidOptions",
    "add_cuboid",
    "PhysicsObject",
    "MountedVisual",
    "RenderBackend",
    "HeadlessRenderer",
    "Mesh",
    "MeshMaterial",
    "CuboidShape",
    "ArrowShape",
    "TimeController",
    "TimingInfo",
    "PygameRenderer",
]
