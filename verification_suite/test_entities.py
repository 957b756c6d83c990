"""Entity pose reads and the one-way physics to render synchronisation."""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from low_level_mechanics.entities import (  # noqa: E402
    EntityCuboidOptions,
    MountedVisual,
    PhysicsObject,
    add_cuboid,
)
from low_level_mechanics.math3d import UP, Orientation, Quaternion, Vector3  # noqa: E402
from low_level_mechanics.physics import Physics  # noqa: E402
from low_level_mechanics.render import CuboidShape, HeadlessRenderer, MeshMaterial  # noqa: E402


def _scene():
    physics = Physics(gravity=Vector3())
    physics.init()
    renderer = HeadlessRenderer()
    renderer.init()
    entity = add_cuboid(
        physics,
        EntityCuboidOptions(
            orientation=Orientation(Vector3(1.0, 2.0, 3.0), Quaternion.from_axis_angle(UP, 0.5)),
            width=0.2,
            height=0.1,
            length=0.4,
            mass=2.0,
        ),
    )
    mesh = renderer.create_mesh(CuboidShape(0.2, 0.1, 0.4), MeshMaterial())
    renderer.add_to_scene(mesh)
    return physics, renderer, entity, mesh


def test_add_cuboid_places_body_and_sets_mass() -> None:
    _, _, entity, _ = _scene()
    assert entity.position == Vector3(1.0, 2.0, 3.0)
    assert entity.mass == pytest.approx(2.0)
    assert entity.rotation.yaw() == pytest.approx(0.5)


def test_entity_reads_pose_from_backend_each_time() -> None:
    physics, _, entity, _ = _scene()
    entity.apply_impulse(Vector3(0.0, 0.0, 2.0))
    physics.step(0.5)
    assert entity.position.z == pytest.approx(3.5)
    assert entity.world_translation(Vector3()) == entity.position


def test_physics_object_step_is_idempotent() -> None:
    physics, renderer, entity, mesh = _scene()
    obj = PhysicsObject(entity, mesh, renderer)
    entity.apply_impulse(Vector3(1.0, 0.0, 0.0), entity.world_translation(Vector3(0.0, 0.0, 0.2)))
    physics.step(0.1)
    obj.step()
    first = (mesh.position, mesh.rotation)
    obj.step()
    assert (mesh.position, mesh.rotation) == first
    assert mesh.position == entity.position


def test_mesh_never_drives_the_body() -> None:
    _, renderer, entity, mesh = _scene()
    obj = PhysicsObject(entity, mesh, renderer)
    mesh.position = Vector3(9.0, 9.0, 9.0)
    obj.step()
    assert entity.position == Vector3(1.0, 2.0, 3.0)
    assert mesh.position == entity.position


def test_mounted_visual_follows_displacement_and_offset() -> None:
    _, renderer, entity, _ = _scene()
    mesh = renderer.create_mesh(CuboidShape(0.01, 0.01, 0.01), MeshMaterial())
    visual = MountedVisual(entity, mesh, renderer, Vector3(0.1, 0.0, 0.0))
    visual.step()
    assert mesh.position == entity.world_translation(Vector3(0.1, 0.0, 0.0))
    visual.offset = Vector3(0.0, -0.05, 0.0)
    visual.step()
    expected = entity.world_translation(Vector3(0.1, -0.05, 0.0))
    assert mesh.position.y == pytest.approx(expected.y)
    assert mesh.position.x == pytest.approx(expected.x)
