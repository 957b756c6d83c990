"""In-process physics backend: lifecycle errors, ray casts and floor contact."""
from __future__ import annotations

import math
from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from low_level_mechanics.entities import EntityCuboidOptions, add_cuboid  # noqa: E402
from low_level_mechanics.math3d import Orientation, Vector3  # noqa: E402
from low_level_mechanics.physics import (  # noqa: E402
    BodyType,
    Physics,
    PhysicsError,
    Ray,
    RigidBodyDesc,
)


def _floor(physics: Physics):
    return add_cuboid(
        physics,
        EntityCuboidOptions(
            orientation=Orientation(Vector3(0.0, -0.5, 0.0)),
            width=20.0,
            height=1.0,
            length=20.0,
            body_type=BodyType.FIXED,
            color=(235, 235, 235),
        ),
    )


def _box(physics: Physics, y: float, size: float = 0.1):
    return add_cuboid(
        physics,
        EntityCuboidOptions(
            orientation=Orientation(Vector3(0.0, y, 0.0)),
            width=size,
            height=size,
            length=size,
            mass=0.5,
        ),
    )


def test_use_before_init_raises() -> None:
    physics = Physics()
    with pytest.raises(PhysicsError):
        physics.create_rigid_body(RigidBodyDesc.dynamic())
    with pytest.raises(PhysicsError):
        physics.step(0.01)


def test_foreign_body_is_rejected() -> None:
    a, b = Physics(), Physics()
    a.init()
    b.init()
    body = a.create_rigid_body(RigidBodyDesc.dynamic())
    with pytest.raises(PhysicsError):
        b.resolve_orientation(body)


def test_reinit_invalidates_old_handles() -> None:
    physics = Physics()
    physics.init()
    entity = _box(physics, 1.0)
    physics.init()
    with pytest.raises(PhysicsError):
        physics.resolve_orientation(entity.body)


def test_ray_hits_nearest_collider_and_honours_exclude() -> None:
    physics = Physics()
    physics.init()
    _floor(physics)
    box = _box(physics, 0.5)
    ray = Ray(Vector3(0.0, 2.0, 0.0), Vector3(0.0, -1.0, 0.0))

    hit = physics.cast_ray(ray, 5.0)
    assert hit is not None
    assert hit.collider.body is box.body
    assert hit.distance == pytest.approx(2.0 - 0.55)

    hit = physics.cast_ray(ray, 5.0, exclude=box.body)
    assert hit is not None
    assert hit.distance == pytest.approx(2.0)
    assert hit.collider.color == (235, 235, 235)

    assert physics.cast_ray(ray, 1.0, exclude=box.body) is None


def test_zero_length_ray_direction_raises() -> None:
    physics = Physics()
    physics.init()
    with pytest.raises(PhysicsError):
        physics.cast_ray(Ray(Vector3(), Vector3()), 1.0)


def test_box_falls_and_rests_on_floor() -> None:
    physics = Physics()
    physics.init()
    _floor(physics)
    box = _box(physics, 0.3)
    for _ in range(240):
        physics.step(1.0 / 60.0)
    assert box.position.y == pytest.approx(0.05, abs=5e-3)
    assert abs(box.velocity.y) < 0.05
    assert math.isfinite(box.rotation.w)


def test_forces_are_consumed_by_one_step() -> None:
    physics = Physics(gravity=Vector3())
    physics.init()
    box = _box(physics, 1.0)
    box.apply_force(Vector3(1.0, 0.0, 0.0))
    physics.step(0.5)
    assert box.velocity.x == pytest.approx(1.0)  # a = 2 m/s^2 for half a second
    physics.step(0.5)
    assert box.velocity.x == pytest.approx(1.0)


def test_zero_dt_step_discards_forces_without_moving() -> None:
    physics = Physics(gravity=Vector3())
    physics.init()
    box = _box(physics, 1.0)
    box.apply_force(Vector3(10.0, 0.0, 0.0))
    physics.step(0.0)
    physics.step(0.1)
    assert box.velocity.x == 0.0
    assert box.position.y == pytest.approx(1.0)


def test_non_finite_state_is_reset_with_warning() -> None:
    physics = Physics(gravity=Vector3())
    physics.init()
    box = _box(physics, 1.0)
    box.body.linear_velocity = Vector3(float("nan"), 0.0, 0.0)
    physics.step(0.01)
    assert box.velocity == Vector3()
    assert physics.last_warning is not None
