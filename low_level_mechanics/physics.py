"""In-process rigid-body backend: cuboid bodies, forces, contacts and ray casts."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import itertools
import logging
from typing import Iterator, List, Optional, Protocol, Tuple

from .materials import Color
from .math3d import Orientation, Quaternion, Vector3, ZERO

log = logging.getLogger(__name__)

GRAVITY = Vector3(0.0, -9.81, 0.0)


class PhysicsError(RuntimeError):
    """Raised when the backend is used before init or with a foreign handle."""


class BodyType(str, Enum):
    FIXED = "fixed"
    DYNAMIC = "dynamic"


@dataclass
class RigidBodyDesc:
    body_type: BodyType = BodyType.DYNAMIC
    translation: Vector3 = ZERO
    rotation: Quaternion = field(default_factory=Quaternion.identity)
    linear_damping: float = 0.0
    angular_damping: float = 0.0

    @classmethod
    def fixed(cls) -> "RigidBodyDesc":
        return cls(body_type=BodyType.FIXED)

    @classmethod
    def dynamic(cls) -> "RigidBodyDesc":
        return cls(body_type=BodyType.DYNAMIC)


@dataclass
class ColliderDesc:
    """Cuboid collider centred on its body; ``color`` tags the surface."""

    half_extents: Vector3
    mass: float = 1.0
    color: Optional[Color] = None

    @classmethod
    def cuboid(cls, hx: float, hy: float, hz: float) -> "ColliderDesc":
        return cls(half_extents=Vector3(hx, hy, hz))


@dataclass(frozen=True)
class Ray:
    origin: Vector3
    direction: Vector3

    def point_at(self, distance: float) -> Vector3:
        return self.origin + self.direction * distance


@dataclass(frozen=True)
class RayHit:
    distance: float
    point: Vector3
    collider: "Collider"


class RigidBody:
    """Body handle. State is owned by the backend that created it."""

    def __init__(self, handle: int, desc: RigidBodyDesc, backend: "Physics") -> None:
        self.handle = handle
        self.body_type = desc.body_type
        self.position = desc.translation
        self.rotation = desc.rotation.normalized()
        self.linear_velocity = ZERO
        self.angular_velocity = ZERO
        self.linear_damping = desc.linear_damping
        self.angular_damping = desc.angular_damping
        self.mass = 0.0
        self.local_inertia = ZERO
        self.colliders: List["Collider"] = []
        self._force = ZERO
        self._torque = ZERO
        self._backend = backend

    @property
    def is_dynamic(self) -> bool:
        return self.body_type is BodyType.DYNAMIC

    @property
    def inverse_mass(self) -> float:
        if not self.is_dynamic or self.mass <= 0.0:
            return 0.0
        return 1.0 / self.mass

    def orientation(self) -> Orientation:
        return Orientation(self.position, self.rotation)

    def set_orientation(self, orientation: Orientation) -> None:
        self.position = orientation.position
        self.rotation = orientation.rotation.normalized()

    def velocity_at_point(self, point: Vector3) -> Vector3:
        return self.linear_velocity + self.angular_velocity.cross(point - self.position)

    def apply_impulse(self, impulse: Vector3, point: Optional[Vector3] = None) -> None:
        if not self.is_dynamic:
            return
        self.linear_velocity = self.linear_velocity + impulse * self.inverse_mass
        if point is not None:
            arm = point - self.position
            self.angular_velocity = self.angular_velocity + self._apply_inverse_inertia(arm.cross(impulse))

    def apply_force(self, force: Vector3, point: Optional[Vector3] = None) -> None:
        """Accumulate a force (and its torque about the centre) until the next step."""
        if not self.is_dynamic:
            return
        self._force = self._force + force
        if point is not None:
            self._torque = self._torque + (point - self.position).cross(force)

    def apply_torque(self, torque: Vector3) -> None:
        if self.is_dynamic:
            self._torque = self._torque + torque

    def clear_forces(self) -> None:
        self._force = ZERO
        self._torque = ZERO

    def _apply_inverse_inertia(self, value: Vector3) -> Vector3:
        if not self.is_dynamic:
            return ZERO
        local = self.rotation.conjugate().rotate(value)
        inertia = self.local_inertia
        scaled = Vector3(
            local.x / inertia.x if inertia.x > 0.0 else 0.0,
            local.y / inertia.y if inertia.y > 0.0 else 0.0,
            local.z / inertia.z if inertia.z > 0.0 else 0.0,
        )
        return self.rotation.rotate(scaled)

    def _effective_inverse_mass(self, point: Vector3, axis: Vector3) -> float:
        arm = point - self.position
        angular = self._apply_inverse_inertia(arm.cross(axis)).cross(arm)
        return self.inverse_mass + axis.dot(angular)

    def _integrate(self, dt: float, gravity: Vector3) -> None:
        acceleration = gravity + self._force * self.inverse_mass
        velocity = self.linear_velocity + acceleration * dt
        spin = self.angular_velocity + self._apply_inverse_inertia(self._torque) * dt
        velocity = velocity * (1.0 / (1.0 + dt * self.linear_damping))
        spin = spin * (1.0 / (1.0 + dt * self.angular_damping))
        self.linear_velocity = velocity
        self.angular_velocity = spin
        self.position = self.position + velocity * dt
        self.rotation = self.rotation.integrated(spin, dt)
        self.clear_forces()

    def _recompute_mass(self) -> None:
        mass = 0.0
        ix = iy = iz = 0.0
        for collider in self.colliders:
            h = collider.half_extents
            m = collider.mass
            mass += m
            ix += m / 3.0 * (h.y * h.y + h.z * h.z)
            iy += m / 3.0 * (h.x * h.x + h.z * h.z)
            iz += m / 3.0 * (h.x * h.x + h.y * h.y)
        self.mass = mass
        self.local_inertia = Vector3(ix, iy, iz)


class Collider:
    """Cuboid collider handle attached to exactly one body."""

    def __init__(self, handle: int, desc: ColliderDesc, body: RigidBody) -> None:
        self.handle = handle
        self.half_extents = desc.half_extents
        self.mass = desc.mass
        self.color = desc.color
        self.body = body

    def orientation(self) -> Orientation:
        return self.body.orientation()

    def corners(self) -> List[Vector3]:
        o = self.orientation()
        h = self.half_extents
        return [
            o.transform_point(Vector3(sx * h.x, sy * h.y, sz * h.z))
            for sx in (-1.0, 1.0)
            for sy in (-1.0, 1.0)
            for sz in (-1.0, 1.0)
        ]

    def contains_point(self, point: Vector3) -> bool:
        local = self.orientation().inverse_transform_point(point)
        h = self.half_extents
        return abs(local.x) < h.x and abs(local.y) < h.y and abs(local.z) < h.z

    def penetration(self, point: Vector3) -> Optional[Tuple[Vector3, float]]:
        """Exit normal (world) and depth of ``point`` inside this box, if any."""
        o = self.orientation()
        local = o.inverse_transform_point(point)
        h = self.half_extents
        depths = (h.x - abs(local.x), h.y - abs(local.y), h.z - abs(local.z))
        if min(depths) <= 0.0:
            return None
        axis = depths.index(min(depths))
        coords = (local.x, local.y, local.z)
        sign = 1.0 if coords[axis] >= 0.0 else -1.0
        normal = [0.0, 0.0, 0.0]
        normal[axis] = sign
        return o.transform_direction(Vector3(*normal)), depths[axis]

    def intersect_ray(self, ray: Ray, max_distance: float) -> Optional[float]:
        """Slab test in collider space. Origins inside the box hit at 0."""
        o = self.orientation()
        origin = o.inverse_transform_point(ray.origin)
        direction = o.inverse_transform_direction(ray.direction)
        h = self.half_extents
        t_enter = float("-inf")
        t_exit = float("inf")
        for oc, dc, half in (
            (origin.x, direction.x, h.x),
            (origin.y, direction.y, h.y),
            (origin.z, direction.z, h.z),
        ):
            if abs(dc) < 1e-12:
                if oc < -half or oc > half:
                    return None
                continue
            t1 = (-half - oc) / dc
            t2 = (half - oc) / dc
            if t1 > t2:
                t1, t2 = t2, t1
            t_enter = max(t_enter, t1)
            t_exit = min(t_exit, t2)
            if t_enter > t_exit:
                return None
        if t_exit < 0.0:
            return None
        toi = max(t_enter, 0.0)
        if toi > max_distance:
            return None
        return toi


class PhysicsBackend(Protocol):
    """Capabilities the simulation core consumes from a physics engine."""

    def init(self) -> None: ...

    def create_rigid_body(self, desc: RigidBodyDesc) -> RigidBody: ...

    def create_collider(self, desc: ColliderDesc, body: RigidBody) -> Collider: ...

    def cast_ray(
        self, ray: Ray, max_distance: float, *, exclude: Optional[RigidBody] = None
    ) -> Optional[RayHit]: ...

    def step(self, dt: float) -> None: ...

    def resolve_orientation(self, body: RigidBody) -> Orientation: ...


class Physics:
    """Owns rigid bodies and colliders, integrates them and answers ray casts."""

    def __init__(
        self,
        *,
        gravity: Vector3 = GRAVITY,
        contact_iterations: int = 8,
    ) -> None:
        self.gravity = gravity
        self.contact_iterations = contact_iterations
        self.time: float = 0.0
        self.step_index: int = 0
        self.initialized = False
        self.last_warning: Optional[str] = None
        self._bodies: List[RigidBody] = []
        self._colliders: List[Collider] = []
        self._handles = itertools.count(1)

    # --- Lifecycle -------------------------------------------------------
    def init(self) -> None:
        """(Re)create an empty world. Existing handles become foreign."""
        self._bodies = []
        self._colliders = []
        self.time = 0.0
        self.step_index = 0
        self.last_warning = None
        self.initialized = True
        log.debug("physics initialised (gravity=%s)", self.gravity.as_tuple())

    def _require_init(self) -> None:
        if not self.initialized:
            raise PhysicsError("Physics backend used before init()")

    def _check_owned(self, body: RigidBody) -> None:
        if body._backend is not self or body not in self._bodies:
            raise PhysicsError(f"Rigid body {getattr(body, 'handle', body)!r} does not belong to this world")

    # --- Construction ----------------------------------------------------
    def create_rigid_body(self, desc: RigidBodyDesc) -> RigidBody:
        self._require_init()
        body = RigidBody(next(self._handles), desc, self)
        self._bodies.append(body)
        return body

    def create_collider(self, desc: ColliderDesc, body: RigidBody) -> Collider:
        self._require_init()
        self._check_owned(body)
        h = desc.half_extents
        if min(h.x, h.y, h.z) <= 0.0:
            raise ValueError("Collider half extents must be positive")
        collider = Collider(next(self._handles), desc, body)
        body.colliders.append(collider)
        body._recompute_mass()
        self._colliders.append(collider)
        return collider

    def bodies(self) -> Iterator[RigidBody]:
        return iter(self._bodies)

    def colliders(self) -> Iterator[Collider]:
        return iter(self._colliders)

    # --- Queries ---------------------------------------------------------
    def resolve_orientation(self, body: RigidBody) -> Orientation:
        self._require_init()
        self._check_owned(body)
        return body.orientation()

    def cast_ray(
        self, ray: Ray, max_distance: float, *, exclude: Optional[RigidBody] = None
    ) -> Optional[RayHit]:
        self._require_init()
        direction = ray.direction.normalized()
        if direction.length() == 0.0:
            raise PhysicsError("Ray direction must be non-zero")
        unit_ray = Ray(ray.origin, direction)
        best: Optional[Tuple[float, Collider]] = None
        for collider in self._colliders:
            if exclude is not None and collider.body is exclude:
                continue
            toi = collider.intersect_ray(unit_ray, max_distance)
            if toi is not None and (best is None or toi < best[0]):
                best = (toi, collider)
        if best is None:
            return None
        return RayHit(distance=best[0], point=unit_ray.point_at(best[0]), collider=best[1])

    # --- Stepping --------------------------------------------------------
    def step(self, dt: float) -> None:
        """Advance ``dt`` seconds. Forces applied before this call are consumed."""
        self._require_init()
        self.last_warning = None
        if dt <= 0.0:
            for body in self._bodies:
                body.clear_forces()
            return
        for body in self._bodies:
            if body.is_dynamic:
                body._integrate(dt, self.gravity)
                self._sanitize(body)
            else:
                body.clear_forces()
        self._resolve_contacts()
        self.time += dt
        self.step_index += 1

    def _sanitize(self, body: RigidBody) -> None:
        if body.linear_velocity.is_finite() and body.angular_velocity.is_finite() and body.position.is_finite():
            return
        body.linear_velocity = ZERO
        body.angular_velocity = ZERO
        if not body.position.is_finite():
            body.position = ZERO
        self.last_warning = f"body {body.handle}: reset non-finite state"
        log.warning(self.last_warning)

    def _resolve_contacts(self) -> None:
        fixed = [c for c in self._colliders if not c.body.is_dynamic]
        if not fixed:
            return
        for body in self._bodies:
            if not body.is_dynamic or not body.colliders:
                continue
            contacts = self._contacts(body, fixed)
            if not contacts:
                continue
            start = body.position
            for _ in range(self.contact_iterations):
                current = self._contacts(body, fixed)
                if not current:
                    break
                _, normal, depth = max(current, key=lambda c: c[2])
                body.position = body.position + normal * depth
            shift = body.position - start
            # Sequential impulses: each pass removes what approach is left at every corner.
            for _ in range(self.contact_iterations):
                for corner, normal, _ in contacts:
                    point = corner + shift
                    approach = body.velocity_at_point(point).dot(normal)
                    if approach >= 0.0:
                        continue
                    k = body._effective_inverse_mass(point, normal)
                    if k > 1e-12:
                        body.apply_impulse(normal * (-approach / k), point)

    @staticmethod
    def _contacts(body: RigidBody, fixed: List[Collider]) -> List[Tuple[Vector3, Vector3, float]]:
        """Every body corner inside a fixed collider, with exit normal and depth."""
        found: List[Tuple[Vector3, Vector3, float]] = []
        for collider in body.colliders:
            for corner in collider.corners():
                for other in fixed:
                    hit = other.penetration(corner)
                    if hit is not None:
                        found.append((corner, hit[0], hit[1]))
        return found


__all__ = [
    "GRAVITY",
    "PhysicsError",
    "BodyType",
    "RigidBodyDesc",
    "ColliderDesc",
    "Ray",
    "RayHit",
    "RigidBody",
    "Collider",
    "PhysicsBackend",
    "Physics",
]
