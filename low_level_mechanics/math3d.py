"""Vector, quaternion and pose primitives for the 3-D simulation world."""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, Sequence, Tuple

Vec3Tuple = Tuple[float, float, float]


@dataclass(frozen=True)
class Vector3:
    """An immutable 3-D vector (meters, meters/second, newtons...)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_tuple(cls, values: Sequence[float]) -> "Vector3":
        x, y, z = values
        return cls(float(x), float(y), float(z))

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> "Vector3":
        length = self.length()
        if length < 1e-12:
            return Vector3()
        return self * (1.0 / length)

    def project_on_plane(self, normal: "Vector3") -> "Vector3":
        n = normal.normalized()
        return self - n * self.dot(n)

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))

    def as_tuple(self) -> Vec3Tuple:
        return (self.x, self.y, self.z)

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


ZERO = Vector3(0.0, 0.0, 0.0)
UP = Vector3(0.0, 1.0, 0.0)
DOWN = Vector3(0.0, -1.0, 0.0)
FORWARD = Vector3(0.0, 0.0, 1.0)
RIGHT = Vector3(1.0, 0.0, 0.0)


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion rotation, stored (x, y, z, w) like most engines do."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls(0.0, 0.0, 0.0, 1.0)

    @classmethod
    def from_axis_angle(cls, axis: Vector3, angle: float) -> "Quaternion":
        n = axis.normalized()
        half = angle * 0.5
        s = math.sin(half)
        return cls(n.x * s, n.y * s, n.z * s, math.cos(half))

    @classmethod
    def from_unit_vectors(cls, start: Vector3, end: Vector3) -> "Quaternion":
        """Shortest rotation taking direction ``start`` onto ``end``."""
        a = start.normalized()
        b = end.normalized()
        r = a.dot(b) + 1.0
        if r < 1e-9:
            # Opposite vectors: rotate half a turn about any orthogonal axis.
            if abs(a.x) > abs(a.z):
                return cls(-a.y, a.x, 0.0, 0.0).normalized()
            return cls(0.0, -a.z, a.y, 0.0).normalized()
        c = a.cross(b)
        return cls(c.x, c.y, c.z, r).normalized()

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        ax, ay, az, aw = self.x, self.y, self.z, self.w
        bx, by, bz, bw = other.x, other.y, other.z, other.w
        return Quaternion(
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
            aw * bw - ax * bx - ay * by - az * bz,
        )

    def conjugate(self) -> "Quaternion":
        return Quaternion(-self.x, -self.y, -self.z, self.w)

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z + self.w * self.w)

    def normalized(self) -> "Quaternion":
        n = self.norm()
        if n < 1e-12:
            return Quaternion.identity()
        return Quaternion(self.x / n, self.y / n, self.z / n, self.w / n)

    def rotate(self, v: Vector3) -> Vector3:
        q = Vector3(self.x, self.y, self.z)
        t = q.cross(v) * 2.0
        return v + t * self.w + q.cross(t)

    def integrated(self, angular_velocity: Vector3, dt: float) -> "Quaternion":
        """Advance by a world-frame angular velocity over ``dt`` seconds."""
        spin = Quaternion(angular_velocity.x, angular_velocity.y, angular_velocity.z, 0.0) * self
        half_dt = 0.5 * dt
        return Quaternion(
            self.x + spin.x * half_dt,
            self.y + spin.y * half_dt,
            self.z + spin.z * half_dt,
            self.w + spin.w * half_dt,
        ).normalized()

    def yaw(self) -> float:
        """Heading of the rotated forward axis around world up (radians)."""
        heading = self.rotate(FORWARD)
        return math.atan2(heading.x, heading.z)

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.w)


@dataclass(frozen=True)
class Orientation:
    """Position plus rotation of a body in world coordinates."""

    position: Vector3 = ZERO
    rotation: Quaternion = Quaternion()

    def transform_point(self, local: Vector3) -> Vector3:
        return self.position + self.rotation.rotate(local)

    def transform_direction(self, local: Vector3) -> Vector3:
        return self.rotation.rotate(local)

    def inverse_transform_point(self, world: Vector3) -> Vector3:
        return self.rotation.conjugate().rotate(world - self.position)

    def inverse_transform_direction(self, world: Vector3) -> Vector3:
        return self.rotation.conjugate().rotate(world)

    def as_dict(self) -> Dict[str, object]:
        return {
            "position": self.position.as_dict(),
            "rotation": self.rotation.as_tuple(),
        }


__all__ = [
    "Vector3",
    "Quaternion",
    "Orientation",
    "Vec3Tuple",
    "ZERO",
    "UP",
    "DOWN",
    "FORWARD",
    "RIGHT",
]
