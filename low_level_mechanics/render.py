"""Render backend contract, scene bookkeeping and a headless backend."""
from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
from typing import Any, Iterator, List, Optional, Protocol, Union

from .materials import Color
from .math3d import Quaternion, Vector3, ZERO

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CuboidShape:
    width: float
    height: float
    length: float


@dataclass(frozen=True)
class ArrowShape:
    """Arrow pointing along local +z, starting at the mesh origin."""

    length: float


Shape = Union[CuboidShape, ArrowShape]


@dataclass(frozen=True)
class MeshMaterial:
    color: Color = (180, 180, 180)
    wireframe: bool = False


class Mesh:
    """Visual handle. Transforms are written only through the renderer."""

    def __init__(self, handle: int, shape: Shape, material: MeshMaterial) -> None:
        self.handle = handle
        self.shape = shape
        self.material = material
        self.position: Vector3 = ZERO
        self.rotation: Quaternion = Quaternion.identity()
        self.in_scene = False

    def __repr__(self) -> str:
        return f"Mesh(handle={self.handle}, shape={type(self.shape).__name__})"


class RenderBackend(Protocol):
    """Capabilities the simulation core consumes from a renderer."""

    def init(self) -> None: ...

    def create_mesh(self, shape: Shape, material: MeshMaterial) -> Mesh: ...

    def add_to_scene(self, mesh: Mesh) -> None: ...

    def set_transform(self, mesh: Mesh, position: Vector3, rotation: Quaternion) -> None: ...

    def draw(self) -> None: ...

    def attach_output(self, surface: Any) -> None: ...


class SceneRenderer:
    """Scene graph shared by concrete renderers; subclasses implement ``_render``."""

    def __init__(self) -> None:
        self._scene: List[Mesh] = []
        self._handles = itertools.count(1)
        self.surface: Optional[Any] = None
        self.frames_drawn = 0
        self.overlay_lines: List[str] = []

    def init(self) -> None:
        """Start from an empty scene; meshes from an earlier init are dropped."""
        self._scene = []
        self.frames_drawn = 0

    def create_mesh(self, shape: Shape, material: MeshMaterial) -> Mesh:
        return Mesh(next(self._handles), shape, material)

    def add_to_scene(self, mesh: Mesh) -> None:
        if mesh.in_scene:
            return
        mesh.in_scene = True
        self._scene.append(mesh)

    def set_transform(self, mesh: Mesh, position: Vector3, rotation: Quaternion) -> None:
        mesh.position = position
        mesh.rotation = rotation

    def scene(self) -> Iterator[Mesh]:
        return iter(self._scene)

    def set_overlay(self, lines: List[str]) -> None:
        self.overlay_lines = list(lines)

    def attach_output(self, surface: Any) -> None:
        self.surface = surface
        log.info("renderer output attached: %r", surface)

    def draw(self) -> None:
        self._render()
        self.frames_drawn += 1

    def _render(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class HeadlessRenderer(SceneRenderer):
    """Keeps transforms up to date without drawing; used by tests and batch runs."""

    def _render(self) -> None:
        return None


__all__ = [
    "CuboidShape",
    "ArrowShape",
    "Shape",
    "MeshMaterial",
    "Mesh",
    "RenderBackend",
    "SceneRenderer",
    "HeadlessRenderer",
]
