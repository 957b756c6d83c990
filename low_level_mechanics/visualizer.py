"""Pygame-based top-down render backend with a follow camera and text overlay."""
from __future__ import annotations

import os
from typing import Any, List, Optional, Tuple

# Keeps stdout clean for the headless JSON report.
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

try:  # pragma: no cover - pygame import is environment specific
    import pygame
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "Pygame is required to use the low_level_mechanics.visualizer module."
    ) from exc

from .materials import Color
from .math3d import FORWARD, Vector3
from .render import ArrowShape, CuboidShape, Mesh, SceneRenderer

Point = Tuple[float, float]


class PygameRenderer(SceneRenderer):
    """Projects the scene onto the ground plane (x right, z up the screen)."""

    def __init__(
        self,
        *,
        window_size: Tuple[int, int] = (900, 500),
        pixels_per_meter: float = 900.0,
        background_color: Color = (20, 20, 26),
        caption: str = "EV3 Simulation",
        camera_lag: float = 0.15,
    ) -> None:
        super().__init__()
        self.window_size = window_size
        self.scale = pixels_per_meter
        self.background_color = background_color
        self.caption = caption
        self.camera_lag = max(0.0, min(1.0, camera_lag))
        self.follow_target: Optional[Mesh] = None
        self._camera_pos: Point = (0.0, 0.0)
        self._font: Optional[Any] = None

    def init(self) -> None:
        super().init()
        pygame.init()
        pygame.font.init()
        self._font = pygame.font.SysFont("Arial", 14)
        if self.surface is None:
            pygame.display.set_caption(self.caption)
            self.surface = pygame.display.set_mode(self.window_size)

    def attach_output(self, surface: Any) -> None:
        super().attach_output(surface)
        self.window_size = surface.get_size()

    def follow(self, mesh: Optional[Mesh]) -> None:
        self.follow_target = mesh

    def _render(self) -> None:
        if self.surface is None:
            return
        self.surface.fill(self.background_color)
        self._update_camera()
        for mesh in sorted(self.scene(), key=lambda m: m.position.y):
            if isinstance(mesh.shape, CuboidShape):
                self._draw_cuboid(mesh)
            elif isinstance(mesh.shape, ArrowShape):
                self._draw_arrow(mesh)
        self._draw_overlay()
        if self.surface is pygame.display.get_surface():
            pygame.display.flip()

    def _draw_cuboid(self, mesh: Mesh) -> None:
        shape = mesh.shape
        hw, hh, hl = shape.width / 2.0, shape.height / 2.0, shape.length / 2.0
        top = [Vector3(-hw, hh, -hl), Vector3(hw, hh, -hl), Vector3(hw, hh, hl), Vector3(-hw, hh, hl)]
        points = [self._world_to_screen(mesh.position + mesh.rotation.rotate(v)) for v in top]
        width = 1 if mesh.material.wireframe else 0
        pygame.draw.polygon(self.surface, mesh.material.color, points, width)

    def _draw_arrow(self, mesh: Mesh) -> None:
        direction = mesh.rotation.rotate(FORWARD)
        start = self._world_to_screen(mesh.position)
        end = self._world_to_screen(mesh.position + direction * mesh.shape.length)
        pygame.draw.line(self.surface, mesh.material.color, start, end, 2)
        pygame.draw.circle(self.surface, mesh.material.color, end, 3)

    def _draw_overlay(self) -> None:
        if self._font is None:
            return
        y = 8
        for line in self.overlay_lines:
            self.surface.blit(self._font.render(line, True, (240, 240, 240)), (8, y))
            y += 16

    def _world_to_screen(self, point: Vector3) -> Tuple[int, int]:
        px = point.x - self._camera_pos[0]
        pz = point.z - self._camera_pos[1]
        x = self.window_size[0] / 2.0 + px * self.scale
        y = self.window_size[1] / 2.0 - pz * self.scale
        return int(x), int(y)

    def _update_camera(self) -> None:
        if self.follow_target is None:
            target = (0.0, 0.0)
            alpha = 1.0
        else:
            target = (self.follow_target.position.x, self.follow_target.position.z)
            alpha = self.camera_lag if self.camera_lag > 0 else 1.0
        self._camera_pos = (
            self._camera_pos[0] + (target[0] - self._camera_pos[0]) * alpha,
            self._camera_pos[1] + (target[1] - self._camera_pos[1]) * alpha,
        )

    def overlay_from_snapshot(self, snapshot: dict) -> List[str]:
        lines = [f"state={snapshot['state']}  t={snapshot['elapsed_ms'] / 1000.0:.2f}s"]
        for name, status in snapshot.get("actuators", {}).items():
            lines.append(
                f"{name}: target={status['target']:.3f} sensed={status['sensed']:.3f} "
                f"out={status['output']:.3f}"
            )
        for name, reading in snapshot.get("sensors", {}).items():
            lines.append(f"{name}: {reading['value']}")
        for entry in snapshot.get("console", []):
            lines.append(f"> {entry}")
        return lines


__all__ = ["PygameRenderer"]
