"""EV3 simulation runner: pygame frame loop, or a headless batch run."""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import List, Optional

import pygame

from core import (
    InitializationError,
    SimulationConfig,
    World,
    WorldState,
    create_world,
    default_config,
    load_config,
)
from low_level_mechanics.visualizer import PygameRenderer

log = logging.getLogger("app")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the EV3 robot simulation.")
    parser.add_argument("program", nargs="?", help="Robot program (Python source defining main())")
    parser.add_argument("--config", help="JSON file with configuration overrides")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--frames", type=int, default=600, help="Frames to run in headless mode")
    parser.add_argument("--fps", type=float, default=None, help="Frame rate (defaults to render.fps)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def read_program(path: Optional[str]) -> str:
    if not path:
        return ""
    return Path(path).read_text(encoding="utf-8")


def run_headless(world: World, frames: int, fps: float) -> int:
    """Feed synthetic frame timestamps and print the final snapshot."""
    world.start()
    frame_ms = 1000.0 / fps
    for index in range(frames):
        world.step(index * frame_ms)
    print(json.dumps(world.snapshot(console_lines=20), indent=2, default=str))
    return 1 if world.program.last_error else 0


class SimulationApp:
    """Owns the pygame loop; the World never schedules its own frames."""

    def __init__(self, world: World, renderer: PygameRenderer, code: str, fps: float) -> None:
        self.world = world
        self.renderer = renderer
        self.code = code
        self.fps = fps
        self.running = True

    def _follow_robot(self) -> None:
        if self.world.config.render.follow_robot and self.world.robot is not None:
            self.renderer.follow(self.world.robot.get("mesh").mesh)

    def reload(self) -> None:
        self.world.pause()
        try:
            self.world.init(self.code)
        except InitializationError:
            # World stays loading; pressing R again retries.
            log.exception("reload failed")
            return
        self._follow_robot()
        log.info("program reloaded")

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self.running = False
            elif event.key == pygame.K_SPACE:
                if self.world.state is WorldState.RUNNING:
                    self.world.pause()
                else:
                    self.world.start()
            elif event.key == pygame.K_r:
                self.reload()

    def run(self) -> None:
        self._follow_robot()
        clock = pygame.time.Clock()
        while self.running:
            clock.tick(self.fps)
            for event in pygame.event.get():
                self.handle_event(event)
            self.renderer.set_overlay(self.renderer.overlay_from_snapshot(self.world.snapshot()))
            if self.world.state is WorldState.RUNNING:
                self.world.step(float(pygame.time.get_ticks()))
            else:
                self.world.redraw()
        pygame.quit()


def build_renderer(config: SimulationConfig) -> PygameRenderer:
    render = config.render
    return PygameRenderer(
        window_size=render.window_size,
        pixels_per_meter=render.pixels_per_meter,
        background_color=render.background_color,
        caption=render.caption,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    config = load_config(args.config) if args.config else default_config()
    code = read_program(args.program)
    fps = args.fps or config.render.fps

    renderer = None if args.headless else build_renderer(config)
    world = create_world(config, renderer=renderer)
    try:
        try:
            world.init(code)
        except InitializationError:
            log.exception("could not start the simulation")
            return 2
        if args.headless:
            return run_headless(world, args.frames, fps)
        SimulationApp(world, renderer, code, fps).run()
        return 0
    finally:
        world.dispose()


if __name__ == "__main__":
    sys.exit(main())
