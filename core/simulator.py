"""World orchestrator: state machine, fixed-order step loop and monitoring."""
from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Dict, List, Optional, Union

from low_level_mechanics.entities import MountedVisual, PhysicsObject
from low_level_mechanics.math3d import Vector3
from low_level_mechanics.physics import Physics, PhysicsBackend
from low_level_mechanics.render import HeadlessRenderer, RenderBackend
from low_level_mechanics.timing import TimeController, TimeoutFunction

from middle_level_library.motors import DriveController, Motor
from middle_level_library.robots import Ev3, create_default_ev3

from .config import SimulationConfig, default_config
from .environment import Environment
from .program import ProgramController, RobotConsole

log = logging.getLogger(__name__)

SyncedVisual = Union[PhysicsObject, MountedVisual]


class WorldState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    RUNNING = "running"


class WorldInstanceError(RuntimeError):
    """A second World was constructed while the first is still live."""


class InitializationError(RuntimeError):
    """A backend failed during ``World.init``; the World stays loading."""


class World:
    """Owns the backends, the robot and the step loop.

    Only one World may be live per process. ``dispose()`` (or leaving a
    ``with`` block) releases the slot.
    """

    _instance: Optional["World"] = None

    def __init__(
        self,
        physics: PhysicsBackend,
        renderer: RenderBackend,
        timer: TimeController,
        program: Optional[ProgramController] = None,
        config: Optional[SimulationConfig] = None,
    ) -> None:
        if World._instance is not None:
            raise WorldInstanceError("Only one instance of World is allowed")
        World._instance = self
        self.physics = physics
        self.renderer = renderer
        self.timer = timer
        self.config = config or default_config()
        self.program = program or ProgramController(
            RobotConsole(timer.get_elapsed_time, maxlen=self.config.console_size)
        )
        self.state = WorldState.UNINITIALIZED
        self.physics_objects: List[SyncedVisual] = []
        self.environment: Optional[Environment] = None
        self.robot: Optional[Ev3] = None
        self.drive: Optional[DriveController] = None

    @classmethod
    def instance(cls) -> Optional["World"]:
        return cls._instance

    def dispose(self) -> None:
        if World._instance is self:
            World._instance = None
            log.debug("world disposed")

    def __enter__(self) -> "World":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _set_state(self, state: WorldState) -> None:
        log.info("world state %s -> %s", self.state.value, state.value)
        self.state = state

    # --- Lifecycle -------------------------------------------------------
    def init(self, code: str = "") -> None:
        """Start the backends, build the arena and robot, load the program."""
        if self.state is WorldState.RUNNING:
            log.debug("init ignored while running")
            return
        self._set_state(WorldState.LOADING)
        try:
            self.physics.init()
            self.renderer.init()
        except Exception as exc:
            log.error("backend initialisation failed: %s", exc)
            raise InitializationError(f"Backend initialisation failed: {exc}") from exc

        self.timer.reset()
        self.physics_objects = []
        self.environment = Environment(self.physics, self.renderer, self.config.environment)
        for obj in self.environment.build():
            self.add_physics_object(obj)

        self.robot = create_default_ev3(
            self.physics, self.renderer, self.timer.get_elapsed_time, self.config.robot
        )
        for visual in self.robot.visuals():
            self.add_physics_object(visual)
        motors = {
            name: part for name, part in self.robot.actuators().items() if isinstance(part, Motor)
        }
        self.drive = DriveController(motors, self.timer)

        self.program.console.clear()
        self.program.init(code, self._program_namespace())
        self._sync_visuals()
        self._set_state(WorldState.READY)

    def start(self) -> None:
        if self.state is not WorldState.READY:
            log.debug("start ignored in state %s", self.state.value)
            return
        self._set_state(WorldState.RUNNING)

    def pause(self) -> None:
        if self.state is not WorldState.RUNNING:
            log.debug("pause ignored in state %s", self.state.value)
            return
        self._set_state(WorldState.READY)
        self.timer.pause()

    stop = pause

    # --- Stepping --------------------------------------------------------
    def step(self, timestamp: float) -> None:
        """Advance one frame ending at host time ``timestamp`` (ms)."""
        if self.state is not WorldState.RUNNING:
            return
        timing = self.timer.frame(timestamp)
        self.program.step(timing.elapsed)
        self.drive.step(timing)
        self.robot.step(timing)
        self.physics.step(timing.dt)
        self._sync_visuals()
        self.renderer.draw()
        if self.state is WorldState.RUNNING:
            self.timer.step(timestamp)

    def redraw(self) -> None:
        """Re-render the last resolved poses without advancing physics."""
        if self.state not in (WorldState.READY, WorldState.RUNNING):
            return
        self._sync_visuals()
        self.renderer.draw()

    def attach_output(self, surface: Any) -> None:
        self.renderer.attach_output(surface)
        self.redraw()

    def _sync_visuals(self) -> None:
        if self.robot is not None:
            self.robot.refresh_visuals()
        for obj in self.physics_objects:
            obj.step()

    def add_physics_object(self, obj: SyncedVisual) -> None:
        self.physics_objects.append(obj)

    # --- Clock -----------------------------------------------------------
    def get_elapsed_time(self) -> float:
        return self.timer.get_elapsed_time()

    def get_frame_time(self) -> float:
        return self.timer.get_frame_time()

    def set_timeout(self, callback: TimeoutFunction, delay: float) -> int:
        return self.timer.set_timeout(callback, delay)

    def clear_timeout(self, handle: int) -> None:
        self.timer.clear_timeout(handle)

    def pause_program_controller(self, time: float) -> None:
        self.program.pause(time)

    # --- Monitoring ------------------------------------------------------
    def _program_namespace(self) -> Dict[str, Any]:
        return {
            "ev3": self.robot,
            "drive": self.drive,
            "console": self.program.console,
            "elapsed_time": self.get_elapsed_time,
            "set_timeout": self._program_set_timeout,
            "clear_timeout": self.clear_timeout,
        }

    def _program_set_timeout(self, callback: TimeoutFunction, delay: float) -> int:
        return self.set_timeout(self.program.guard(callback), delay)

    def snapshot(self, console_lines: int = 5) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "state": self.state.value,
            "elapsed_ms": self.get_elapsed_time(),
            "frame_time": self.get_frame_time(),
            "actuators": {},
            "sensors": {},
            "console": self.program.console.tail(console_lines),
            "program_error": self.program.last_error,
        }
        if self.robot is None:
            return data
        data["chassis"] = self.robot.chassis.orientation.as_dict()
        for name, actuator in self.robot.actuators().items():
            data["actuators"][name] = actuator.status()
        for name, sensor in self.robot.sensors().items():
            reading = sensor.sense()
            data["sensors"][name] = {"timestamp": reading.timestamp, "value": reading.value}
        return data


def create_world(
    config: Optional[SimulationConfig] = None,
    *,
    physics: Optional[PhysicsBackend] = None,
    renderer: Optional[RenderBackend] = None,
) -> World:
    """Wire default backends around a new World (headless unless told otherwise).

    Fails with ``WorldInstanceError`` before any backend is built while another
    World is live.
    """
    if World.instance() is not None:
        raise WorldInstanceError("Only one instance of World is allowed")
    config = config or default_config()
    if physics is None:
        physics = Physics(
            gravity=Vector3.from_tuple(config.physics.gravity),
            contact_iterations=config.physics.contact_iterations,
        )
    timer = TimeController(max_frame_delta_ms=config.physics.max_frame_delta_ms)
    program = ProgramController(RobotConsole(timer.get_elapsed_time, maxlen=config.console_size))
    return World(physics, renderer or HeadlessRenderer(), timer, program, config)


__all__ = [
    "WorldState",
    "WorldInstanceError",
    "InitializationError",
    "World",
    "create_world",
]
