"""User program runner and the console it writes to."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import inspect
import logging
import traceback
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional

log = logging.getLogger(__name__)

PROGRAM_FILENAME = "<robot program>"


class ProgramError(RuntimeError):
    """The robot program failed to compile or raised while running."""


@dataclass(frozen=True)
class ConsoleEntry:
    timestamp: float
    level: str
    message: str

    def __str__(self) -> str:
        prefix = "!" if self.level == "error" else ""
        return f"{prefix}[{self.timestamp / 1000.0:.2f}s] {self.message}"


class RobotConsole:
    """Bounded, timestamped log of what the robot program printed."""

    def __init__(self, clock: Optional[Callable[[], float]] = None, *, maxlen: int = 200) -> None:
        self.clock = clock or (lambda: 0.0)
        self.entries: Deque[ConsoleEntry] = deque(maxlen=maxlen)

    def log(self, *values: Any) -> None:
        message = " ".join(str(v) for v in values)
        self.entries.append(ConsoleEntry(self.clock(), "info", message))
        log.info("[program] %s", message)

    def error(self, message: str) -> None:
        self.entries.append(ConsoleEntry(self.clock(), "error", message))

    def tail(self, count: int = 5) -> List[str]:
        if count <= 0:
            return []
        return [str(entry) for entry in list(self.entries)[-count:]]

    def clear(self) -> None:
        self.entries.clear()


class ProgramController:
    """Runs a robot program cooperatively, one slice per frame.

    The program source may define ``main()``. A generator ``main`` runs until
    its next ``yield`` on each step; yielding a number pauses it for that many
    simulated milliseconds. Errors stop the program, never the World.
    """

    def __init__(self, console: Optional[RobotConsole] = None) -> None:
        self.console = console or RobotConsole()
        self.reset()

    def reset(self) -> None:
        self.source = ""
        self.namespace: Dict[str, Any] = {}
        self.finished = False
        self.last_error: Optional[str] = None
        self._main: Optional[Callable[[], Any]] = None
        self._runner: Optional[Iterator[Any]] = None
        self._paused_until: Optional[float] = None
        self._last_timestamp = 0.0

    @property
    def running(self) -> bool:
        return self._main is not None and not self.finished and self.last_error is None

    @property
    def paused_until(self) -> Optional[float]:
        return self._paused_until

    def init(self, source_code: str, namespace: Optional[Dict[str, Any]] = None) -> None:
        self.reset()
        self.source = source_code or ""
        env: Dict[str, Any] = {"__name__": "__robot_program__", "pause": self.pause}
        env.update(namespace or {})
        self.namespace = env
        if not self.source.strip():
            self.finished = True
            return
        try:
            exec(compile(self.source, PROGRAM_FILENAME, "exec"), env)
        except Exception:
            self._fail(traceback.format_exc())
            return
        main = env.get("main")
        if main is None:
            self.finished = True
            return
        if not callable(main):
            self._fail("'main' is defined but is not callable")
            return
        self._main = main
        log.debug("robot program loaded (%d chars)", len(self.source))

    def step(self, timestamp: float) -> None:
        self._last_timestamp = timestamp
        if not self.running:
            return
        if self._paused_until is not None:
            if timestamp < self._paused_until:
                return
            self._paused_until = None
        try:
            if self._runner is None:
                result = self._main()
                if not inspect.isgenerator(result):
                    self._finish()
                    return
                self._runner = result
            delay = next(self._runner)
        except StopIteration:
            self._finish()
            return
        except Exception:
            self._fail(traceback.format_exc())
            return
        if isinstance(delay, (int, float)) and not isinstance(delay, bool) and delay > 0:
            self.pause(delay)

    def pause(self, time: float) -> None:
        """Hold the program for ``time`` ms counted from the latest step."""
        self._paused_until = self._last_timestamp + max(0.0, float(time))

    def guard(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """Wrap a program callback so that raising stops the program, not the caller."""

        def run() -> None:
            if self.last_error is not None:
                return
            try:
                callback()
            except Exception:
                self._fail(traceback.format_exc())

        return run

    def raise_for_error(self) -> None:
        if self.last_error is not None:
            raise ProgramError(self.last_error)

    def _finish(self) -> None:
        self.finished = True
        self._runner = None
        log.info("robot program finished")

    def _fail(self, message: str) -> None:
        self.last_error = message
        self._runner = None
        summary = message.strip().splitlines()[-1] if message.strip() else "program error"
        self.console.error(summary)
        log.error("robot program stopped:\n%s", message)


__all__ = ["ProgramError", "ConsoleEntry", "RobotConsole", "ProgramController"]
