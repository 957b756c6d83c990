"""Robot program runner: cooperative stepping, pauses and error capture."""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from conftest import run_frames  # noqa: E402
from core.program import ProgramController, ProgramError, RobotConsole  # noqa: E402
from core.simulator import WorldState  # noqa: E402

COUNTING_PROGRAM = """
def main():
    ticks.append(1)
    yield 100
    ticks.append(2)
    pause(50)
    yield
    ticks.append(3)
"""


def test_generator_program_pauses_on_simulated_time() -> None:
    ticks = []
    program = ProgramController()
    program.init(COUNTING_PROGRAM, {"ticks": ticks})
    assert program.running

    program.step(0.0)
    assert ticks == [1]
    assert program.paused_until == 100.0
    program.step(99.0)
    assert ticks == [1]

    program.step(100.0)
    assert ticks == [1, 2]
    assert program.paused_until == 150.0
    program.step(120.0)
    assert ticks == [1, 2]

    program.step(150.0)
    assert ticks == [1, 2, 3]
    assert program.finished
    assert not program.running


def test_plain_main_runs_once() -> None:
    calls = []
    program = ProgramController()
    program.init("def main():\n    calls.append('ran')\n", {"calls": calls})
    for ts in (0.0, 10.0, 20.0):
        program.step(ts)
    assert calls == ["ran"]
    assert program.finished


def test_source_without_main_is_finished_immediately() -> None:
    program = ProgramController()
    program.init("x = 1\n")
    assert program.finished
    assert program.last_error is None
    program.init("")
    assert program.finished


def test_compile_error_is_recorded() -> None:
    console = RobotConsole()
    program = ProgramController(console)
    program.init("def main(:\n    pass\n")
    assert not program.running
    assert "SyntaxError" in program.last_error
    assert console.tail(1)[0].startswith("!")
    with pytest.raises(ProgramError):
        program.raise_for_error()


def test_runtime_error_stops_program_not_world(world) -> None:
    world.init(
        "def main():\n"
        "    console.log('about to fail')\n"
        "    yield\n"
        "    raise ValueError('bad reading')\n"
    )
    world.start()
    run_frames(world, 5)
    assert world.state is WorldState.RUNNING
    assert world.get_elapsed_time() > 0.0
    assert "ValueError: bad reading" in world.program.last_error
    lines = world.program.console.tail(5)
    assert lines[0].endswith("about to fail")
    assert lines[-1].startswith("!")
    assert "ValueError" in lines[-1]


def test_program_sees_robot_namespace(world) -> None:
    world.init(
        "def main():\n"
        "    reading = ev3.get('ultrasonicSensor').sense()\n"
        "    console.log('distance', round(reading.value, 2))\n"
        "    drive.drive(0.1)\n"
    )
    world.start()
    run_frames(world, 2)
    assert world.program.last_error is None
    assert world.program.console.tail(1)[0].endswith("distance 2.5")
    assert world.drive.active


def test_unknown_part_surfaces_as_program_error(world) -> None:
    world.init("def main():\n    ev3.get('gripper')\n")
    world.start()
    run_frames(world, 1)
    assert "Controller 'gripper' not found" in world.program.last_error


def test_console_is_bounded_and_timestamped() -> None:
    now = [1234.0]
    console = RobotConsole(lambda: now[0], maxlen=3)
    for i in range(5):
        console.log("line", i)
    assert console.tail(10) == ["[1.23s] line 2", "[1.23s] line 3", "[1.23s] line 4"]
    assert console.tail(0) == []
    console.clear()
    assert console.tail() == []


def test_raising_timeout_callback_stops_program_not_world(world) -> None:
    world.init(
        "def boom():\n"
        "    raise ValueError('bad callback')\n"
        "\n"
        "def main():\n"
        "    set_timeout(boom, 10)\n"
        "    while True:\n"
        "        yield\n"
    )
    fired = []
    world.set_timeout(lambda: fired.append(world.get_elapsed_time()), 20.0)
    world.start()
    run_frames(world, 10)
    assert world.state is WorldState.RUNNING
    assert "ValueError: bad callback" in world.program.last_error
    assert not world.program.running
    assert world.program.console.tail(1)[0].startswith("!")
    # Later timeouts in the same queue still fire.
    assert len(fired) == 1


def test_guarded_callback_is_skipped_after_failure() -> None:
    calls = []
    program = ProgramController()
    program.init("def main(:\n")
    program.guard(lambda: calls.append(1))()
    assert calls == []
