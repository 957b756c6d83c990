"""Configuration defaults and JSON overlays."""
from __future__ import annotations

import json
from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from core.config import (  # noqa: E402
    MarkConfig,
    ObstacleConfig,
    config_from_dict,
    default_config,
    load_config,
)
from core.simulator import create_world  # noqa: E402


def test_defaults_describe_the_stock_ev3() -> None:
    config = default_config()
    assert config.physics.gravity == (0.0, -9.81, 0.0)
    assert config.robot.wheel.rest_height == pytest.approx(0.03)
    assert set(config.robot.motor.displacements) == {"leftMotor", "rightMotor"}
    assert config.robot.ultrasonic_sensor.max_distance == pytest.approx(2.5)
    assert config.environment.obstacles == []


def test_load_config_merges_over_defaults(tmp_path) -> None:
    path = tmp_path / "arena.json"
    path.write_text(
        json.dumps(
            {
                "physics": {"gravity": [0.0, -5.0, 0.0]},
                "robot": {"chassis": {"mass": 1.0}, "motor": {"pid": {"integral_gain": 0.05}}},
                "environment": {
                    "obstacles": [{"position": [1.0, 0.1, 0.0], "size": [0.1, 0.2, 0.1]}],
                    "marks": [{"position": [0.0, 0.3], "color": "red"}],
                },
            }
        ),
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.physics.gravity == (0.0, -5.0, 0.0)
    assert config.physics.contact_iterations == default_config().physics.contact_iterations
    assert config.robot.chassis.mass == 1.0
    assert config.robot.chassis.width == pytest.approx(0.145)
    assert config.robot.motor.pid.integral_gain == 0.05
    assert config.robot.motor.pid.output_max == pytest.approx(0.2)
    assert config.environment.obstacles == [
        ObstacleConfig(position=(1.0, 0.1, 0.0), size=(0.1, 0.2, 0.1))
    ]
    assert config.environment.marks == [MarkConfig(position=(0.0, 0.3), color="red")]


def test_overrides_do_not_leak_into_defaults() -> None:
    config_from_dict({"robot": {"chassis": {"mass": 2.0}}})
    assert default_config().robot.chassis.mass == pytest.approx(0.6)


@pytest.mark.parametrize(
    "data",
    [
        {"gravity": [0, 0, 0]},
        {"robot": {"chassis": {"colour": "red"}}},
        {"environment": {"obstacles": [{"position": [0, 0, 0], "shape": "ball"}]}},
    ],
)
def test_unknown_keys_are_rejected(data) -> None:
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_inverted_pid_clamp_is_rejected() -> None:
    with pytest.raises(ValueError):
        config_from_dict({"robot": {"wheel": {"pid": {"output_min": 1.0, "output_max": 0.0}}}})


def test_environment_is_built_from_config() -> None:
    config = config_from_dict(
        {
            "environment": {
                "obstacles": [{"position": [0.0, 0.1, 1.0], "size": [1.0, 0.2, 0.1], "color": "red"}],
                "marks": [{"position": [2.0, 2.0], "color": "black"}],
            }
        }
    )
    world = create_world(config)
    try:
        world.init()
        # floor, one mark, one obstacle
        assert len(world.environment.objects) == 3
        reading = world.robot.get("ultrasonicSensor").sense()
        assert reading.value == pytest.approx(1.0 - 0.05 - 0.09, abs=0.01)
    finally:
        world.dispose()
