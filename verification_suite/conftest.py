"""Shared fixtures: import path bootstrap and a disposable World."""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from core.config import config_from_dict  # noqa: E402
from core.simulator import World, create_world  # noqa: E402

FRAME_MS = 1000.0 / 60.0


@pytest.fixture(autouse=True)
def release_world():
    yield
    live = World.instance()
    if live is not None:
        live.dispose()


@pytest.fixture
def world():
    w = create_world()
    yield w
    w.dispose()


@pytest.fixture
def zero_g_world():
    """Floating chassis, suspension switched off, motors on the centre line."""
    config = config_from_dict(
        {
            "physics": {"gravity": [0.0, 0.0, 0.0]},
            "robot": {
                "chassis": {"linear_damping": 0.0},
                "wheel": {
                    "pid": {
                        "proportional_gain": 0.0,
                        "integral_gain": 0.0,
                        "derivative_gain": 0.0,
                        "output_min": 0.0,
                        "output_max": 0.0,
                    }
                },
                "motor": {
                    "displacements": {
                        "leftMotor": [-0.0575, 0.0, 0.0],
                        "rightMotor": [0.0575, 0.0, 0.0],
                    }
                },
            },
        }
    )
    w = create_world(config)
    yield w
    w.dispose()


def run_frames(world: World, count: int, start_ms: float = 0.0, frame_ms: float = FRAME_MS) -> float:
    """Step ``count`` frames with evenly spaced timestamps; returns the next timestamp."""
    timestamp = start_ms
    for _ in range(count):
        world.step(timestamp)
        timestamp += frame_ms
    return timestamp


@pytest.fixture
def step_frames():
    return run_frames
