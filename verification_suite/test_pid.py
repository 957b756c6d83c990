"""PID controller behaviour: first step, dt handling, anti-windup, convergence."""
from __future__ import annotations

from pathlib import Path
import sys

import pytest

BASE = Path(__file__).resolve().parents[1]
if str(BASE) not in sys.path:
    sys.path.insert(0, str(BASE))

from middle_level_library.pid import PIDConfig, PIDController  # noqa: E402


def test_first_call_is_proportional_only() -> None:
    pid = PIDController(PIDConfig(proportional_gain=2.0, integral_gain=1.0, derivative_gain=0.5))
    assert pid.calculate(0.0, 1.0, 0.0) == pytest.approx(2.0)
    assert pid.integral == 0.0
    assert pid.error == pytest.approx(1.0)


def test_integral_and_derivative_use_elapsed_seconds() -> None:
    pid = PIDController(PIDConfig(proportional_gain=2.0, integral_gain=1.0, derivative_gain=0.5))
    pid.calculate(0.0, 1.0, 0.0)
    out = pid.calculate(0.5, 1.0, 100.0)
    # P = 1.0, I = 0.5 * 0.1, D = (0.5 - 1.0) / 0.1 * 0.5
    assert out == pytest.approx(1.0 + 0.05 - 2.5)
    assert pid.integral == pytest.approx(0.05)


def test_repeated_timestamp_gives_zero_derivative() -> None:
    pid = PIDController(PIDConfig(proportional_gain=1.0, integral_gain=1.0, derivative_gain=10.0))
    pid.calculate(0.0, 1.0, 50.0)
    out = pid.calculate(0.2, 1.0, 50.0)
    assert out == pytest.approx(0.8)
    assert pid.integral == 0.0


def test_output_clamped_and_integral_frozen_while_saturated() -> None:
    pid = PIDController(
        PIDConfig(proportional_gain=1.0, integral_gain=10.0, output_min=-1.0, output_max=1.0)
    )
    for step in range(20):
        out = pid.calculate(0.0, 5.0, step * 100.0)
        assert -1.0 <= out <= 1.0
    assert pid.integral == 0.0

    out = pid.calculate(0.9, 1.0, 2000.0)
    assert out == pytest.approx(0.1 + 10.0 * 0.01)
    assert pid.integral == pytest.approx(0.01)


def test_state_survives_until_explicit_reset() -> None:
    pid = PIDController(PIDConfig(proportional_gain=1.0, integral_gain=1.0))
    pid.calculate(0.0, 1.0, 0.0)
    pid.calculate(0.0, 1.0, 1000.0)
    assert pid.integral == pytest.approx(1.0)
    pid.reset()
    assert pid.integral == 0.0
    assert pid.previous_timestamp is None
    assert pid.calculate(0.0, 1.0, 5000.0) == pytest.approx(1.0)


def test_invalid_clamp_range_rejected() -> None:
    with pytest.raises(ValueError):
        PIDConfig(output_min=1.0, output_max=-1.0)


def test_pi_loop_removes_steady_state_error() -> None:
    """First-order plant with a constant disturbance; P alone would leave an offset."""
    pid = PIDController(PIDConfig(proportional_gain=1.0, integral_gain=0.5, output_min=-5.0, output_max=5.0))
    dt = 0.02
    x = 0.0
    target = 1.0
    for step in range(3000):
        u = pid.calculate(x, target, step * dt * 1000.0)
        x += (u - 0.3) * dt
    assert abs(target - x) < 1e-3
