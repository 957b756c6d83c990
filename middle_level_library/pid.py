"""PID feedback controller used by every actuator."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PIDConfig:
    proportional_gain: float = 0.0
    integral_gain: float = 0.0
    derivative_gain: float = 0.0
    output_min: float = float("-inf")
    output_max: float = float("inf")

    def __post_init__(self) -> None:
        if self.output_min > self.output_max:
            raise ValueError("PID output_min must not exceed output_max")


class PIDController:
    """Stateful PID loop.

    Timestamps are milliseconds on the simulation clock. The integral only
    grows on steps whose output was not clamped, so saturation cannot wind it
    up. State is kept until ``reset()`` is called explicitly.
    """

    def __init__(self, config: PIDConfig) -> None:
        self.config = config
        self.reset()

    def reset(self) -> None:
        self.integral = 0.0
        self.error = 0.0
        self.output = 0.0
        self.previous_error: Optional[float] = None
        self.previous_timestamp: Optional[float] = None

    def calculate(self, current: float, target: float, timestamp: float) -> float:
        cfg = self.config
        error = target - current

        dt = None
        if self.previous_timestamp is not None:
            dt = (timestamp - self.previous_timestamp) / 1000.0

        integral = self.integral
        derivative = 0.0
        if dt is not None and dt > 0.0:
            integral += error * dt
            if self.previous_error is not None:
                derivative = (error - self.previous_error) / dt

        raw = (
            cfg.proportional_gain * error
            + cfg.integral_gain * integral
            + cfg.derivative_gain * derivative
        )
        output = max(cfg.output_min, min(cfg.output_max, raw))
        if output == raw:
            self.integral = integral

        self.error = error
        self.output = output
        self.previous_error = error
        self.previous_timestamp = timestamp
        return output


__all__ = ["PIDConfig", "PIDController"]
