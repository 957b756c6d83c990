"""Configuration dataclasses and JSON loading for a simulation session."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import json
from pathlib import Path
from typing import Dict, List, Tuple, Union, get_args, get_origin, get_type_hints

from low_level_mechanics.materials import Color
from low_level_mechanics.math3d import Vec3Tuple
from middle_level_library.pid import PIDConfig
from middle_level_library.presets import (
    ChassisConfig,
    ColorSensorConfig,
    Ev3Config,
    MotorConfig,
    UltrasonicSensorConfig,
    WheelConfig,
)

ColorSpec = Union[str, Color]  # palette name or RGB


@dataclass
class PhysicsConfig:
    gravity: Vec3Tuple = (0.0, -9.81, 0.0)
    max_frame_delta_ms: float = 1000.0 / 30.0
    contact_iterations: int = 8


@dataclass
class ObstacleConfig:
    position: Vec3Tuple = (0.0, 0.05, 0.5)
    size: Vec3Tuple = (0.1, 0.1, 0.1)
    heading: float = 0.0
    color: ColorSpec = "gray"


@dataclass
class MarkConfig:
    """Flat coloured tile lying on the floor (x, z centre; width, length)."""

    position: Tuple[float, float] = (0.0, 0.3)
    size: Tuple[float, float] = (0.1, 0.1)
    color: ColorSpec = "black"


@dataclass
class EnvironmentConfig:
    floor_size: Tuple[float, float] = (20.0, 20.0)
    floor_color: ColorSpec = "white"
    obstacles: List[ObstacleConfig] = field(default_factory=list)
    marks: List[MarkConfig] = field(default_factory=list)


@dataclass
class RenderConfig:
    window_size: Tuple[int, int] = (900, 500)
    pixels_per_meter: float = 900.0
    background_color: Color = (20, 20, 26)
    caption: str = "EV3 Simulation"
    follow_robot: bool = True
    fps: float = 60.0


@dataclass
class SimulationConfig:
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    robot: Ev3Config = field(default_factory=Ev3Config)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    console_size: int = 200


def default_config() -> SimulationConfig:
    return SimulationConfig()


def _is_dataclass_type(tp) -> bool:
    return isinstance(tp, type) and hasattr(tp, "__dataclass_fields__")


def _coerce(expected, value):
    """Shape a JSON value into ``expected`` (nested dataclasses, tuples)."""
    if _is_dataclass_type(expected) and isinstance(value, dict):
        return _dataclass_from_dict(expected, value)
    origin = get_origin(expected)
    if origin is list:
        inner = get_args(expected)[0]
        return [_coerce(inner, v) for v in value]
    if origin is dict:
        inner = get_args(expected)[1]
        return {k: _coerce(inner, v) for k, v in value.items()}
    if origin is tuple and isinstance(value, (list, tuple)):
        return tuple(value)
    if origin is Union:
        if value is None:
            return None
        for arg in get_args(expected):
            if _is_dataclass_type(arg) and isinstance(value, dict):
                return _dataclass_from_dict(arg, value)
            if get_origin(arg) is tuple and isinstance(value, (list, tuple)):
                return tuple(value)
    return value


def _dataclass_from_dict(cls, data: Dict) -> object:
    field_types = get_type_hints(cls)
    kwargs = {}
    for key, value in data.items():
        if key not in field_types:
            raise ValueError(f"Unknown config key '{key}' for {cls.__name__}")
        kwargs[key] = _coerce(field_types[key], value)
    return cls(**kwargs)


def apply_overrides(obj, data: Dict):
    """Return a copy of dataclass ``obj`` with ``data`` layered on top.

    Nested dataclasses merge key by key; any other value (lists, dicts such as
    displacement tables) is replaced as a whole.
    """
    field_types = get_type_hints(type(obj))
    names = {f.name for f in fields(obj)}
    changes = {}
    for key, value in data.items():
        if key not in names:
            raise ValueError(f"Unknown config key '{key}' for {type(obj).__name__}")
        current = getattr(obj, key)
        if hasattr(current, "__dataclass_fields__") and isinstance(value, dict):
            changes[key] = apply_overrides(current, value)
        else:
            changes[key] = _coerce(field_types[key], value)
    return replace(obj, **changes)


def config_from_dict(data: Dict) -> SimulationConfig:
    return apply_overrides(default_config(), data)


def load_config(path: Union[str, Path]) -> SimulationConfig:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return config_from_dict(data)


__all__ = [
    "ColorSpec",
    "PIDConfig",
    "PhysicsConfig",
    "ChassisConfig",
    "WheelConfig",
    "MotorConfig",
    "UltrasonicSensorConfig",
    "ColorSensorConfig",
    "Ev3Config",
    "ObstacleConfig",
    "MarkConfig",
    "EnvironmentConfig",
    "RenderConfig",
    "SimulationConfig",
    "default_config",
    "config_from_dict",
    "apply_overrides",
    "load_config",
]
