"""Core simulation framework (config, environment, program runner, world)."""

from .config import (  # noqa: F401
    SimulationConfig,
    PhysicsConfig,
    EnvironmentConfig,
    ObstacleConfig,
    MarkConfig,
    RenderConfig,
    default_config,
    config_from_dict,
    load_config,
)
from .environment import Environment  # noqa: F401
from .program import ProgramController, ProgramError, RobotConsole  # noqa: F401
from .simulator import (  # noqa: F401
    World,
    WorldState,
    WorldInstanceError,
    InitializationError,
    create_world,
)
