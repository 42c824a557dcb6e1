"""typedfsm core library package."""

from . import exceptions  # noqa: F401
from .config import TypedStateMachineConfig, build_machine_config, load_machine, load_machine_config
from .state.engine import TypedStateMachine

__all__ = [
    "exceptions",
    "TypedStateMachine",
    "TypedStateMachineConfig",
    "build_machine_config",
    "load_machine_config",
    "load_machine",
]
