"""Machine configuration: in-memory dataclass and declarative definitions."""

from .machine import TypedStateMachineConfig, as_config
from .loader import MACHINE_SCHEMA, build_machine_config, load_machine, load_machine_config

__all__ = [
    "TypedStateMachineConfig",
    "as_config",
    "MACHINE_SCHEMA",
    "build_machine_config",
    "load_machine_config",
    "load_machine",
]
