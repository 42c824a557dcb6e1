"""
typedfsm - strongly typed finite state machines

Declare transitions between your own state values, bind per-state hooks that
can veto a move, observe every move through events, and drive it all from
synchronous or asyncio code.
"""

from .core.config import TypedStateMachineConfig, build_machine_config, load_machine, load_machine_config
from .core.exceptions import (
    AlreadyInitializedError,
    AsyncHookError,
    ConfigError,
    HookVetoError,
    InvalidTargetError,
    LifecycleError,
    NotInitializedError,
    SchemaValidationError,
    TransitionPendingError,
    TypedFsmError,
    UnknownTransitionError,
    UsageError,
)
from .core.state import (
    EventsBuilder,
    HandlerRegistry,
    StateHookBinding,
    StateHookConfig,
    StateHookType,
    StateInfo,
    Transition,
    TransitOptions,
    register_handler,
)
from .core.state.engine import TypedStateMachine

__version__ = "1.0.0"
__all__ = [
    "__version__",
    # Engine and configuration
    "TypedStateMachine",
    "TypedStateMachineConfig",
    "Transition",
    "StateInfo",
    "StateHookType",
    "StateHookConfig",
    "StateHookBinding",
    "TransitOptions",
    "EventsBuilder",
    # Declarative definitions
    "HandlerRegistry",
    "register_handler",
    "build_machine_config",
    "load_machine_config",
    "load_machine",
    # Errors
    "TypedFsmError",
    "ConfigError",
    "SchemaValidationError",
    "LifecycleError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "TransitionPendingError",
    "UsageError",
    "UnknownTransitionError",
    "InvalidTargetError",
    "AsyncHookError",
    "HookVetoError",
]
