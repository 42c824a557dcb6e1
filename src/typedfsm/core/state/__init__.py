"""State machine building blocks.

The engine itself lives in ``typedfsm.core.state.engine``; it is not imported
here because it depends on ``typedfsm.core.config``, which depends on the
models below.
"""

from .events import EventBuilderConfig, EventsBuilder
from .handlers import HandlerRegistry, register_handler, registry as handler_registry
from .hooks import HookResult, bind_hook_handler, collect_hook_handlers, invoke_hooks
from .models import (
    DEFAULT_TRANSIT_OPTIONS,
    StateHookBinding,
    StateHookConfig,
    StateHookType,
    StateInfo,
    Transition,
    TransitOptions,
    parse_hook_type,
)
from .reachability import collect_states, project_states

__all__ = [
    # Value types
    "Transition",
    "StateInfo",
    "StateHookType",
    "StateHookConfig",
    "StateHookBinding",
    "TransitOptions",
    "DEFAULT_TRANSIT_OPTIONS",
    "parse_hook_type",
    # Events and hooks
    "EventsBuilder",
    "EventBuilderConfig",
    "HookResult",
    "bind_hook_handler",
    "collect_hook_handlers",
    "invoke_hooks",
    # Reachability
    "collect_states",
    "project_states",
    # Named handlers
    "HandlerRegistry",
    "handler_registry",
    "register_handler",
]
