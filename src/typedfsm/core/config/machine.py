"""In-memory configuration of a typed state machine."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Generic, List, Mapping, Optional

from ..exceptions import ConfigError
from ..state.models import (
    GenericEventHandler,
    S,
    StateEventHandler,
    StateHookBinding,
    StateHookConfig,
    Transition,
    TransitionEventHandler,
    parse_hook_type,
)


@dataclass
class TypedStateMachineConfig(Generic[S]):
    """Configuration of a ``TypedStateMachine``.

    Attributes:
        initial_state: State entered by ``initialize()``. Must not be None.
        transitions: Declared transitions, in priority order.
        can_self_loop: Allow a transition from any state to itself even when
            no transition declares it.
        hooks: Per-state hook bindings. May be None (no hooks).
        on_before_every_transition: ``(machine)`` fired before every transition.
        on_after_every_transition: ``(machine)`` fired after every transition.
        on_invalid_transition: ``(machine, from_state, to_state)`` fired when a
            requested transition does not exist.
        on_state_enter: ``(machine, state)`` fired when entering any state.
        on_state_leave: ``(machine, state)`` fired when leaving any state.
    """

    initial_state: S
    transitions: List[Transition[S]] = field(default_factory=list)
    can_self_loop: bool = False
    hooks: Optional[List[StateHookBinding[S]]] = field(default_factory=list)
    on_before_every_transition: Optional[GenericEventHandler] = None
    on_after_every_transition: Optional[GenericEventHandler] = None
    on_invalid_transition: Optional[TransitionEventHandler] = None
    on_state_enter: Optional[StateEventHandler] = None
    on_state_leave: Optional[StateEventHandler] = None

    def __post_init__(self) -> None:
        _ensure_initial_state(self.initial_state)
        self.transitions = list(self.transitions or [])
        if self.hooks is not None:
            self.hooks = [_as_binding(b) for b in self.hooks]
        self.can_self_loop = bool(self.can_self_loop)

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TypedStateMachineConfig[Any]":
        """Build a configuration from a plain mapping of field names."""
        if data is None:
            raise ConfigError("A state machine configuration is required")
        unknown = sorted(set(data) - set(cls.field_names()))
        if unknown:
            raise ConfigError(
                f"Unknown configuration field(s): {', '.join(unknown)}",
                context={"fields": ", ".join(unknown)},
            )
        if "initial_state" not in data:
            raise ConfigError("The initial state is required")
        return cls(**dict(data))

    def snapshot(self) -> "TypedStateMachineConfig[S]":
        """Return a copy that shares no mutable collection with this config."""
        # __post_init__ copies the transition list and every hook binding.
        return replace(self)

    def merged(self, changes: Mapping[str, Any]) -> "TypedStateMachineConfig[S]":
        """Return a new config with ``changes`` shallow-merged over this one."""
        unknown = sorted(set(changes) - set(self.field_names()))
        if unknown:
            raise ConfigError(
                f"Unknown configuration field(s): {', '.join(unknown)}",
                context={"fields": ", ".join(unknown)},
            )
        return replace(self, **dict(changes))


def _ensure_initial_state(initial_state: Any) -> None:
    if initial_state is None:
        raise ConfigError("The initial state is required")


def _as_binding(value: Any) -> StateHookBinding[Any]:
    if isinstance(value, StateHookBinding):
        return value.copy()
    if isinstance(value, Mapping):
        handlers = value.get("handlers")
        if handlers is not None:
            handlers = [_as_hook_config(h) for h in handlers]
        return StateHookBinding(state=value.get("state"), handlers=handlers)
    raise ConfigError(f"Invalid hook binding: {value!r}")


def _as_hook_config(value: Any) -> StateHookConfig:
    if isinstance(value, StateHookConfig):
        return value
    if isinstance(value, Mapping):
        try:
            hook_type = parse_hook_type(value.get("hook_type"))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
        return StateHookConfig(hook_type=hook_type, handler=value.get("handler"))
    raise ConfigError(f"Invalid hook handler configuration: {value!r}")


def as_config(config: Any) -> TypedStateMachineConfig[Any]:
    """Coerce a config object or mapping into a private ``TypedStateMachineConfig``."""
    if config is None:
        raise ConfigError("A state machine configuration is required")
    if isinstance(config, TypedStateMachineConfig):
        return config.snapshot()
    if isinstance(config, Mapping):
        return TypedStateMachineConfig.from_mapping(config)
    raise ConfigError(
        f"Unsupported configuration type: {type(config).__name__}",
        context={"type": type(config).__name__},
    )


def config_changes(changes: Optional[Mapping[str, Any]], extra: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(changes or {})
    merged.update(extra)
    return merged


__all__ = ["TypedStateMachineConfig", "as_config", "config_changes"]
