"""Value types shared by the transition engine.

States are opaque caller values compared with ``==``. Inside a transition a
``list`` or ``tuple`` always denotes several states, never a single one.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, TypeVar, Union

S = TypeVar("S")

GenericEventHandler = Callable[[Any], None]
StateEventHandler = Callable[[Any, Any], None]
TransitionEventHandler = Callable[[Any, Any, Any], None]
HookHandler = Callable[[Any], Union[bool, Awaitable[bool]]]


def is_multi_state(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def as_state_tuple(value: Any) -> Tuple[Any, ...]:
    """Normalize a single state or a sequence of states to a tuple."""
    if is_multi_state(value):
        return tuple(value)
    return (value,)


def _freeze(value: Any) -> Any:
    return tuple(value) if is_multi_state(value) else value


def _render(value: Any) -> str:
    if is_multi_state(value):
        return "[" + ",".join(_state_text(s) for s in value) + "]"
    return _state_text(value)


def _state_text(state: Any) -> str:
    if isinstance(state, Enum):
        return str(state.value)
    return str(state)


class StateHookType(str, Enum):
    """Lifecycle phases a per-state hook can be bound to."""

    ON_BEFORE_LEAVE = "on_before_leave"
    ON_AFTER_LEAVE = "on_after_leave"
    ON_BEFORE_ENTER = "on_before_enter"
    ON_AFTER_ENTER = "on_after_enter"


def parse_hook_type(raw: Any) -> StateHookType:
    if isinstance(raw, StateHookType):
        return raw
    v = str(raw or "").strip().lower()
    for hook_type in StateHookType:
        if v == hook_type.value:
            return hook_type
    expected = ", ".join(h.value for h in StateHookType)
    raise ValueError(f"Invalid hook type: {raw} (expected one of: {expected})")


@dataclass(frozen=True)
class Transition(Generic[S]):
    """A declared edge-set from ``source`` state(s) to ``target`` state(s).

    Sequences are frozen into tuples so a transition never changes after
    construction. ``on_before_transition`` and ``on_after_transition`` receive
    the machine when this transition is taken.
    """

    source: Any
    target: Any
    name: Optional[str] = None
    on_before_transition: Optional[GenericEventHandler] = field(default=None, compare=False)
    on_after_transition: Optional[GenericEventHandler] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", _freeze(self.source))
        object.__setattr__(self, "target", _freeze(self.target))

    def sources(self) -> Tuple[Any, ...]:
        return as_state_tuple(self.source)

    def targets(self) -> Tuple[Any, ...]:
        return as_state_tuple(self.target)

    def leads_from(self, state: Any) -> bool:
        """Return True when ``state`` is one of this transition's sources."""
        return any(s == state for s in self.sources())

    def leads_to(self, state: Any) -> bool:
        """Return True when ``state`` is one of this transition's targets."""
        return any(s == state for s in self.targets())

    def __str__(self) -> str:
        text = f"{_render(self.source)}->{_render(self.target)}"
        if self.name:
            text += f" ({self.name})"
        return text


@dataclass
class StateInfo(Generic[S]):
    state: S
    reachable: bool = False
    current: bool = False


@dataclass(frozen=True)
class StateHookConfig:
    """A handler bound to one lifecycle phase of a state.

    The handler receives the machine and returns a truthy value (or an
    awaitable resolving to one) to let the transition proceed.
    """

    hook_type: StateHookType
    handler: HookHandler


@dataclass
class StateHookBinding(Generic[S]):
    """The hook handlers of a single state."""

    state: S
    handlers: Optional[List[StateHookConfig]] = field(default_factory=list)

    def copy(self) -> "StateHookBinding[S]":
        handlers = list(self.handlers) if self.handlers is not None else None
        return StateHookBinding(state=self.state, handlers=handlers)


@dataclass(frozen=True)
class TransitOptions:
    """Switches applied to one run of the transition pipeline.

    Attributes:
        fire_events: Fire global and per-transition events
            (``on_before_every_transition``, ``on_before_transition``,
            ``on_state_leave``, ``on_state_enter``, ``on_after_transition``,
            ``on_after_every_transition``, ``on_invalid_transition``).
        invoke_hooks: Invoke per-state hooks.
        ignore_hooks_results: Invoke hooks but never let a falsy result
            abort the transition.
    """

    fire_events: bool = True
    invoke_hooks: bool = True
    ignore_hooks_results: bool = False


DEFAULT_TRANSIT_OPTIONS = TransitOptions()


__all__ = [
    "S",
    "GenericEventHandler",
    "StateEventHandler",
    "TransitionEventHandler",
    "HookHandler",
    "StateHookType",
    "StateHookConfig",
    "StateHookBinding",
    "StateInfo",
    "Transition",
    "TransitOptions",
    "DEFAULT_TRANSIT_OPTIONS",
    "as_state_tuple",
    "is_multi_state",
    "parse_hook_type",
]
