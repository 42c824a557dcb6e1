"""Declarative machine definitions.

A definition is a YAML document (or an equivalent mapping) validated against
the bundled ``machine.schema.yaml``. Callables are referenced by name and
resolved through a ``HandlerRegistry``; raw state values can be converted
with ``state_type`` (typically an ``Enum`` class).

Example:
    initial_state: new
    transitions:
      - {from: new, to: ready, name: wake_up}
    hooks:
      - state: new
        handlers:
          - {hook_type: on_before_leave, handler: confirm_leave}
    events:
      on_invalid_transition: report_invalid
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

import yaml

from ..exceptions import ConfigError
from ..schemas.validation import validate_payload
from ..state.handlers import HandlerRegistry, registry as default_registry
from ..state.models import StateHookBinding, StateHookConfig, Transition, parse_hook_type
from ..utils.io import read_yaml
from .machine import TypedStateMachineConfig

if TYPE_CHECKING:
    from ..state.engine import TypedStateMachine

logger = logging.getLogger(__name__)

MACHINE_SCHEMA = "machine.schema.yaml"

StateConverter = Callable[[Any], Any]


def _state_converter(state_type: Optional[Any]) -> StateConverter:
    if state_type is None:
        return lambda raw: raw

    def convert(raw: Any) -> Any:
        if isinstance(state_type, type) and isinstance(raw, state_type):
            return raw
        try:
            return state_type(raw)
        except (ValueError, TypeError, KeyError) as exc:
            # Enum members may also be referenced by name.
            if isinstance(state_type, type) and issubclass(state_type, Enum) and isinstance(raw, str):
                try:
                    return state_type[raw]
                except KeyError:
                    pass
            name = getattr(state_type, "__name__", repr(state_type))
            raise ConfigError(
                f"Invalid state value {raw!r} for {name}",
                context={"state": raw, "state_type": name},
            ) from exc

    return convert


def _convert_states(raw: Any, convert: StateConverter) -> Any:
    if isinstance(raw, (list, tuple)):
        return [convert(item) for item in raw]
    return convert(raw)


class _Resolver:
    def __init__(self, handlers: HandlerRegistry, domain: str) -> None:
        self._handlers = handlers
        self._domain = domain

    def __call__(self, name: Optional[str]) -> Optional[Callable[..., Any]]:
        if name is None:
            return None
        return self._handlers.resolve(name, self._domain)


def _build_transitions(raw: List[Mapping[str, Any]], convert: StateConverter, resolve: _Resolver) -> List[Transition[Any]]:
    return [
        Transition(
            source=_convert_states(entry["from"], convert),
            target=_convert_states(entry["to"], convert),
            name=entry.get("name"),
            on_before_transition=resolve(entry.get("on_before_transition")),
            on_after_transition=resolve(entry.get("on_after_transition")),
        )
        for entry in raw
    ]


def _build_hooks(raw: List[Mapping[str, Any]], convert: StateConverter, resolve: _Resolver) -> List[StateHookBinding[Any]]:
    bindings: List[StateHookBinding[Any]] = []
    for entry in raw:
        handlers = entry.get("handlers")
        if handlers is not None:
            handlers = [
                StateHookConfig(
                    hook_type=parse_hook_type(item["hook_type"]),
                    handler=resolve(item["handler"]),
                )
                for item in handlers
            ]
        bindings.append(StateHookBinding(state=convert(entry["state"]), handlers=handlers))
    return bindings


def build_machine_config(
    definition: Mapping[str, Any],
    *,
    state_type: Optional[Any] = None,
    handlers: Optional[HandlerRegistry] = None,
    domain: str = HandlerRegistry.SHARED_DOMAIN,
    schemas_dir: Optional[Path] = None,
) -> TypedStateMachineConfig[Any]:
    """Build a machine configuration from a definition mapping.

    Args:
        definition: Parsed machine definition.
        state_type: Callable (e.g. an ``Enum`` class) converting raw state values.
        handlers: Registry resolving handler names (default: the global registry).
        domain: Registry domain tried before shared handlers.
        schemas_dir: Directory searched for the schema before the bundled one.

    Raises:
        SchemaValidationError: If the definition does not match the schema.
        ConfigError: If a handler name or state value cannot be resolved.
    """
    if not isinstance(definition, Mapping):
        raise ConfigError(
            f"A machine definition must be a mapping, got {type(definition).__name__}",
            context={"type": type(definition).__name__},
        )
    validate_payload(dict(definition), MACHINE_SCHEMA, schemas_dir=schemas_dir)

    convert = _state_converter(state_type)
    resolve = _Resolver(handlers if handlers is not None else default_registry, domain)

    events: Dict[str, Any] = {
        event: resolve(name) for event, name in (definition.get("events") or {}).items()
    }

    config = TypedStateMachineConfig(
        initial_state=convert(definition["initial_state"]),
        transitions=_build_transitions(definition.get("transitions") or [], convert, resolve),
        can_self_loop=bool(definition.get("can_self_loop", False)),
        hooks=_build_hooks(definition.get("hooks") or [], convert, resolve),
        **events,
    )
    logger.debug(
        "Built machine config: initial state %r, %d transition(s), %d hook binding(s)",
        config.initial_state,
        len(config.transitions),
        len(config.hooks or []),
    )
    return config


def load_machine_config(
    path: Path,
    *,
    state_type: Optional[Any] = None,
    handlers: Optional[HandlerRegistry] = None,
    domain: str = HandlerRegistry.SHARED_DOMAIN,
    schemas_dir: Optional[Path] = None,
) -> TypedStateMachineConfig[Any]:
    """Load a machine configuration from a YAML file.

    Raises:
        ConfigError: If the file is missing, not valid YAML, or the definition
            is invalid.
    """
    path = Path(path)
    try:
        definition = read_yaml(path, default=None, raise_on_error=True)
    except FileNotFoundError as exc:
        raise ConfigError(f"Machine definition not found: {path}", context={"path": str(path)}) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc

    if definition is None:
        raise ConfigError(f"Machine definition is empty: {path}", context={"path": str(path)})

    logger.debug("Loaded machine definition from %s", path)
    return build_machine_config(
        definition,
        state_type=state_type,
        handlers=handlers,
        domain=domain,
        schemas_dir=schemas_dir,
    )


def load_machine(
    path: Path,
    *,
    state_type: Optional[Any] = None,
    handlers: Optional[HandlerRegistry] = None,
    domain: str = HandlerRegistry.SHARED_DOMAIN,
    schemas_dir: Optional[Path] = None,
) -> "TypedStateMachine[Any]":
    """Load a YAML definition and return an uninitialized machine."""
    from ..state.engine import TypedStateMachine

    config = load_machine_config(
        path,
        state_type=state_type,
        handlers=handlers,
        domain=domain,
        schemas_dir=schemas_dir,
    )
    return TypedStateMachine(config)


__all__ = [
    "MACHINE_SCHEMA",
    "build_machine_config",
    "load_machine_config",
    "load_machine",
]
