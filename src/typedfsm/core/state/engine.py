"""Typed finite state machine engine.

A transition runs through a fixed pipeline of events and hooks:

1. ``on_before_every_transition`` then the transition's ``on_before_transition``
2. ``ON_BEFORE_LEAVE`` hook of the current state (veto keeps the current state)
3. ``on_state_leave``; the machine has no state until step 6
4. ``ON_AFTER_LEAVE`` hook of the old state (veto leaves the machine stateless)
5. ``ON_BEFORE_ENTER`` hook of the new state (veto leaves the machine stateless)
6. commit of the new state, then ``on_state_enter``
7. ``ON_AFTER_ENTER`` hook of the new state (veto reports failure, state stays)
8. the transition's ``on_after_transition`` then ``on_after_every_transition``

The pipeline is a generator yielding ``HookResult`` values. The synchronous
entry points resolve them with ``HookResult.resolve_sync()``; the ``*_async``
entry points await them. Only one pipeline may run at a time per machine.
"""
from __future__ import annotations

import logging
from typing import Any, Generator, Generic, List, Mapping, Optional

from ..config.machine import TypedStateMachineConfig, as_config, config_changes
from ..exceptions import (
    AlreadyInitializedError,
    AsyncHookError,
    HookVetoError,
    InvalidTargetError,
    NotInitializedError,
    TransitionPendingError,
    UnknownTransitionError,
)
from .events import EventsBuilder
from .hooks import HookResult, bind_hook_handler, invoke_hooks
from .models import (
    DEFAULT_TRANSIT_OPTIONS,
    HookHandler,
    S,
    StateHookType,
    StateInfo,
    Transition,
    TransitOptions,
)
from .reachability import project_states

logger = logging.getLogger(__name__)

# Yields hook results, receives their resolved value, returns the pipeline result.
Pipeline = Generator[HookResult, bool, Any]

_GOTO_OPTIONS = TransitOptions(ignore_hooks_results=True)


class TypedStateMachine(Generic[S]):
    """A strongly typed state machine.

    Example:
        machine = TypedStateMachine(TypedStateMachineConfig(
            initial_state=Light.RED,
            transitions=[Transition(source=Light.RED, target=Light.GREEN, name="go")],
        )).initialize()
        machine.transit(Light.GREEN)
    """

    def __init__(self, config: TypedStateMachineConfig[S] | Mapping[str, Any]) -> None:
        """Create a machine from a config object or mapping.

        The configuration is copied; later changes to the caller's objects do
        not affect the machine.

        Raises:
            ConfigError: If the configuration or its initial state is missing.
        """
        self._config: TypedStateMachineConfig[S] = as_config(config)
        self._state: Optional[S] = None
        self._initialized = False
        self._pending = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def can_self_loop(self) -> bool:
        return self._config.can_self_loop

    def is_initialized(self) -> bool:
        return self._initialized

    def is_pending(self) -> bool:
        """Return True while a transition pipeline is running."""
        return self._pending

    def get_state(self) -> Optional[S]:
        """Return the current state.

        Returns None only when a previous transition was vetoed after the old
        state had been left.

        Raises:
            NotInitializedError: Before ``initialize()``.
            TransitionPendingError: While a transition is running.
        """
        self._ensure_initialized()
        if self._pending:
            raise TransitionPendingError(
                "Cannot read the state while a transition is pending",
                context={"state": self._state},
            )
        return self._state

    def get_config(self) -> TypedStateMachineConfig[S]:
        """Return a copy of the current configuration."""
        return self._config.snapshot()

    def update_config(self, changes: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
        """Shallow-merge ``changes`` (and keyword ``fields``) into the configuration.

        Raises:
            ConfigError: On unknown fields or a missing initial state.
        """
        self._config = self._config.merged(config_changes(changes, fields))

    def get_all_transitions(self) -> List[Transition[S]]:
        """Return a copy of the declared transitions."""
        self._ensure_initialized()
        return list(self._config.transitions)

    def get_all_states(self) -> List[StateInfo[S]]:
        """Return every state named by a transition with reachability flags."""
        self._ensure_initialized()
        return project_states(self._config.transitions, self._state, self.can)

    def get_next_states(self) -> List[S]:
        """Return the states reachable from the current one, in discovery order."""
        return [info.state for info in self.get_all_states() if info.reachable]

    def get_transition(self, state: S) -> Optional[Transition[S]]:
        """Return the first declared transition from the current state to ``state``."""
        for transition in self._config.transitions:
            if transition.leads_from(self._state) and transition.leads_to(state):
                return transition
        return None

    def can(self, state: S) -> bool:
        """Return True if a transition from the current state to ``state`` is allowed.

        Raises:
            NotInitializedError: Before ``initialize()``.
        """
        self._ensure_initialized()
        if self._config.can_self_loop and state == self._state:
            return True
        return self.get_transition(state) is not None

    def is_self_loop(self, state: S) -> bool:
        """Return True if ``state`` is the current state and no transition declares it."""
        return self.get_transition(state) is None and state == self._state

    def bind_hook_handler(self, states: Any, hook_type: StateHookType, handler: HookHandler) -> None:
        """Bind ``handler`` to ``hook_type`` for one state or a list of states.

        A handler already bound to the same state and hook type is replaced.
        """
        self._config.hooks = bind_hook_handler(self._config.hooks, states, hook_type, handler)

    # ------------------------------------------------------------------
    # Synchronous entry points
    # ------------------------------------------------------------------
    def initialize(self, options: Optional[TransitOptions] = None) -> "TypedStateMachine[S]":
        """Enter the initial state, firing its enter hooks and events.

        Raises:
            AlreadyInitializedError: If the machine is already initialized.
            HookVetoError: If the initial ``ON_BEFORE_ENTER`` hook vetoes.
            AsyncHookError: If a hook returns an awaitable.
        """
        self._ensure_can_initialize()
        return self._run(self._initialize_steps(options or DEFAULT_TRANSIT_OPTIONS))

    def transit(self, state: S) -> bool:
        """Transit to ``state`` if a transition allows it.

        Returns:
            True when the transition completed, False when it does not exist or
            a hook vetoed it.

        Raises:
            InvalidTargetError: If ``state`` is None.
            TransitionPendingError: If another transition is running.
            NotInitializedError: Before ``initialize()``.
            AsyncHookError: If a hook returns an awaitable.
        """
        transition = self._prepare_transit(state)
        if transition is None:
            return False
        return self._run(self._transition_steps(transition, state, DEFAULT_TRANSIT_OPTIONS))

    def transit_by_name(self, name: str) -> bool:
        """Transit through the first applicable transition called ``name``.

        Raises:
            UnknownTransitionError: If no transition is called ``name``.
        """
        target = self._resolve_named_target(name)
        if target is None:
            return False
        return self.transit(target)

    def goto(self, state: S) -> None:
        """Move to ``state`` without checking the declared transitions.

        Hooks are invoked but cannot veto.
        """
        transition = self._prepare_goto(state)
        self._run(self._transition_steps(transition, state, _GOTO_OPTIONS))

    # ------------------------------------------------------------------
    # Asynchronous entry points
    # ------------------------------------------------------------------
    async def initialize_async(self, options: Optional[TransitOptions] = None) -> "TypedStateMachine[S]":
        """Async variant of ``initialize()``; hooks may return awaitables."""
        self._ensure_can_initialize()
        return await self._run_async(self._initialize_steps(options or DEFAULT_TRANSIT_OPTIONS))

    async def transit_async(self, state: S) -> bool:
        """Async variant of ``transit()``; hooks may return awaitables."""
        transition = self._prepare_transit(state)
        if transition is None:
            return False
        return await self._run_async(self._transition_steps(transition, state, DEFAULT_TRANSIT_OPTIONS))

    async def transit_by_name_async(self, name: str) -> bool:
        """Async variant of ``transit_by_name()``."""
        target = self._resolve_named_target(name)
        if target is None:
            return False
        return await self.transit_async(target)

    async def goto_async(self, state: S) -> None:
        """Async variant of ``goto()``."""
        transition = self._prepare_goto(state)
        await self._run_async(self._transition_steps(transition, state, _GOTO_OPTIONS))

    # ------------------------------------------------------------------
    # Guards and resolution
    # ------------------------------------------------------------------
    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise NotInitializedError("The state machine is not initialized; call initialize() first")

    def _ensure_not_pending(self) -> None:
        if self._pending:
            raise TransitionPendingError(
                "A transition is already pending",
                context={"state": self._state},
            )

    def _ensure_can_initialize(self) -> None:
        if self._initialized:
            raise AlreadyInitializedError("The state machine is already initialized")
        self._ensure_not_pending()

    def _ensure_can_transit(self, state: Any) -> None:
        if state is None:
            raise InvalidTargetError("The destination state must not be None")
        self._ensure_not_pending()
        self._ensure_initialized()

    def _prepare_transit(self, state: S) -> Optional[Transition[S]]:
        self._ensure_can_transit(state)
        transition = self.get_transition(state)
        if transition is None and self._config.can_self_loop and self.is_self_loop(state):
            transition = Transition(source=state, target=state)
        if transition is None:
            self._report_invalid(state, DEFAULT_TRANSIT_OPTIONS)
        return transition

    def _prepare_goto(self, state: S) -> Transition[S]:
        self._ensure_can_transit(state)
        transition = self.get_transition(state)
        if transition is None:
            transition = Transition(source=self._state, target=state)
        return transition

    def _resolve_named_target(self, name: str) -> Optional[S]:
        self._ensure_not_pending()
        self._ensure_initialized()
        named = [t for t in self._config.transitions if t.name == name]
        if not named:
            raise UnknownTransitionError(
                f"The supplied transition name does not exist: {name}",
                context={"name": name},
            )
        for transition in named:
            for candidate in transition.targets():
                if self.can(candidate):
                    return candidate
        logger.debug("No transition named %r applies to state %r", name, self._state)
        self._report_invalid(None, DEFAULT_TRANSIT_OPTIONS)
        return None

    def _report_invalid(self, target: Optional[S], options: TransitOptions) -> None:
        logger.debug("Invalid transition %r -> %r", self._state, target)
        (
            EventsBuilder.bind(self._config.on_invalid_transition)
            .to_args(self, self._state, target)
            .fire_if(options.fire_events)
        )

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------
    def _vetoed(self, ok: bool, options: TransitOptions) -> bool:
        return not ok and not options.ignore_hooks_results

    def _hooks(self, state: Any, hook_type: StateHookType) -> HookResult:
        return invoke_hooks(self._config.hooks, state, hook_type, self)

    def _abort(self, state: Any, hook_type: StateHookType) -> bool:
        logger.debug("Transition vetoed by %s hook of state %r", hook_type.value, state)
        self._pending = False
        return False

    def _initialize_steps(self, options: TransitOptions) -> Pipeline:
        config = self._config
        initial = config.initial_state
        self._pending = True

        EventsBuilder.bind(config.on_before_every_transition).to_args(self).fire_if(options.fire_events)

        if options.invoke_hooks:
            ok = yield self._hooks(initial, StateHookType.ON_BEFORE_ENTER)
            if self._vetoed(ok, options):
                self._pending = False
                raise HookVetoError(
                    f"The {StateHookType.ON_BEFORE_ENTER.value} hook of the initial state vetoed initialization",
                    state=initial,
                    hook_type=StateHookType.ON_BEFORE_ENTER.value,
                )

        self._state = initial
        self._initialized = True
        logger.debug("Initialized in state %r", initial)

        EventsBuilder.bind(config.on_state_enter).to_args(self, initial).fire_if(options.fire_events)

        if options.invoke_hooks:
            ok = yield self._hooks(initial, StateHookType.ON_AFTER_ENTER)
            if self._vetoed(ok, options):
                logger.warning(
                    "The %s hook of the initial state %r returned a falsy value; "
                    "initialization cannot be rolled back",
                    StateHookType.ON_AFTER_ENTER.value,
                    initial,
                )

        EventsBuilder.bind(config.on_after_every_transition).to_args(self).fire_if(options.fire_events)

        self._pending = False
        return self

    def _transition_steps(self, transition: Transition[S], target: S, options: TransitOptions) -> Pipeline:
        config = self._config
        current = self._state
        self._pending = True
        logger.debug("Transition %s: %r -> %r", transition, current, target)

        EventsBuilder.bind(config.on_before_every_transition).to_args(self).fire_if(options.fire_events)
        EventsBuilder.bind(transition.on_before_transition).to_args(self).fire_if(options.fire_events)

        if options.invoke_hooks:
            ok = yield self._hooks(current, StateHookType.ON_BEFORE_LEAVE)
            if self._vetoed(ok, options):
                return self._abort(current, StateHookType.ON_BEFORE_LEAVE)

        EventsBuilder.bind(config.on_state_leave).to_args(self, current).fire_if(options.fire_events)
        self._state = None

        if options.invoke_hooks:
            ok = yield self._hooks(current, StateHookType.ON_AFTER_LEAVE)
            if self._vetoed(ok, options):
                return self._abort(current, StateHookType.ON_AFTER_LEAVE)

            ok = yield self._hooks(target, StateHookType.ON_BEFORE_ENTER)
            if self._vetoed(ok, options):
                return self._abort(target, StateHookType.ON_BEFORE_ENTER)

        self._state = target
        logger.debug("Entered state %r", target)

        EventsBuilder.bind(config.on_state_enter).to_args(self, target).fire_if(options.fire_events)

        if options.invoke_hooks:
            ok = yield self._hooks(target, StateHookType.ON_AFTER_ENTER)
            if self._vetoed(ok, options):
                # The new state is already committed and stays in place.
                return self._abort(target, StateHookType.ON_AFTER_ENTER)

        EventsBuilder.bind(transition.on_after_transition).to_args(self).fire_if(options.fire_events)
        EventsBuilder.bind(config.on_after_every_transition).to_args(self).fire_if(options.fire_events)

        self._pending = False
        return True

    def _run(self, steps: Pipeline) -> Any:
        state, initialized = self._state, self._initialized
        try:
            outcome = next(steps)
            while True:
                outcome = steps.send(outcome.resolve_sync())
        except StopIteration as stop:
            return stop.value
        except AsyncHookError:
            # Misuse of the sync API is not a veto: put the machine back where it was.
            self._state, self._initialized = state, initialized
            self._pending = False
            steps.close()
            raise
        except BaseException:
            self._pending = False
            steps.close()
            raise

    async def _run_async(self, steps: Pipeline) -> Any:
        try:
            outcome = next(steps)
            while True:
                outcome = steps.send(await outcome.resolve())
        except StopIteration as stop:
            return stop.value
        except BaseException:
            self._pending = False
            steps.close()
            raise


__all__ = ["TypedStateMachine"]
