"""Per-state hook bindings and hook result aggregation.

Hooks live in the machine configuration as a list of ``StateHookBinding``
objects (one per state, each holding at most one handler per hook type when
managed through ``bind_hook_handler``).

A hook handler may return a plain value or an awaitable. ``invoke_hooks``
calls every handler bound to a ``(state, hook_type)`` pair and packs the
outcome into a ``HookResult``:

- the synchronous values, already folded with logical AND, and
- the awaitables that still have to be resolved.

Synchronous callers use ``HookResult.resolve_sync()``, which refuses pending
awaitables; asynchronous callers ``await HookResult.resolve()``.
"""
from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Iterator, List, Optional, Sequence, Tuple

from ..exceptions import AsyncHookError
from .models import (
    HookHandler,
    StateHookBinding,
    StateHookConfig,
    StateHookType,
    as_state_tuple,
)


@dataclass(frozen=True)
class HookResult:
    """Outcome of invoking the hooks of one lifecycle phase."""

    value: bool = True
    pending: Tuple[Awaitable[Any], ...] = ()

    def resolve_sync(self) -> bool:
        """Return the aggregated result, refusing awaitable hook results.

        Raises:
            AsyncHookError: If any handler returned an awaitable.
        """
        if self.pending:
            self.discard()
            raise AsyncHookError(
                "A hook returned an awaitable during a synchronous transition; "
                "use the *_async entry points instead"
            )
        return self.value

    async def resolve(self) -> bool:
        """Await every pending result and AND it with the synchronous ones.

        If one awaitable fails (or the caller is cancelled), the others are
        cancelled and awaited before the error propagates.
        """
        if not self.pending:
            return self.value
        futures = [asyncio.ensure_future(awaitable) for awaitable in self.pending]
        try:
            results = await asyncio.gather(*futures)
        except BaseException:
            for future in futures:
                future.cancel()
            await asyncio.gather(*futures, return_exceptions=True)
            raise
        return self.value and all(bool(r) for r in results)

    def discard(self) -> None:
        """Close pending coroutines that will never be awaited."""
        for awaitable in self.pending:
            if inspect.iscoroutine(awaitable):
                awaitable.close()


def collect_hook_handlers(
    hooks: Optional[Sequence[StateHookBinding[Any]]],
    state: Any,
    hook_type: StateHookType,
) -> Iterator[HookHandler]:
    """Yield the handlers bound to ``(state, hook_type)`` in declaration order."""
    for binding in hooks or ():
        if binding.state != state:
            continue
        for handler_config in binding.handlers or ():
            if handler_config.hook_type == hook_type:
                yield handler_config.handler


def invoke_hooks(
    hooks: Optional[Sequence[StateHookBinding[Any]]],
    state: Any,
    hook_type: StateHookType,
    machine: Any,
) -> HookResult:
    """Call every handler bound to ``(state, hook_type)`` with ``machine``.

    With no handler bound the result is ``True``.
    """
    value = True
    pending: List[Awaitable[Any]] = []
    for handler in collect_hook_handlers(hooks, state, hook_type):
        result = handler(machine)
        if inspect.isawaitable(result):
            pending.append(result)
        else:
            value = value and bool(result)
    return HookResult(value=value, pending=tuple(pending))


def bind_hook_handler(
    hooks: Optional[List[StateHookBinding[Any]]],
    states: Any,
    hook_type: StateHookType,
    handler: HookHandler,
) -> List[StateHookBinding[Any]]:
    """Bind ``handler`` to ``hook_type`` for each of ``states``.

    An existing handler for the same ``(state, hook_type)`` pair is replaced;
    otherwise it is appended to the state's binding, which is created when
    missing. ``hooks`` is updated in place; when it is ``None`` a new list is
    created. The resulting list is returned.
    """
    bindings = hooks if hooks is not None else []
    new_config = StateHookConfig(hook_type=hook_type, handler=handler)

    for state in as_state_tuple(states):
        binding = next((b for b in bindings if b.state == state), None)
        if binding is None:
            bindings.append(StateHookBinding(state=state, handlers=[new_config]))
            continue

        if binding.handlers is None:
            binding.handlers = []

        for index, existing in enumerate(binding.handlers):
            if existing.hook_type == hook_type:
                binding.handlers[index] = new_config
                break
        else:
            binding.handlers.append(new_config)

    return bindings


__all__ = [
    "HookResult",
    "collect_hook_handlers",
    "invoke_hooks",
    "bind_hook_handler",
]
