from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from typedfsm import InvalidTargetError, StateHookType, Transition

from helpers.states import Letter, ThreadState, make_thread_machine


def test_goto_bypasses_declared_transitions() -> None:
    on_invalid = Mock()
    machine = make_thread_machine(on_invalid_transition=on_invalid)

    assert machine.goto(ThreadState.TERMINATED) is None

    assert machine.get_state() is ThreadState.TERMINATED
    on_invalid.assert_not_called()


def test_goto_ignores_hook_vetoes() -> None:
    hook = Mock(return_value=False)
    machine = make_thread_machine()
    for hook_type in StateHookType:
        machine.bind_hook_handler([ThreadState.NEW, ThreadState.WAITING], hook_type, hook)

    machine.goto(ThreadState.WAITING)

    assert hook.call_count == 4
    assert machine.get_state() is ThreadState.WAITING


def test_goto_uses_declared_transition_callbacks_when_one_resolves() -> None:
    on_after = Mock()
    machine = make_thread_machine(
        initial_state=Letter.A,  # type: ignore[arg-type]
        transitions=[Transition(source=Letter.A, target=Letter.B, on_after_transition=on_after)],
    )

    machine.goto(Letter.B)

    on_after.assert_called_once_with(machine)


def test_goto_fires_global_events() -> None:
    on_leave, on_enter = Mock(), Mock()
    machine = make_thread_machine(on_state_leave=on_leave, on_state_enter=on_enter)
    on_enter.reset_mock()

    machine.goto(ThreadState.RUNNING)

    on_leave.assert_called_once_with(machine, ThreadState.NEW)
    on_enter.assert_called_once_with(machine, ThreadState.RUNNING)


def test_goto_none_fails_loudly() -> None:
    machine = make_thread_machine()
    with pytest.raises(InvalidTargetError):
        machine.goto(None)  # type: ignore[arg-type]


def test_goto_async_awaits_hooks() -> None:
    async def deny(m):
        return False

    machine = make_thread_machine()
    machine.bind_hook_handler(ThreadState.TERMINATED, StateHookType.ON_BEFORE_ENTER, deny)

    assert asyncio.run(machine.goto_async(ThreadState.TERMINATED)) is None
    assert machine.get_state() is ThreadState.TERMINATED
