"""Ordering of events and hooks, and hook vetoes during a transition."""
from __future__ import annotations

import asyncio

import pytest

from typedfsm import AsyncHookError, StateHookType, Transition

from helpers.states import Letter, make_thread_machine


def _recording_machine(calls, **config):
    machine = make_thread_machine(
        initial_state=Letter.A,  # type: ignore[arg-type]
        transitions=[
            Transition(
                source=Letter.A,
                target=Letter.B,
                name="first",
                on_before_transition=lambda m: calls.append("before_transition"),
                on_after_transition=lambda m: calls.append("after_transition"),
            )
        ],
        on_before_every_transition=lambda m: calls.append("before_every"),
        on_after_every_transition=lambda m: calls.append("after_every"),
        on_state_leave=lambda m, s: calls.append(("leave", s)),
        on_state_enter=lambda m, s: calls.append(("enter", s)),
        **config,
    )
    calls.clear()
    return machine


def _bind(machine, state, hook_type, calls, result=True):
    def hook(m):
        calls.append(hook_type.value)
        return result

    machine.bind_hook_handler(state, hook_type, hook)


def test_full_pipeline_order() -> None:
    calls = []
    machine = _recording_machine(calls)
    _bind(machine, Letter.A, StateHookType.ON_BEFORE_LEAVE, calls)
    _bind(machine, Letter.A, StateHookType.ON_AFTER_LEAVE, calls)
    _bind(machine, Letter.B, StateHookType.ON_BEFORE_ENTER, calls)
    _bind(machine, Letter.B, StateHookType.ON_AFTER_ENTER, calls)

    assert machine.transit(Letter.B) is True

    assert calls == [
        "before_every",
        "before_transition",
        "on_before_leave",
        ("leave", Letter.A),
        "on_after_leave",
        "on_before_enter",
        ("enter", Letter.B),
        "on_after_enter",
        "after_transition",
        "after_every",
    ]


def test_state_is_cleared_between_leave_and_enter() -> None:
    seen = []
    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_AFTER_LEAVE, lambda m: seen.append(m._state) or True)
    machine.bind_hook_handler(Letter.B, StateHookType.ON_AFTER_ENTER, lambda m: seen.append(m._state) or True)

    machine.transit(Letter.B)

    assert seen == [None, Letter.B]


def test_before_leave_veto_keeps_current_state() -> None:
    calls = []
    machine = _recording_machine(calls)
    _bind(machine, Letter.A, StateHookType.ON_BEFORE_LEAVE, calls, result=False)

    assert machine.transit(Letter.B) is False

    assert machine.get_state() is Letter.A
    assert calls == ["before_every", "before_transition", "on_before_leave"]
    assert not machine.is_pending()


@pytest.mark.parametrize(
    "state, hook_type",
    [
        (Letter.A, StateHookType.ON_AFTER_LEAVE),
        (Letter.B, StateHookType.ON_BEFORE_ENTER),
    ],
)
def test_veto_inside_leave_enter_window_leaves_no_state(state, hook_type) -> None:
    calls = []
    machine = _recording_machine(calls)
    _bind(machine, state, hook_type, calls, result=False)

    assert machine.transit(Letter.B) is False

    assert machine.get_state() is None
    assert ("enter", Letter.B) not in calls
    assert "after_every" not in calls


def test_after_enter_veto_keeps_committed_state() -> None:
    calls = []
    machine = _recording_machine(calls)
    _bind(machine, Letter.B, StateHookType.ON_AFTER_ENTER, calls, result=False)

    assert machine.transit(Letter.B) is False

    assert machine.get_state() is Letter.B
    assert calls[-1] == "on_after_enter"
    assert "after_transition" not in calls


def test_hooks_of_unrelated_states_are_not_invoked() -> None:
    calls = []
    machine = _recording_machine(calls)
    _bind(machine, Letter.C, StateHookType.ON_BEFORE_ENTER, calls, result=False)

    assert machine.transit(Letter.B) is True
    assert "on_before_enter" not in calls


def test_exception_in_hook_clears_pending_flag() -> None:
    def boom(machine):
        raise RuntimeError("boom")

    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_BEFORE_LEAVE, boom)

    with pytest.raises(RuntimeError, match="boom"):
        machine.transit(Letter.B)

    assert not machine.is_pending()
    assert machine.get_state() is Letter.A


def test_sync_transit_rejects_async_hooks() -> None:
    async def leave(machine):
        return True

    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_BEFORE_LEAVE, leave)

    with pytest.raises(AsyncHookError):
        machine.transit(Letter.B)
    assert not machine.is_pending()


def test_transit_async_awaits_hooks_in_order() -> None:
    calls = []
    machine = _recording_machine(calls)

    async def leave(m):
        await asyncio.sleep(0)
        calls.append("on_before_leave")
        return True

    async def enter(m):
        await asyncio.sleep(0)
        calls.append("on_after_enter")
        return True

    machine.bind_hook_handler(Letter.A, StateHookType.ON_BEFORE_LEAVE, leave)
    machine.bind_hook_handler(Letter.B, StateHookType.ON_AFTER_ENTER, enter)

    assert asyncio.run(machine.transit_async(Letter.B)) is True

    assert calls == [
        "before_every",
        "before_transition",
        "on_before_leave",
        ("leave", Letter.A),
        ("enter", Letter.B),
        "on_after_enter",
        "after_transition",
        "after_every",
    ]


def test_transit_async_mixes_sync_and_async_hooks() -> None:
    async def deny(m):
        return False

    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_BEFORE_LEAVE, lambda m: True)
    machine.bind_hook_handler(Letter.B, StateHookType.ON_BEFORE_ENTER, deny)

    assert asyncio.run(machine.transit_async(Letter.B)) is False
    assert machine.get_state() is None


def test_transit_async_before_leave_veto() -> None:
    async def deny(m):
        await asyncio.sleep(0)
        return False

    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_BEFORE_LEAVE, deny)

    assert asyncio.run(machine.transit_async(Letter.B)) is False
    assert machine.get_state() is Letter.A


def test_failing_async_hook_stops_sibling_hooks() -> None:
    events = []

    async def fail(m):
        raise RuntimeError("boom")

    async def slow(m):
        await asyncio.sleep(0.05)
        events.append("sibling finished")
        return True

    machine = _recording_machine([])
    machine.bind_hook_handler(Letter.A, StateHookType.ON_AFTER_LEAVE, fail)
    machine.update_config(hooks=machine.get_config().hooks + [
        # A second binding for the same state and phase runs alongside ``fail``.
        {"state": Letter.A, "handlers": [{"hook_type": "on_after_leave", "handler": slow}]},
    ])

    async def scenario():
        with pytest.raises(RuntimeError, match="boom"):
            await machine.transit_async(Letter.B)
        events.append("transit_async raised")
        await asyncio.sleep(0.1)

    asyncio.run(scenario())

    assert events == ["transit_async raised"]
    assert not machine.is_pending()


@pytest.mark.parametrize(
    "state, hook_type",
    [
        (Letter.A, StateHookType.ON_BEFORE_LEAVE),
        (Letter.A, StateHookType.ON_AFTER_LEAVE),
        (Letter.B, StateHookType.ON_BEFORE_ENTER),
        (Letter.B, StateHookType.ON_AFTER_ENTER),
    ],
)
def test_sync_transit_with_async_hook_restores_previous_state(state, hook_type) -> None:
    async def hook(m):
        return True

    machine = _recording_machine([])
    machine.bind_hook_handler(state, hook_type, hook)

    with pytest.raises(AsyncHookError):
        machine.transit(Letter.B)

    assert machine.get_state() is Letter.A
    assert not machine.is_pending()
    assert asyncio.run(machine.transit_async(Letter.B)) is True
    assert machine.get_state() is Letter.B
