from __future__ import annotations

from typing import Any, Callable, List, Sequence

from .models import StateInfo, Transition


def collect_states(transitions: Sequence[Transition[Any]]) -> List[Any]:
    """Return every state named by ``transitions`` in first-seen order.

    States are compared with ``==`` so they do not need to be hashable.
    """
    states: List[Any] = []
    for transition in transitions:
        for state in (*transition.sources(), *transition.targets()):
            if not any(known == state for known in states):
                states.append(state)
    return states


def project_states(
    transitions: Sequence[Transition[Any]],
    current: Any,
    can: Callable[[Any], bool],
) -> List[StateInfo[Any]]:
    """Build a ``StateInfo`` for every state named by ``transitions``.

    States keep their first-seen order and appear once, however many
    transitions name them.
    """
    return [
        StateInfo(state=state, reachable=bool(can(state)), current=bool(state == current))
        for state in collect_states(transitions)
    ]


__all__ = ["collect_states", "project_states"]
