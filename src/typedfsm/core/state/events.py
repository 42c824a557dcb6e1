"""Fluent helper to fire optional event callbacks.

Example:
    EventsBuilder.bind(config.on_state_enter).to_args(machine, state).fire_if(options.fire_events)
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Tuple


class EventBuilderConfig:
    """A single event: a (possibly missing) handler and the arguments to call it with."""

    def __init__(self, event_handler: Optional[Callable[..., Any]]) -> None:
        self._event_handler = event_handler
        self._args: Tuple[Any, ...] = ()

    def to_args(self, *args: Any) -> "EventBuilderConfig":
        """Associate the arguments the handler will be called with."""
        self._args = args
        return self

    def fire_if(self, condition: Any) -> None:
        """Fire the handler only if ``condition`` is truthy."""
        if condition:
            self.fire()

    def fire(self) -> None:
        """Fire the handler with the stored arguments; no-op when it is not callable."""
        if callable(self._event_handler):
            self._event_handler(*self._args)


class EventsBuilder:
    def __init__(self) -> None:
        raise TypeError("EventsBuilder cannot be instantiated; use EventsBuilder.bind()")

    @staticmethod
    def bind(event_handler: Optional[Callable[..., Any]]) -> EventBuilderConfig:
        return EventBuilderConfig(event_handler)


__all__ = ["EventsBuilder", "EventBuilderConfig"]
