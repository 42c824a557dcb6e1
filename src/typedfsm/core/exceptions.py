from __future__ import annotations

from typing import Any, Dict, Mapping


class TypedFsmError(Exception):
    """Base exception for typedfsm."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": {key: _jsonable(value) for key, value in self.context.items()},
        }


def _jsonable(value: Any) -> Any:
    # Exact types only: str/int enum members are rendered as text.
    if value is None or type(value) in (str, int, float, bool):
        return value
    return str(value)


class ConfigError(TypedFsmError, ValueError):
    """Raised when a machine configuration or definition is missing or invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TypedFsmError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class SchemaValidationError(ConfigError):
    """Raised when a machine definition does not match its JSON schema."""


class LifecycleError(TypedFsmError, RuntimeError):
    """Raised when an operation does not fit the machine lifecycle."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TypedFsmError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class NotInitializedError(LifecycleError):
    """Raised when the machine is used before ``initialize()``."""


class AlreadyInitializedError(LifecycleError):
    """Raised when ``initialize()`` is called on an initialized machine."""


class TransitionPendingError(LifecycleError):
    """Raised when a transition is requested while another one is pending."""


class UsageError(TypedFsmError, ValueError):
    """Raised when the engine API is called with unusable arguments."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        TypedFsmError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class UnknownTransitionError(UsageError):
    """Raised when no transition carries the requested name."""


class InvalidTargetError(UsageError):
    """Raised when ``None`` is given as a destination state."""


class AsyncHookError(UsageError):
    """Raised when a synchronous entry point meets an awaitable hook result."""


class HookVetoError(TypedFsmError):
    """Raised when a hook vetoes a step that cannot simply report failure."""

    def __init__(
        self,
        message: str,
        *,
        state: Any = None,
        hook_type: Any = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if state is not None:
            ctx["state"] = state
        if hook_type is not None:
            ctx["hook_type"] = hook_type
        super().__init__(message, context=ctx)


__all__ = [
    "TypedFsmError",
    "ConfigError",
    "SchemaValidationError",
    "LifecycleError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "TransitionPendingError",
    "UsageError",
    "UnknownTransitionError",
    "InvalidTargetError",
    "AsyncHookError",
    "HookVetoError",
]
