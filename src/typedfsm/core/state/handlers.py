"""Named, domain-aware registry of hook and event handlers.

Declarative machine definitions refer to callables by name. This registry
resolves those names, optionally scoped by a domain so several machines can
share handler names with different implementations.

Example usage:
    registry.register("confirm_leave", confirm_fn, domain="thread")
    registry.register("audit", audit_fn)  # No domain = shared

    registry.get("confirm_leave", domain="thread")  # Returns confirm_fn
    registry.get("audit", domain="thread")  # Falls back to shared audit_fn

    @register_handler("audit")
    def audit(machine):
        ...
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, TypeVar

from ..exceptions import ConfigError

T = TypeVar("T", bound=Callable[..., Any])


class HandlerRegistry:
    """Registry with domain-aware handler lookups.

    Handlers registered under a domain are stored as ``domain:name``. Lookups
    try the domain-specific key first and fall back to the shared handler.

    Attributes:
        SHARED_DOMAIN: Constant for handlers that apply to all domains
    """

    SHARED_DOMAIN = "shared"

    def __init__(self) -> None:
        self._handlers: Dict[str, Callable[..., Any]] = {}

    def _make_key(self, name: str, domain: str = SHARED_DOMAIN) -> str:
        """Create registry key from name and domain."""
        if domain == self.SHARED_DOMAIN:
            return name
        return f"{domain}:{name}"

    def register(self, name: str, handler: Callable[..., Any], domain: str = SHARED_DOMAIN) -> None:
        """Register a handler function."""
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[self._make_key(name, domain)] = handler

    def add(self, name: str, handler: Callable[..., Any], domain: str = SHARED_DOMAIN) -> None:
        """Add a handler function (alias for register)."""
        self.register(name, handler, domain)

    def get(self, name: str, domain: str = SHARED_DOMAIN) -> Optional[Callable[..., Any]]:
        """Get a handler by name, with domain fallback."""
        if domain != self.SHARED_DOMAIN:
            key = self._make_key(name, domain)
            if key in self._handlers:
                return self._handlers[key]
        return self._handlers.get(name)

    def has(self, name: str, domain: str = SHARED_DOMAIN) -> bool:
        """Check if a handler exists."""
        return self.get(name, domain) is not None

    def resolve(self, name: str, domain: str = SHARED_DOMAIN) -> Callable[..., Any]:
        """Get a handler by name or fail.

        Raises:
            ConfigError: If no handler is registered under ``name``.
        """
        handler = self.get(name, domain)
        if handler is None:
            raise ConfigError(
                f"Unknown handler: {name} (domain: {domain})",
                context={"name": name, "domain": domain},
            )
        return handler

    def list_handlers(self, domain: Optional[str] = None) -> Dict[str, Callable[..., Any]]:
        """List all handlers, optionally filtered by domain."""
        if domain is None:
            return dict(self._handlers)

        result: Dict[str, Callable[..., Any]] = {}
        prefix = f"{domain}:"

        for key, handler in self._handlers.items():
            if key.startswith(prefix):
                result[key[len(prefix):]] = handler
            elif ":" not in key and key not in result:
                # Shared handler, unless a domain-specific one was seen first
                result[key] = handler

        return result

    def reset(self) -> None:
        """Clear all handlers."""
        self._handlers.clear()


# Global default registry
registry = HandlerRegistry()


def register_handler(
    name: Optional[str] = None,
    domain: str = HandlerRegistry.SHARED_DOMAIN,
) -> Callable[[T], T]:
    """Decorator registering a function in the default registry.

    Args:
        name: Registered name (default: the function's ``__name__``)
        domain: Domain to register under (default: shared)
    """

    def decorator(func: T) -> T:
        registry.register(name or func.__name__, func, domain=domain)
        return func

    return decorator


__all__ = [
    "HandlerRegistry",
    "registry",
    "register_handler",
]
