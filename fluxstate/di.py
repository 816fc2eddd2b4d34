"""
FluxState DI - Type-Keyed Service Registry
==========================================

A minimal service locator. Services are registered under a type (their own
class by default) either globally or inside a named scope, and looked up by
that type.

```python
registry = ServiceRegistry()
registry.inject(AuthService())
registry.find(AuthService).login("Alice")

registry.inject_scoped(CartService(), "checkout")
registry.find_scoped(CartService, "checkout")
registry.clear_scope("checkout")
```
"""

from typing import Any, Dict, Optional, Type, TypeVar, cast

from .errors import MissingServiceError

S = TypeVar("S")


class ServiceRegistry:
    """Registry of services keyed by type, with optional named scopes."""

    def __init__(self) -> None:
        self._services: Dict[type, Any] = {}
        self._scoped: Dict[str, Dict[type, Any]] = {}

    def inject(self, service: S, as_type: Optional[type] = None) -> S:
        """Register `service` under `as_type` (default: its class) and return it."""
        self._services[as_type or type(service)] = service
        return service

    def inject_scoped(self, service: S, scope: str, as_type: Optional[type] = None) -> S:
        self._scoped.setdefault(scope, {})[as_type or type(service)] = service
        return service

    def find(self, service_type: Type[S]) -> S:
        try:
            return cast(S, self._services[service_type])
        except KeyError:
            raise MissingServiceError(
                f"Service of type {service_type.__name__} not found"
            ) from None

    def find_scoped(self, service_type: Type[S], scope: str) -> S:
        try:
            return cast(S, self._scoped[scope][service_type])
        except KeyError:
            raise MissingServiceError(
                f"Service of type {service_type.__name__} not found in scope {scope!r}"
            ) from None

    def has(self, service_type: type, scope: Optional[str] = None) -> bool:
        if scope is None:
            return service_type in self._services
        return service_type in self._scoped.get(scope, {})

    def clear_scope(self, scope: str) -> None:
        self._scoped.pop(scope, None)

    def reset(self) -> None:
        self._services.clear()
        self._scoped.clear()


_default_registry: Optional[ServiceRegistry] = None


def get_registry() -> ServiceRegistry:
    """Get or create the process-wide ServiceRegistry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ServiceRegistry()
    return _default_registry


def _reset_registry() -> None:
    """Discard the process-wide ServiceRegistry. For tests."""
    global _default_registry
    _default_registry = None
