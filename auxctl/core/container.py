"""
Dependency injection container for auxctl.

Two kinds of registrations live here, both as dependency-injector providers:

- application services (settings, logger, presenter), keyed by interface
- execution backends, keyed by the execution mode they serve
"""

from collections.abc import Callable
from typing import Optional, TypeVar

from dependency_injector import providers

from .interfaces.backend import IExecutionBackend

T = TypeVar("T")


class ServiceContainer:
    """Process-wide registry of providers, created on first use."""

    _instance: Optional["ServiceContainer"] = None

    def __init__(self) -> None:
        self._services: dict[type, providers.Provider] = {}
        self._backends: dict[str, providers.Provider] = {}

    @classmethod
    def get_instance(cls) -> "ServiceContainer":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the global container; the next get_instance() starts empty."""
        cls._instance = None

    def register_singleton(
        self,
        interface: type[T],
        implementation: T | None = None,
        factory: Callable[[], T] | None = None,
    ) -> None:
        """
        Register one shared instance for an interface.

        Args:
            interface: Type callers resolve by
            implementation: Ready-made instance
            factory: Called once, on first resolve, when no instance is given
        """
        if implementation is not None:
            self._services[interface] = providers.Object(implementation)
        elif factory is not None:
            self._services[interface] = providers.Singleton(factory)
        else:
            raise ValueError(f"No implementation or factory given for {interface.__name__}")

    def try_resolve(self, interface: type[T]) -> T | None:
        provider = self._services.get(interface)
        return provider() if provider is not None else None

    def register_backend(self, mode: str, backend: type[IExecutionBackend] | IExecutionBackend) -> None:
        """
        Register the backend serving an execution mode.

        A class is instantiated once, on first use: the process backend owns
        the table of live native processes, so every caller must share it.
        """
        if isinstance(backend, type):
            self._backends[mode] = providers.Singleton(backend)
        else:
            self._backends[mode] = providers.Object(backend)

    def find_backend(self, mode: str) -> IExecutionBackend | None:
        provider = self._backends.get(mode)
        return provider() if provider is not None else None


def get_container() -> ServiceContainer:
    """Get the global service container instance."""
    return ServiceContainer.get_instance()
