"""
Plugin registry with auto-discovery.

Discovers execution backends from:
1. Built-in modules in auxctl.plugins.backends
2. Entry point plugins from external packages (group "auxctl.backends")

and the wallet used by command macros from the "auxctl.wallets" entry point
group. auxctl ships no wallet; an embedding application may also register
one directly with ``get_container().register_singleton(IWalletProvider, ...)``.
"""

import importlib
import pkgutil
from types import ModuleType

from .container import ServiceContainer, get_container
from .di import resolve_or_default
from .interfaces.backend import IExecutionBackend
from .interfaces.logger import ILogger
from .interfaces.wallet import IWalletProvider


def _get_logger() -> ILogger:
    from ..services.logging import NullLogger

    return resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]


def discover_plugins(package_name: str = "auxctl.plugins.backends") -> None:
    """
    Auto-discover and register execution backends.

    Args:
        package_name: Package to scan for backend modules
    """
    container = get_container()
    _discover_builtin_backends(container, package_name)
    _discover_entrypoint_backends(container)
    _discover_entrypoint_wallet(container)


def _discover_builtin_backends(container: ServiceContainer, package_name: str) -> None:
    try:
        package = importlib.import_module(package_name)
    except ImportError as e:
        _get_logger().debug("Backend package %s not importable: %s", package_name, e)
        return

    for module in _iter_modules(package):
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if _implements(attr, IExecutionBackend) and attr.__module__ == module.__name__:
                _register_backend(container, attr)


def _iter_modules(package: ModuleType):
    package_path = getattr(package, "__path__", None)
    if not package_path:
        return

    for _importer, modname, _ispkg in pkgutil.iter_modules(package_path):
        # Skip private modules and base classes
        if modname.startswith("_") or modname == "base":
            continue
        try:
            yield importlib.import_module(f"{package.__name__}.{modname}")
        except ImportError as e:
            _get_logger().debug("Failed to import backend module %s: %s", modname, e)


def _register_backend(container: ServiceContainer, cls: type) -> None:
    mode = getattr(cls, "MODE", None)
    if not mode:
        _get_logger().debug("Backend %s.%s declares no MODE", cls.__module__, cls.__name__)
        return
    container.register_backend(mode, cls)
    _get_logger().debug("Registered %s backend: %s", mode, cls.__name__)


def _implements(cls: object, interface: type) -> bool:
    """
    Check if a class implements an interface.

    Returns True if cls is a concrete subclass of interface
    (not the interface itself and not abstract).
    """
    try:
        return (
            isinstance(cls, type)
            and issubclass(cls, interface)
            and cls is not interface
            and not getattr(cls, "__abstractmethods__", set())
        )
    except TypeError:
        return False


def _discover_entrypoint_backends(container: ServiceContainer) -> None:
    """
    Discover backends registered via entry points.

    External packages can register a backend in their pyproject.toml:

        [project.entry-points."auxctl.backends"]
        podman = "my_package.podman:PodmanBackend"
    """
    from importlib.metadata import entry_points

    for ep in entry_points(group="auxctl.backends"):
        try:
            plugin_cls = ep.load()
        except Exception as e:
            # Skipped; built-in backends still load
            _get_logger().warning("Failed to load backend entry point %s: %s", ep.name, e)
            continue
        if _implements(plugin_cls, IExecutionBackend):
            _register_backend(container, plugin_cls)


def _discover_entrypoint_wallet(container: ServiceContainer) -> None:
    """
    Register the first wallet provider exposed through entry points.

        [project.entry-points."auxctl.wallets"]
        hd = "my_package.wallet:HDWalletProvider"

    The entry point may name a provider class (built on first use) or a
    ready instance. A wallet registered before discovery is kept.
    """
    from importlib.metadata import entry_points

    if container.try_resolve(IWalletProvider) is not None:
        return

    for ep in entry_points(group="auxctl.wallets"):
        try:
            provider = ep.load()
        except Exception as e:
            _get_logger().warning("Failed to load wallet entry point %s: %s", ep.name, e)
            continue
        if isinstance(provider, type) and issubclass(provider, IWalletProvider):
            container.register_singleton(IWalletProvider, factory=provider)
        elif isinstance(provider, IWalletProvider):
            container.register_singleton(IWalletProvider, implementation=provider)
        else:
            _get_logger().warning("Wallet entry point %s is not a wallet provider", ep.name)
            continue
        _get_logger().debug("Registered wallet provider: %s", ep.name)
        return
