"""
Application bootstrap for auxctl.

Wires settings, the presenter, the logger and the execution backends into
the global container. The CLI calls bootstrap() once per invocation; the
second call is a no-op until reset().
"""

from .container import ServiceContainer, get_container
from .interfaces.logger import ILogger
from .interfaces.presenter import IPresenter
from .registry import discover_plugins
from .settings import AuxctlSettings, load_settings

_initialized = False


def bootstrap(settings: AuxctlSettings | None = None) -> ServiceContainer:
    """
    Populate the global container.

    Args:
        settings: Settings to register; loaded from config files and the
            environment when omitted

    Returns:
        The global ServiceContainer
    """
    global _initialized

    container = get_container()
    if _initialized:
        return container

    settings = settings or load_settings()
    _register_core_services(container, settings)
    discover_plugins()

    _initialized = True
    return container


def _register_core_services(container: ServiceContainer, settings: AuxctlSettings) -> None:
    from ..presenters.console import ConsolePresenter
    from ..services.logging import AuxctlLogger

    container.register_singleton(AuxctlSettings, implementation=settings)
    container.register_singleton(IPresenter, implementation=ConsolePresenter())  # type: ignore[type-abstract]
    # Built on first use so commands that log nothing never open the log file.
    container.register_singleton(
        ILogger,  # type: ignore[type-abstract]
        factory=lambda: AuxctlLogger.from_config(settings.logging),
    )


def reset() -> None:
    """Forget all registrations; used between tests."""
    global _initialized
    ServiceContainer.reset()
    _initialized = False
