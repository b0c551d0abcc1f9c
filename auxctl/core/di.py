"""
Container lookups for code that may run before bootstrap.

Services call these lazily (usually from a ``logger`` property) so that
importing a module never touches the container, and unit tests that never
bootstrap get a harmless default instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


def try_resolve(interface: type[T]) -> T | None:
    """Return the registered instance for ``interface``, or None.

    A registration whose factory raises counts as missing.
    """
    from .container import get_container

    try:
        return get_container().try_resolve(interface)
    except Exception:
        return None


def resolve_or_default(interface: type[T], default_factory: Callable[[], T]) -> T:
    """Resolve ``interface`` from the container, or build ``default_factory()``.

    Example:
        >>> from auxctl.core.interfaces.logger import ILogger
        >>> from auxctl.services.logging import NullLogger
        >>> logger = resolve_or_default(ILogger, NullLogger)
    """
    instance = try_resolve(interface)
    return default_factory() if instance is None else instance
