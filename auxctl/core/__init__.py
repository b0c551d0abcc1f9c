"""
Core infrastructure for auxctl: models, interfaces, the exception
hierarchy, settings, and the DI container with its bootstrap.
"""

from .bootstrap import bootstrap, reset
from .container import ServiceContainer, get_container
from .exceptions import AuxctlException
from .registry import discover_plugins

__all__ = [
    "AuxctlException",
    "ServiceContainer",
    "bootstrap",
    "discover_plugins",
    "get_container",
    "reset",
]
