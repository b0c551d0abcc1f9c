"""
Service registry: the YAML document store and effective-value resolution.
"""

from . import resolver
from .store import ServiceRegistry

__all__ = ["ServiceRegistry", "resolver"]
