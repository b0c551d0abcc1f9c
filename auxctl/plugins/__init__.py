"""
auxctl plugin architecture.

This package contains provider implementations discovered at bootstrap:
- backends: execution backends (container, native process)

New backends can be added without modifying existing code, either as a
module in auxctl.plugins.backends or through the "auxctl.backends" entry
point group.
"""

from . import backends

__all__ = ["backends"]
