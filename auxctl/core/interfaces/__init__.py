"""
Interface definitions for auxctl's services.

These define the contracts that implementations must follow, so the
orchestrator, CLI and tests depend on abstractions rather than concrete
backends or output formats.
"""

from .backend import IExecutionBackend
from .logger import ILogger
from .presenter import IPresenter
from .wallet import IWalletProvider

__all__ = [
    "IExecutionBackend",
    "ILogger",
    "IPresenter",
    "IWalletProvider",
]
