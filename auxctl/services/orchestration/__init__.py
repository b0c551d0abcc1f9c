"""
Service orchestration: the facade the CLI drives.
"""

from .orchestrator import OperationResult, ServiceOrchestrator
from .signal_handler import ShutdownSignalHandler

__all__ = ["OperationResult", "ServiceOrchestrator", "ShutdownSignalHandler"]
