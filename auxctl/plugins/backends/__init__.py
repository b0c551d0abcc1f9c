"""
Execution backends.

Each module defines one IExecutionBackend implementation; plugin discovery
registers it under its MODE:
- container: Docker CLI ('docker')
- process: native child processes ('native')
"""

from .container import DockerBackend
from .process import ProcessBackend

__all__ = ["DockerBackend", "ProcessBackend"]
