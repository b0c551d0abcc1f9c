"""
Execution backend interface.

A backend hosts service instances for one execution mode. The orchestrator
selects a backend once per service from its execution mode and drives it
only through this contract, so adding a hosting mode means adding a
backend class, not branching in callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.backend import ExecResult, ServiceStatus, StartRequest, StartResult, StopResult


class IExecutionBackend(ABC):
    """
    Interface for container and native process backends.

    All operations are coroutines. A failure in one operation never affects
    other instances managed by the same backend.
    """

    @property
    @abstractmethod
    def mode(self) -> str:
        """Execution mode served by this backend ('docker' or 'native')."""
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check whether the backend can be used on this host."""
        pass

    @abstractmethod
    async def start(self, request: StartRequest) -> StartResult:
        """
        Start an instance.

        Args:
            request: Fully synthesized start request

        Returns:
            StartResult describing the outcome
        """
        pass

    @abstractmethod
    async def stop(self, name: str) -> StopResult:
        """
        Stop an instance.

        Stopping an instance that is not running is not an error.

        Args:
            name: Instance name (container name or service id)
        """
        pass

    @abstractmethod
    async def status(self, name: str) -> ServiceStatus:
        """Query the current state of an instance."""
        pass

    @abstractmethod
    async def logs(self, name: str, tail_lines: int = 100) -> str:
        """
        Return the last lines of an instance's output.

        Args:
            name: Instance name
            tail_lines: Number of lines, between 1 and 10000
        """
        pass

    @abstractmethod
    async def exec_in_instance(self, name: str, command: str) -> ExecResult:
        """
        Run a command in the context of a running instance.

        Args:
            name: Instance name
            command: Command line, split with quote awareness

        Returns:
            ExecResult with the exit code and combined output
        """
        pass
