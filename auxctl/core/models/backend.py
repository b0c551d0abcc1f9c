"""
Execution backend value types.

Requests, results and handles exchanged between the orchestrator and the
container/process backends.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

import psutil


class ServiceStatus(str, Enum):
    """Observed state of a service instance."""

    NOT_FOUND = "not_found"
    STOPPED = "stopped"
    RUNNING = "running"
    UNKNOWN = "unknown"

    @classmethod
    def from_container_state(cls, state: str) -> ServiceStatus:
        """Map a container runtime state string onto a status."""
        state = state.strip().lower()
        if state == "running":
            return cls.RUNNING
        if state in ("exited", "created", "dead", "paused", "removing", "stopped"):
            return cls.STOPPED
        if state in ("", "not found"):
            return cls.NOT_FOUND
        return cls.UNKNOWN


class StartOutcome(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"
    BINARY_MISSING = "binary_missing"
    FAILED = "failed"


class StopOutcome(str, Enum):
    STOPPED = "stopped"
    ALREADY_STOPPED = "already_stopped"
    FAILED = "failed"


@dataclass
class StartRequest:
    """Everything a backend needs to launch one service instance.

    ``command`` is the synthesized token list: binary first, then flags.
    """

    service_id: str
    name: str
    image: str
    command: list[str] = field(default_factory=list)
    ports: dict[int, int] = field(default_factory=dict)
    volumes: dict[str, str] = field(default_factory=dict)
    read_only_volumes: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    network: str | None = None
    working_dir: str | None = None
    entrypoint: str | None = None
    binary: str | None = None
    use_gpu: bool = False
    restart_policy: str | None = None
    log_driver: str | None = None
    log_options: dict[str, str] = field(default_factory=dict)
    inherit_console: bool = True


@dataclass
class StartResult:
    outcome: StartOutcome
    message: str
    output: str = ""
    pid: int | None = None

    @property
    def success(self) -> bool:
        return self.outcome == StartOutcome.STARTED


@dataclass
class StopResult:
    outcome: StopOutcome
    message: str

    @property
    def success(self) -> bool:
        return self.outcome != StopOutcome.FAILED


@dataclass
class ExecResult:
    """Exit code and combined stdout/stderr of a command run in an instance."""

    exit_code: int
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class ProcessHandle:
    """A native process started and tracked by the process backend."""

    service_id: str
    name: str
    process: asyncio.subprocess.Process
    binary_path: Path
    started_at: datetime
    log_path: Path | None = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_alive(self) -> bool:
        """
        Whether the process is still running.

        asyncio only records the exit code once its child watcher runs, so the
        operating system is asked as well; an exited child that has not been
        reaped yet shows up there as a zombie.
        """
        if self.process.returncode is not None:
            return False
        try:
            return psutil.Process(self.pid).status() != psutil.STATUS_ZOMBIE
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            return True
