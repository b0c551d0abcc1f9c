"""
Base execution backend.

Shared plumbing for backends: logger resolution, async subprocess helper
and tail-length validation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from ...core.exceptions import InvalidArgumentError
from ...core.interfaces.backend import IExecutionBackend
from ...core.interfaces.logger import ILogger

MAX_TAIL_LINES = 10000


@dataclass
class CommandOutput:
    """Result of a finished subprocess."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def combined(self) -> str:
        """stdout followed by stderr when stderr is non-empty."""
        if self.stderr:
            return f"{self.stdout}{self.stderr}" if self.stdout else self.stderr
        return self.stdout


CommandRunner = Callable[..., Awaitable[CommandOutput]]


async def run_command(
    args: list[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> CommandOutput:
    """
    Run a command to completion and capture its output.

    Raises:
        FileNotFoundError: If the executable does not exist
        asyncio.TimeoutError: If timeout elapses; the process is killed first
    """
    proc = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd) if cwd else None,
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    return CommandOutput(
        exit_code=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
    )


def validate_tail_lines(tail_lines: int) -> int:
    if not 1 <= tail_lines <= MAX_TAIL_LINES:
        raise InvalidArgumentError(
            f"Tail lines must be between 1 and {MAX_TAIL_LINES}",
            argument="tail_lines",
            value=str(tail_lines),
        )
    return tail_lines


class BaseExecutionBackend(IExecutionBackend):
    """
    Abstract base class for execution backends.

    Subclasses set MODE; plugin discovery registers them under it.
    """

    MODE: ClassVar[str] = ""

    def __init__(self, logger: ILogger | None = None) -> None:
        self._logger = logger

    @property
    def mode(self) -> str:
        return self.MODE

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ...services.logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger
