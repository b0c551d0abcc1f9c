"""
Native process backend.

Runs a service's binary from its service directory
(``<services_root>/<service_id>``) as a child process of auxctl. Handles are
kept in an in-memory registry, so a service started here is only managed
for the lifetime of this auxctl process.
"""

from __future__ import annotations

import asyncio
import os
import stat
import sys
import threading
from collections import deque
from datetime import datetime, timezone
from pathlib import Path

import psutil

from ...core.exceptions import StopTimeoutError
from ...core.interfaces.logger import ILogger
from ...core.models.backend import (
    ExecResult,
    ProcessHandle,
    ServiceStatus,
    StartOutcome,
    StartRequest,
    StartResult,
    StopOutcome,
    StopResult,
)
from ...core.models.config import ProcessConfig
from ...services.synthesis.command_synthesizer import split_command_line
from .base import BaseExecutionBackend, run_command, validate_tail_lines


class ProcessRegistry:
    """
    Thread-safe map of instance name to live process handle.

    ``remove`` can be given the handle the caller expects to find, so an
    exit watcher for an old process never removes a newer one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[str, ProcessHandle] = {}

    def get(self, name: str) -> ProcessHandle | None:
        with self._lock:
            return self._handles.get(name)

    def add(self, handle: ProcessHandle) -> bool:
        """Register a handle; returns False if a live one already exists."""
        with self._lock:
            existing = self._handles.get(handle.name)
            if existing is not None and existing.is_alive:
                return False
            self._handles[handle.name] = handle
            return True

    def remove(self, name: str, handle: ProcessHandle | None = None) -> ProcessHandle | None:
        with self._lock:
            current = self._handles.get(name)
            if current is None or (handle is not None and current is not handle):
                return None
            return self._handles.pop(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._handles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)


def binary_path_for(directory: Path, binary: str) -> Path | None:
    """Locate a binary in a service directory, trying `.exe` on Windows."""
    candidate = directory / binary
    if candidate.is_file():
        return candidate
    if sys.platform == "win32" and not binary.lower().endswith(".exe"):
        exe = directory / f"{binary}.exe"
        if exe.is_file():
            return exe
    return None


class ProcessBackend(BaseExecutionBackend):
    """Hosts services as native child processes."""

    MODE = "native"

    def __init__(
        self,
        config: ProcessConfig | None = None,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            config: Process section of the settings (loaded if omitted)
            logger: Logger for diagnostics
        """
        super().__init__(logger)
        if config is None:
            from ...core.settings import get_settings

            config = get_settings().process
        self.config = config
        self.registry = ProcessRegistry()
        self._watchers: set[asyncio.Task] = set()
        self._start_locks: dict[str, asyncio.Lock] = {}

    @property
    def services_root(self) -> Path:
        return Path(self.config.services_root).expanduser()

    def service_dir(self, service_id: str) -> Path:
        return self.services_root / service_id

    async def is_available(self) -> bool:
        return True

    # -------------------------------------------------------------------------
    # Start
    # -------------------------------------------------------------------------

    async def start(self, request: StartRequest) -> StartResult:
        """
        Spawn the service binary, refusing while a live process holds the name.

        Starts of the same name are serialized, so a concurrent second start
        sees the first one's handle and reports ALREADY_RUNNING.
        """
        lock = self._start_locks.setdefault(request.name, asyncio.Lock())
        async with lock:
            return await self._start(request)

    async def _start(self, request: StartRequest) -> StartResult:
        name = request.name
        existing = self.registry.get(name)
        if existing is not None:
            if existing.is_alive:
                return StartResult(
                    outcome=StartOutcome.ALREADY_RUNNING,
                    message=f"'{name}' is already running (pid {existing.pid})",
                    pid=existing.pid,
                )
            self.registry.remove(name, existing)

        directory = Path(request.working_dir) if request.working_dir else self.service_dir(request.service_id)
        binary = request.binary or (request.command[0] if request.command else request.service_id)
        binary_path = binary_path_for(directory, binary)
        if binary_path is None:
            return StartResult(
                outcome=StartOutcome.BINARY_MISSING,
                message=(
                    f"Binary '{binary}' not found in {directory}. "
                    f"Install a version with `auxctl versions install {request.service_id}`"
                ),
            )

        self._ensure_executable(binary_path)

        args = list(request.command)
        if args and Path(args[0]).name in (binary, binary_path.name):
            args = args[1:]
        argv = [str(binary_path), *args]
        env = {**os.environ, **request.environment}

        log_path: Path | None = None
        log_file = None
        if not request.inherit_console:
            log_path = directory / f"{name}.log"
            log_file = open(log_path, "ab")

        self.logger.debug("Spawning %s in %s", argv, directory)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(directory),
                env=env,
                stdout=log_file,
                stderr=asyncio.subprocess.STDOUT if log_file else None,
            )
        except OSError as e:
            self.logger.error("Failed to spawn %s: %s", binary_path, e)
            return StartResult(outcome=StartOutcome.FAILED, message=f"Failed to start '{name}': {e}")
        finally:
            if log_file is not None:
                log_file.close()

        handle = ProcessHandle(
            service_id=request.service_id,
            name=name,
            process=process,
            binary_path=binary_path,
            started_at=datetime.now(timezone.utc),
            log_path=log_path,
        )
        if not self.registry.add(handle):
            self.logger.warning("%s was started elsewhere meanwhile; killing pid %d", name, process.pid)
            self._kill_tree(process.pid)
            await process.wait()
            existing = self.registry.get(name)
            return StartResult(
                outcome=StartOutcome.ALREADY_RUNNING,
                message=f"'{name}' is already running",
                pid=existing.pid if existing else None,
            )
        watcher = asyncio.create_task(self._watch_exit(handle))
        self._watchers.add(watcher)
        watcher.add_done_callback(self._watchers.discard)

        try:
            await asyncio.wait_for(asyncio.shield(process.wait()), timeout=self.config.startup_grace)
        except asyncio.TimeoutError:
            self.logger.info("Started %s (pid %d)", name, process.pid)
            return StartResult(
                outcome=StartOutcome.STARTED,
                message=f"'{name}' started (pid {process.pid})",
                pid=process.pid,
            )

        self.registry.remove(name, handle)
        output = self._read_tail(log_path, 20) if log_path else ""
        return StartResult(
            outcome=StartOutcome.FAILED,
            message=f"'{name}' exited immediately with code {process.returncode}",
            output=output,
        )

    def _ensure_executable(self, path: Path) -> None:
        if os.name != "posix":
            return
        try:
            mode = path.stat().st_mode
            path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as e:
            self.logger.warning("Could not mark %s executable: %s", path, e)

    async def _watch_exit(self, handle: ProcessHandle) -> None:
        code = await handle.process.wait()
        if self.registry.remove(handle.name, handle) is not None:
            self.logger.info("%s (pid %d) exited with code %s", handle.name, handle.pid, code)

    # -------------------------------------------------------------------------
    # Stop
    # -------------------------------------------------------------------------

    async def stop(self, name: str) -> StopResult:
        handle = self.registry.get(name)
        if handle is None:
            return StopResult(outcome=StopOutcome.ALREADY_STOPPED, message=f"'{name}' is not running")

        try:
            if not handle.is_alive:
                return StopResult(outcome=StopOutcome.ALREADY_STOPPED, message=f"'{name}' is not running")

            try:
                handle.process.terminate()
            except ProcessLookupError:
                return StopResult(outcome=StopOutcome.ALREADY_STOPPED, message=f"'{name}' is not running")

            try:
                await asyncio.wait_for(asyncio.shield(handle.process.wait()), self.config.terminate_timeout)
                return StopResult(outcome=StopOutcome.STOPPED, message=f"'{name}' stopped")
            except asyncio.TimeoutError:
                self.logger.warning("%s did not exit after terminate; killing process tree", name)

            self._kill_tree(handle.pid)
            try:
                await asyncio.wait_for(asyncio.shield(handle.process.wait()), self.config.kill_timeout)
            except asyncio.TimeoutError as e:
                raise StopTimeoutError(f"'{name}' survived kill", pid=handle.pid, cause=e) from e
            return StopResult(outcome=StopOutcome.STOPPED, message=f"'{name}' killed")
        finally:
            self.registry.remove(name, handle)

    def _kill_tree(self, pid: int) -> None:
        try:
            parent = psutil.Process(pid)
            children = parent.children(recursive=True)
        except psutil.NoSuchProcess:
            return
        for proc in [*children, parent]:
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                continue
            except psutil.AccessDenied as e:
                self.logger.warning("Cannot kill pid %d: %s", proc.pid, e)

    async def stop_all(self) -> list[StopResult]:
        """Stop every tracked process concurrently."""
        names = self.registry.names()
        results = await asyncio.gather(*(self.stop(n) for n in names), return_exceptions=True)
        stopped: list[StopResult] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                self.logger.error("Failed to stop %s: %s", name, result)
                stopped.append(StopResult(outcome=StopOutcome.FAILED, message=str(result)))
            else:
                stopped.append(result)
        return stopped

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def status(self, name: str) -> ServiceStatus:
        handle = self.registry.get(name)
        if handle is None:
            return ServiceStatus.NOT_FOUND
        if handle.is_alive:
            return ServiceStatus.RUNNING
        self.registry.remove(name, handle)
        return ServiceStatus.STOPPED

    async def logs(self, name: str, tail_lines: int = 100) -> str:
        validate_tail_lines(tail_lines)
        handle = self.registry.get(name)
        log_path = handle.log_path if handle and handle.log_path else None
        if log_path is None:
            candidates = sorted(self.services_root.glob(f"*/{name}.log"))
            log_path = candidates[0] if candidates else None
        if log_path is None or not log_path.exists():
            return ""
        return self._read_tail(log_path, tail_lines)

    @staticmethod
    def _read_tail(path: Path, lines: int) -> str:
        with open(path, encoding="utf-8", errors="replace") as f:
            return "".join(deque(f, maxlen=lines))

    async def exec_in_instance(self, name: str, command: str) -> ExecResult:
        handle = self.registry.get(name)
        cwd = handle.binary_path.parent if handle else self.service_dir(name)
        args = split_command_line(command)
        if not args:
            return ExecResult(exit_code=2, output="Empty command")

        # Prefer the copy of the program shipped in the service directory.
        local = binary_path_for(cwd, args[0])
        if local is not None:
            args[0] = str(local)

        try:
            result = await run_command(args, cwd=cwd if cwd.is_dir() else None)
        except FileNotFoundError as e:
            return ExecResult(exit_code=127, output=str(e))
        return ExecResult(exit_code=result.exit_code, output=result.combined)
