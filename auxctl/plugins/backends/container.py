"""
Container backend driving the Docker CLI.

Every instance name is validated before it reaches a CLI call. Starts are
"replace" operations: any previous container of the same name is stopped
and removed first, and success is only reported once the runtime says the
new container is running.
"""

from __future__ import annotations

import asyncio
import re

from ...core.exceptions import BackendUnavailableError, InvalidNameError
from ...core.interfaces.logger import ILogger
from ...core.models.backend import (
    ExecResult,
    ServiceStatus,
    StartOutcome,
    StartRequest,
    StartResult,
    StopOutcome,
    StopResult,
)
from ...core.models.config import DockerConfig
from ...services.synthesis.command_synthesizer import split_command_line
from .base import BaseExecutionBackend, CommandOutput, CommandRunner, run_command, validate_tail_lines

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")

# Lines of container output attached to a failed start.
FAILURE_LOG_LINES = 50


def validate_name(name: str) -> str:
    """
    Check a container or network name.

    Raises:
        InvalidNameError: If the name is empty or has disallowed characters
    """
    if not name or not NAME_PATTERN.match(name):
        raise InvalidNameError(name)
    return name


class DockerBackend(BaseExecutionBackend):
    """Hosts services as Docker containers."""

    MODE = "docker"

    def __init__(
        self,
        config: DockerConfig | None = None,
        runner: CommandRunner | None = None,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            config: Docker section of the settings (loaded if omitted)
            runner: Coroutine used to run CLI commands (tests inject a fake)
            logger: Logger for diagnostics
        """
        super().__init__(logger)
        if config is None:
            from ...core.settings import get_settings

            config = get_settings().docker
        self.config = config
        self._runner = runner or run_command

    async def _docker(self, *args: str) -> CommandOutput:
        cmd = [self.config.binary, *args]
        self.logger.debug("Running: %s", " ".join(cmd))
        try:
            result = await self._runner(cmd)
        except FileNotFoundError as e:
            raise BackendUnavailableError(
                f"Container CLI '{self.config.binary}' not found", backend=self.MODE, cause=e
            ) from e
        if result.exit_code != 0:
            self.logger.debug("%s exited %d: %s", args[0], result.exit_code, result.stderr.strip())
        return result

    async def is_available(self) -> bool:
        try:
            result = await self._docker("version")
        except BackendUnavailableError as e:
            self.logger.debug("Docker unavailable: %s", e)
            return False
        return result.exit_code == 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def build_run_args(self, request: StartRequest) -> list[str]:
        """Build the `docker run` argument list for a start request."""
        args = ["run", "-dit", "--name", request.name]

        if request.use_gpu:
            args.extend(["--gpus", "all"])
        if request.network:
            args.extend(["--network", request.network])
        if request.restart_policy:
            args.extend(["--restart", request.restart_policy])
        if request.log_driver:
            args.extend(["--log-driver", request.log_driver])
            for key, value in request.log_options.items():
                args.extend(["--log-opt", f"{key}={value}"])
        if request.working_dir:
            args.extend(["-w", request.working_dir])
        if request.entrypoint:
            args.extend(["--entrypoint", request.entrypoint])

        for key, value in request.environment.items():
            args.extend(["-e", f"{key}={value}"])

        read_only = set(request.read_only_volumes)
        for host, container in request.volumes.items():
            suffix = ":ro" if host in read_only else ""
            args.extend(["-v", f"{host}:{container}{suffix}"])

        for host_port, container_port in request.ports.items():
            args.extend(["-p", f"{host_port}:{container_port}"])

        args.append(request.image)
        args.extend(request.command)
        return args

    async def ensure_network(self, network: str) -> bool:
        """Create a bridge network unless one with that exact name exists."""
        validate_name(network)
        existing = await self._docker("network", "ls", "-q", "-f", f"name=^{network}$")
        if existing.exit_code == 0 and existing.stdout.strip():
            return True
        created = await self._docker("network", "create", network)
        if created.exit_code != 0:
            self.logger.warning("Failed to create network %s: %s", network, created.combined.strip())
            return False
        self.logger.info("Created network %s", network)
        return True

    async def start(self, request: StartRequest) -> StartResult:
        name = validate_name(request.name)

        # Replace any previous container with the same name.
        await self._docker("stop", f"--time={self.config.stop_timeout}", name)
        await self._docker("rm", name)

        if request.network:
            await self.ensure_network(request.network)

        run = await self._docker(*self.build_run_args(request))
        if run.exit_code != 0:
            self.logger.error("docker run failed for %s: %s", name, run.combined.strip())
            return StartResult(
                outcome=StartOutcome.FAILED,
                message=f"Failed to start container '{name}'",
                output=run.combined,
            )

        await asyncio.sleep(self.config.startup_delay)

        status = await self.status(name)
        if status != ServiceStatus.RUNNING:
            tail = await self._docker("logs", "--tail", str(FAILURE_LOG_LINES), name)
            self.logger.error("Container %s is %s after start", name, status.value)
            return StartResult(
                outcome=StartOutcome.FAILED,
                message=f"Container '{name}' is {status.value} after start",
                output=tail.combined,
            )

        self.logger.info("Started container %s (%s)", name, request.image)
        return StartResult(
            outcome=StartOutcome.STARTED,
            message=f"Container '{name}' started",
            output=run.stdout.strip(),
        )

    async def stop(self, name: str) -> StopResult:
        validate_name(name)
        result = await self._docker("stop", f"--time={self.config.stop_timeout}", name)
        await asyncio.sleep(self.config.shutdown_delay)

        if result.exit_code != 0:
            self.logger.warning("Container %s may not have been running: %s", name, result.combined.strip())
            return StopResult(
                outcome=StopOutcome.ALREADY_STOPPED,
                message=f"Container '{name}' may not have been running",
            )
        return StopResult(outcome=StopOutcome.STOPPED, message=f"Container '{name}' stopped")

    async def status(self, name: str) -> ServiceStatus:
        validate_name(name)
        result = await self._docker("inspect", "-f", "{{.State.Status}}", name)
        if result.exit_code != 0:
            return ServiceStatus.NOT_FOUND
        return ServiceStatus.from_container_state(result.stdout)

    async def logs(self, name: str, tail_lines: int = 100) -> str:
        validate_name(name)
        validate_tail_lines(tail_lines)
        result = await self._docker("logs", "--tail", str(tail_lines), name)
        return result.combined

    async def exec_in_instance(self, name: str, command: str) -> ExecResult:
        validate_name(name)
        result = await self._docker("exec", name, *split_command_line(command))
        return ExecResult(exit_code=result.exit_code, output=result.combined)

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    async def pull(self, image: str) -> ExecResult:
        """Pull an image so the next start does not block on download."""
        result = await self._docker("pull", image)
        return ExecResult(exit_code=result.exit_code, output=result.combined)
