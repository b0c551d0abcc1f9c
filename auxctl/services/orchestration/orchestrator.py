"""
Service orchestration.

``ServiceOrchestrator`` is the single entry point the CLI uses to act on a
service. It reads the service from the registry, picks the backend for the
service's execution mode, synthesizes the launch request and reports the
outcome as an ``OperationResult``.

Caller errors (an unknown service id, an unreachable container runtime, a
custom command that cannot be resolved) raise ``AuxctlException``
subclasses. Backend outcomes, including failures, are returned.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ...core.exceptions import (
    AuxctlException,
    BackendUnavailableError,
    InstallationError,
    InvalidArgumentError,
    StopTimeoutError,
)
from ...core.interfaces.backend import IExecutionBackend
from ...core.interfaces.logger import ILogger
from ...core.interfaces.wallet import IWalletProvider
from ...core.models.backend import ServiceStatus, StartRequest
from ...core.models.service import (
    DockerImage,
    ExecutionMode,
    NativeDownload,
    ServiceDefinition,
)
from ...plugins.backends.container import DockerBackend
from ...plugins.backends.process import ProcessBackend
from ..discovery.platform import current_platform
from ..discovery.service import VersionDiscoveryService
from ..installation.installer import NativeInstaller, ProgressCallback
from ..registry import resolver
from ..registry.store import ServiceRegistry
from ..synthesis.command_synthesizer import (
    build_environment,
    build_port_map,
    build_volume_map,
    read_only_paths,
    synthesize_command,
)
from ..templates.engine import CommandTemplateEngine


@dataclass
class OperationResult:
    """Outcome of one orchestrator operation on one service."""

    service_id: str
    success: bool
    message: str
    output: str = ""
    warnings: list[str] = field(default_factory=list)


def _is_host_path(path: str) -> bool:
    # Plain names such as "node-data" are named volumes, not host paths.
    return path.startswith((".", "~", "/")) or Path(path).is_absolute()


def _absolute_host_path(path: str) -> str:
    if not _is_host_path(path):
        return path
    return str(Path(path).expanduser().resolve())


def registered_wallet() -> IWalletProvider | None:
    """The wallet registered in the DI container, looked up at each use."""
    from ...core.di import try_resolve

    return try_resolve(IWalletProvider)  # type: ignore[type-abstract]


class ServiceOrchestrator:
    """Coordinates registry, synthesis, backends, discovery and templates."""

    def __init__(
        self,
        registry: ServiceRegistry,
        backends: Mapping[str, IExecutionBackend] | None = None,
        *,
        discovery: VersionDiscoveryService | None = None,
        installer: NativeInstaller | None = None,
        template_engine: CommandTemplateEngine | None = None,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            registry: Service document store
            backends: Backend per execution mode; resolved from the DI
                container when omitted
            discovery: Version discovery service (created on first use)
            installer: Native release installer (created on first use)
            template_engine: Custom command resolver (created on first use,
                with the wallet registered in the DI container, if any)
            logger: Logger for diagnostics
        """
        self.registry = registry
        self._backends = dict(backends) if backends is not None else None
        self._discovery = discovery
        self._installer = installer
        self._template_engine = template_engine
        self._logger = logger

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    @property
    def discovery(self) -> VersionDiscoveryService:
        if self._discovery is None:
            self._discovery = VersionDiscoveryService(logger=self._logger)
        return self._discovery

    @property
    def installer(self) -> NativeInstaller:
        if self._installer is None:
            self._installer = NativeInstaller(logger=self._logger)
        return self._installer

    @property
    def template_engine(self) -> CommandTemplateEngine:
        if self._template_engine is None:
            self._template_engine = CommandTemplateEngine(registered_wallet, logger=self._logger)
        return self._template_engine

    # -------------------------------------------------------------------------
    # Backend selection
    # -------------------------------------------------------------------------

    def backend_for_mode(self, mode: ExecutionMode | str) -> IExecutionBackend:
        """
        Get the backend serving an execution mode.

        Raises:
            BackendUnavailableError: If no backend is registered for the mode
        """
        key = mode.value if isinstance(mode, ExecutionMode) else str(mode)
        if self._backends is not None:
            backend = self._backends.get(key)
        else:
            from ...core.container import get_container

            backend = get_container().find_backend(key)
        if backend is None:
            raise BackendUnavailableError(f"No backend for execution mode '{key}'", backend=key)
        return backend

    def backend_for(self, service: ServiceDefinition) -> IExecutionBackend:
        return self.backend_for_mode(service.mode)

    @staticmethod
    def instance_name(service: ServiceDefinition) -> str:
        """Container name for container services; the service id for native ones."""
        if service.mode == ExecutionMode.NATIVE:
            return service.id
        return resolver.container_name(service)

    # -------------------------------------------------------------------------
    # Start / stop
    # -------------------------------------------------------------------------

    def build_start_request(self, service: ServiceDefinition) -> StartRequest:
        """Synthesize everything a backend needs to launch the service."""
        command = synthesize_command(service)
        environment = build_environment(service)

        if service.mode == ExecutionMode.NATIVE:
            return StartRequest(
                service_id=service.id,
                name=self.instance_name(service),
                image="",
                command=command,
                environment=environment,
                binary=resolver.binary_name(service),
                inherit_console=service.spawn_new_console,
            )

        defaults = self.registry.defaults
        volumes = {_absolute_host_path(h): c for h, c in build_volume_map(service).items()}
        read_only = [_absolute_host_path(h) for h in read_only_paths(service)]
        return StartRequest(
            service_id=service.id,
            name=self.instance_name(service),
            image=resolver.image_reference(service),
            command=command,
            ports=build_port_map(service),
            volumes=volumes,
            read_only_volumes=read_only,
            environment=environment,
            network=resolver.network(service, defaults),
            working_dir=service.container.working_dir,
            entrypoint=service.container.entrypoint,
            binary=service.container.binary,
            use_gpu=service.gpu_passthrough,
            restart_policy=defaults.restart_policy,
            log_driver=defaults.log_driver,
            log_options={"max-size": defaults.log_max_size, "max-file": str(defaults.log_max_files)},
        )

    def prepare_host_paths(self, service: ServiceDefinition) -> list[str]:
        """
        Create host directories for bind mounts.

        File volumes get their parent directory created. Failures are
        returned as warnings and do not block the start.
        """
        warnings = []
        for volume in service.volumes:
            host = resolver.host_path(volume)
            if not host or not _is_host_path(host):
                continue
            path = Path(host).expanduser()
            directory = path.parent if volume.is_file else path
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.logger.warning("Cannot create %s for %s: %s", directory, service.id, e)
                warnings.append(f"Could not create {directory}: {e}")
        return warnings

    async def dependency_warnings(self, service: ServiceDefinition) -> list[str]:
        """Warn about dependencies that should be running but are not."""
        warnings = []
        for dependency in service.depends_on:
            if dependency.condition != "running":
                continue
            other = self.registry.find_service(dependency.service_id)
            if other is None:
                warnings.append(f"Dependency '{dependency.service_id}' is not defined")
                continue
            status = await self.service_status(other.id)
            if status != ServiceStatus.RUNNING:
                reason = f" ({dependency.reason})" if dependency.reason else ""
                warnings.append(f"Dependency '{other.name}' is not running{reason}")
        return warnings

    async def start_service(self, service_id: str) -> OperationResult:
        """
        Start a service with its current effective configuration.

        Raises:
            ServiceNotFoundError: If the id is unknown
            BackendUnavailableError: If the backend for the service's mode
                cannot be used; nothing has been started
        """
        service = self.registry.get_service(service_id)
        backend = self.backend_for(service)
        if not await backend.is_available():
            raise BackendUnavailableError(
                f"The {backend.mode} backend is not available", backend=backend.mode
            )

        warnings = await self.dependency_warnings(service)
        if service.mode == ExecutionMode.DOCKER:
            warnings.extend(self.prepare_host_paths(service))

        request = self.build_start_request(service)
        self.logger.info("Starting %s as %s (%s)", service.id, request.name, backend.mode)
        result = await backend.start(request)
        if not result.success:
            self.logger.warning("Start of %s: %s", service.id, result.message)
        return OperationResult(
            service_id=service.id,
            success=result.success,
            message=result.message,
            output=result.output,
            warnings=warnings,
        )

    async def stop_service(self, service_id: str) -> OperationResult:
        """Stop a service; stopping one that is not running succeeds."""
        service = self.registry.get_service(service_id)
        backend = self.backend_for(service)
        try:
            result = await backend.stop(self.instance_name(service))
        except StopTimeoutError as e:
            self.logger.error("Stop of %s timed out: %s", service.id, e)
            return OperationResult(service_id=service.id, success=False, message=str(e))
        return OperationResult(service_id=service.id, success=result.success, message=result.message)

    def _process_backend(self) -> ProcessBackend | None:
        try:
            backend = self.backend_for_mode(ExecutionMode.NATIVE)
        except BackendUnavailableError:
            return None
        return backend if isinstance(backend, ProcessBackend) else None

    def native_instance_names(self) -> list[str]:
        """Names of native processes this auxctl process is supervising."""
        backend = self._process_backend()
        return backend.registry.names() if backend is not None else []

    async def stop_native_instances(self) -> list[OperationResult]:
        """Stop every native process started by this auxctl process."""
        backend = self._process_backend()
        if backend is None:
            return []
        names = backend.registry.names()
        results = await backend.stop_all()
        return [
            OperationResult(service_id=name, success=r.success, message=r.message)
            for name, r in zip(names, results)
        ]

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def service_status(self, service_id: str) -> ServiceStatus:
        service = self.registry.get_service(service_id)
        backend = self.backend_for(service)
        return await backend.status(self.instance_name(service))

    async def service_logs(self, service_id: str, tail_lines: int = 100) -> str:
        service = self.registry.get_service(service_id)
        backend = self.backend_for(service)
        return await backend.logs(self.instance_name(service), tail_lines)

    async def statuses(self) -> list[tuple[ServiceDefinition, ServiceStatus]]:
        """Status of every enabled service, queried concurrently."""
        services = self.registry.enabled_services()

        async def one(service: ServiceDefinition) -> ServiceStatus:
            try:
                return await self.service_status(service.id)
            except AuxctlException as e:
                self.logger.warning("Status of %s unavailable: %s", service.id, e)
                return ServiceStatus.UNKNOWN

        results = await asyncio.gather(*(one(s) for s in services))
        return list(zip(services, results))

    # -------------------------------------------------------------------------
    # Custom commands
    # -------------------------------------------------------------------------

    async def run_custom_command(
        self,
        service_id: str,
        action_id: str,
        inputs: dict[str, str],
    ) -> OperationResult:
        """
        Resolve a custom menu command and execute it in the running instance.

        Raises:
            InvalidArgumentError: If the service has no such command
            TemplateResolutionError: If a placeholder cannot be resolved;
                nothing is executed
        """
        service = self.registry.get_service(service_id)
        command = service.get_menu_command(action_id)
        if command is None:
            raise InvalidArgumentError(
                f"Service '{service_id}' has no command '{action_id}'", argument="action", value=action_id
            )

        command_line = self.template_engine.process_command(command, inputs)

        backend = self.backend_for(service)
        name = self.instance_name(service)
        status = await backend.status(name)
        if status != ServiceStatus.RUNNING:
            return OperationResult(
                service_id=service.id,
                success=False,
                message=f"'{service.name}' is not running",
            )

        self.logger.debug("Executing in %s: %s", name, command.binary)
        result = await backend.exec_in_instance(name, command_line)
        message = "Command completed" if result.success else f"Command exited with code {result.exit_code}"
        return OperationResult(
            service_id=service.id,
            success=result.success,
            message=message,
            output=result.output if command.show_output else "",
        )

    # -------------------------------------------------------------------------
    # Versions
    # -------------------------------------------------------------------------

    async def container_versions(self, service_id: str) -> list[DockerImage]:
        return await self.discovery.container_candidates(self.registry.get_service(service_id))

    async def native_versions(self, service_id: str, all_platforms: bool = False) -> list[NativeDownload]:
        """Native downloads for a service, by default only for this host's platform."""
        candidates = await self.discovery.native_candidates(self.registry.get_service(service_id))
        if all_platforms:
            return candidates
        host = current_platform()
        return [c for c in candidates if c.platform == host]

    async def apply_container_version(
        self,
        service_id: str,
        image: DockerImage,
        pull: bool = False,
    ) -> OperationResult:
        """Record an image as the service's container version, optionally pulling it."""
        self.registry.set_container_image(service_id, image)
        message = f"Using {image.reference}"
        if not pull:
            return OperationResult(service_id=service_id, success=True, message=message)

        backend = self.backend_for_mode(ExecutionMode.DOCKER)
        if not isinstance(backend, DockerBackend):
            return OperationResult(service_id=service_id, success=True, message=message)
        pulled = await backend.pull(image.reference)
        if not pulled.success:
            return OperationResult(
                service_id=service_id,
                success=False,
                message=f"{message}, but pulling failed",
                output=pulled.output,
            )
        return OperationResult(service_id=service_id, success=True, message=f"{message} (pulled)")

    async def install_native_version(
        self,
        service_id: str,
        download: NativeDownload,
        progress: ProgressCallback | None = None,
    ) -> OperationResult:
        """Install a native release; refused while the native instance runs."""
        service = self.registry.get_service(service_id)
        backend = self.backend_for_mode(ExecutionMode.NATIVE)
        if await backend.status(service.id) == ServiceStatus.RUNNING:
            return OperationResult(
                service_id=service.id,
                success=False,
                message=f"Stop '{service.name}' before installing a new version",
            )

        try:
            target = await self.installer.install(service.id, download, progress)
        except InstallationError as e:
            self.logger.error("Install of %s failed: %s", service.id, e)
            return OperationResult(service_id=service.id, success=False, message=str(e))
        return OperationResult(
            service_id=service.id,
            success=True,
            message=f"Installed {download.version} into {target}",
        )
