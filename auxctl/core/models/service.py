"""
Service document models.

The service document is a YAML file describing every auxiliary service that
auxctl manages: how to run it, which ports, volumes and environment it
needs, which command-line parameters it accepts, and where newer versions
can be discovered. Field names are snake_case in YAML and in Python.

User-chosen values (overrides, parameter values) are stored next to the
document defaults. Effective values are computed on read by
``auxctl.services.registry.resolver`` and are never written back.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from .base import DocumentModel


class ExecutionMode(str, Enum):
    """How a service is hosted."""

    DOCKER = "docker"
    NATIVE = "native"


# Accepted spellings for execution_mode in hand-written documents.
_MODE_ALIASES = {
    "docker": ExecutionMode.DOCKER,
    "container": ExecutionMode.DOCKER,
    "native": ExecutionMode.NATIVE,
    "process": ExecutionMode.NATIVE,
}


class ServiceDefaults(DocumentModel):
    """Document-wide defaults for container services."""

    docker_network: str = "auxnet"
    restart_policy: str = "unless-stopped"
    log_driver: str = "json-file"
    log_max_size: str = "10m"
    log_max_files: int = 3


class ContainerSpec(DocumentModel):
    """Container image and entry configuration."""

    image: str | None = None
    repository: str | None = None
    default_tag: str = "latest"
    container_name_default: str | None = None
    working_dir: str | None = None
    entrypoint: str | None = None
    # Legacy fixed base command, emitted before parameter flags.
    command: str | None = None
    # Executable name, inside the image or inside the native service directory.
    binary: str | None = None


class DynamicSource(DocumentModel):
    """A remote location that is queried for available versions."""

    repository: str
    filter: str | None = None
    whitelist: list[str] = Field(default_factory=list)


class DockerImage(DocumentModel):
    """A concrete container image candidate."""

    repository: str = ""
    image: str
    tag: str = "latest"
    description: str | None = None

    @property
    def reference(self) -> str:
        base = f"{self.repository}/{self.image}" if self.repository else self.image
        return f"{base}:{self.tag}"


class NativeDownload(DocumentModel):
    """A downloadable native release archive."""

    url: str
    version: str
    platform: str
    description: str | None = None
    whitelist: list[str] = Field(default_factory=list)


class DockerSource(DocumentModel):
    dynamic: DynamicSource | None = None
    images: list[DockerImage] = Field(default_factory=list)


class NativeSource(DocumentModel):
    dynamic: DynamicSource | None = None
    downloads: list[NativeDownload] = Field(default_factory=list)


class ServiceSource(DocumentModel):
    """Where container images and native binaries come from."""

    docker: DockerSource | None = None
    native: NativeSource | None = None


class PortMapping(DocumentModel):
    name: str
    container_port: int
    host_port_default: int | None = None
    host_port_override: int | None = None
    protocol: str = "tcp"
    optional: bool = False
    description: str | None = None


class VolumeMapping(DocumentModel):
    name: str
    container_path: str
    host_path_default: str | None = None
    host_path_override: str | None = None
    read_only: bool = False
    # The host path names a single file rather than a directory.
    is_file: bool = False
    description: str | None = None


class EnvironmentVariable(DocumentModel):
    name: str
    value: str | None = None
    value_override: str | None = None
    sensitive: bool = False
    description: str | None = None

    @field_validator("value", "value_override", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        """YAML turns `value: 8080` into an int; environment values are text."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)


class ParameterValidation(DocumentModel):
    min: int | None = None
    max: int | None = None


class ServiceParameter(DocumentModel):
    """A command-line parameter of the wrapped binary.

    ``value`` holds the user's explicit choice. A parameter only reaches the
    synthesized command line when ``value`` is not None; ``default`` is
    informational and never emitted by itself.
    """

    name: str
    cli_flag: str | None = None
    cli_alias: str | None = None
    type: str = "string"
    default: Any = None
    value: Any = None
    use_equals: bool | None = None
    validation: ParameterValidation | None = None
    enum: list[str] | None = None
    required: bool = False
    hidden: bool = False
    sensitive: bool = False
    category: str | None = None
    description: str | None = None

    @property
    def has_user_value(self) -> bool:
        return self.value is not None


class DependsOn(DocumentModel):
    service_id: str
    condition: str = "running"
    reason: str | None = None


class HealthCheck(DocumentModel):
    command: list[str] = Field(default_factory=list)
    interval_seconds: int = 30
    timeout_seconds: int = 10
    retries: int = 3
    start_period_seconds: int = 60


class CommandInput(DocumentModel):
    """A value collected from the user before running a custom command."""

    name: str
    prompt: str | None = None
    type: str = "string"
    default: str | None = None
    required: bool = True
    pattern: str | None = None
    description: str | None = None


class CustomCommand(DocumentModel):
    """A templated command executed inside a running service instance."""

    binary: str
    arguments: list[str] = Field(default_factory=list)
    inputs: list[CommandInput] = Field(default_factory=list)
    description: str | None = None
    show_output: bool = True

    @field_validator("arguments", mode="before")
    @classmethod
    def stringify_arguments(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [a if isinstance(a, str) else str(a) for a in v]
        return v


class SubmenuItem(DocumentModel):
    action: str
    id: str | None = None
    label: str | None = None
    label_running: str | None = None
    label_stopped: str | None = None
    handler: str | None = None
    command: CustomCommand | None = None


class MenuConfig(DocumentModel):
    main_menu_order: int | None = None
    submenu: list[SubmenuItem] = Field(default_factory=list)


class ServiceDefinition(DocumentModel):
    """One managed auxiliary service."""

    id: str
    name: str
    description: str | None = None
    category: str | None = None
    menu_label: str | None = None
    documentation_url: str | None = None
    enabled: bool = True
    execution_mode: ExecutionMode = ExecutionMode.DOCKER
    container: ContainerSpec = Field(default_factory=ContainerSpec)
    source: ServiceSource | None = None
    ports: list[PortMapping] = Field(default_factory=list)
    volumes: list[VolumeMapping] = Field(default_factory=list)
    environment: list[EnvironmentVariable] = Field(default_factory=list)
    parameters: list[ServiceParameter] = Field(default_factory=list)
    depends_on: list[DependsOn] = Field(default_factory=list)
    health_check: HealthCheck | None = None
    menu: MenuConfig | None = None
    container_name_override: str | None = None
    network_override: str | None = None
    # True: the native process shares the console; False: output goes to a log file.
    spawn_new_console: bool = True
    gpu_passthrough: bool = False

    @field_validator("execution_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            mode = _MODE_ALIASES.get(v.strip().lower())
            if mode is None:
                raise ValueError(f"execution_mode must be 'docker' or 'native', got {v!r}")
            return mode
        return v

    @property
    def mode(self) -> ExecutionMode:
        # use_enum_values stores the plain string
        return ExecutionMode(self.execution_mode)

    def get_parameter(self, name: str) -> ServiceParameter | None:
        return next((p for p in self.parameters if p.name == name), None)

    def get_port(self, name: str) -> PortMapping | None:
        return next((p for p in self.ports if p.name == name), None)

    def get_volume(self, name: str) -> VolumeMapping | None:
        return next((v for v in self.volumes if v.name == name), None)

    def get_env(self, name: str) -> EnvironmentVariable | None:
        return next((e for e in self.environment if e.name == name), None)

    def get_menu_command(self, action_id: str) -> CustomCommand | None:
        """Find a custom command submenu entry by its id or action name."""
        if self.menu is None:
            return None
        for item in self.menu.submenu:
            if item.command is not None and action_id in (item.id, item.action):
                return item.command
        return None


class ServiceDocument(DocumentModel):
    """Root of the YAML service document."""

    version: str = "1.0"
    defaults: ServiceDefaults = Field(default_factory=ServiceDefaults)
    services: list[ServiceDefinition] = Field(default_factory=list)
    categories: dict[str, Any] | None = None
    parameter_categories: dict[str, Any] | None = None

    @field_validator("version", mode="before")
    @classmethod
    def stringify_version(cls, v: Any) -> Any:
        # `version: 1.0` parses as a float in YAML
        if isinstance(v, (int, float)):
            return str(v)
        return v

    def get_service(self, service_id: str) -> ServiceDefinition | None:
        return next((s for s in self.services if s.id == service_id), None)
