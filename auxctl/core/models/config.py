"""
Configuration models.

Settings for auxctl itself, one model per config.toml table. The managed
services are described by the YAML service document instead.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from .base import ConfigSection

LogLevel = Literal["debug", "info", "warning", "error"]


class DocumentConfig(ConfigSection):
    """Service document location."""

    path: str = "services.yaml"


class DockerConfig(ConfigSection):
    """Container backend configuration section."""

    binary: str = "docker"
    startup_delay: float = Field(default=1.0, ge=0)
    shutdown_delay: float = Field(default=0.5, ge=0)
    stop_timeout: int = Field(default=10, ge=0)


class ProcessConfig(ConfigSection):
    """Native process backend configuration section."""

    services_root: str = "."
    startup_grace: float = Field(default=0.5, ge=0)
    terminate_timeout: float = Field(default=5.0, ge=0)
    kill_timeout: float = Field(default=2.0, ge=0)


class DiscoveryConfig(ConfigSection):
    """Version discovery configuration section."""

    api_url: str = "https://api.github.com"
    cache_ttl: float = Field(default=300.0, ge=0)
    regex_timeout: float = Field(default=1.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "auxctl/0.1"
    github_token: str | None = None

    @field_validator("api_url", mode="before")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate and normalize the API base URL."""
        if not isinstance(v, str) or not v.startswith(("http://", "https://")):
            raise ValueError("Discovery API URL must start with http:// or https://")
        return v.rstrip("/")


class LoggingConfig(ConfigSection):
    """Logging configuration section."""

    level: LogLevel = "warning"
    console: bool = False
    file: bool = True


class AuxctlConfig(ConfigSection):
    """Every config table at its defaults; save_config writes only what differs."""

    document: DocumentConfig = Field(default_factory=DocumentConfig)
    docker: DockerConfig = Field(default_factory=DockerConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
