"""
Service registry backed by the YAML service document.

The document is read once per registry instance and every edit writes the
whole document back immediately. There is no file locking: a concurrent
writer wins whichever save happens last.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ...core.exceptions import (
    DocumentLoadError,
    InvalidArgumentError,
    ServiceNotFoundError,
)
from ...core.interfaces.logger import ILogger
from ...core.models.base import DocumentModel
from ...core.models.service import (
    DockerImage,
    ExecutionMode,
    ServiceDefaults,
    ServiceDefinition,
    ServiceDocument,
    ServiceParameter,
)
from ..synthesis.validation import validate_parameter_value


def _assign(model: DocumentModel, name: str, value: Any) -> None:
    if value is None:
        model.unset(name)
    else:
        setattr(model, name, value)


class ServiceRegistry:
    """
    Loads, queries and edits the service document.

    A missing or corrupt document is not fatal: it is logged and the
    registry behaves as if it held zero services.
    """

    def __init__(self, path: Path, logger: ILogger | None = None) -> None:
        """
        Args:
            path: Location of the YAML service document
            logger: Logger for diagnostics
        """
        self.path = Path(path)
        self._logger = logger
        self._document: ServiceDocument | None = None
        self._loaded = False
        self.load_error: DocumentLoadError | None = None

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    # -------------------------------------------------------------------------
    # Loading and saving
    # -------------------------------------------------------------------------

    def load(self) -> ServiceDocument | None:
        """
        Read and parse the document from disk.

        Returns:
            The parsed document, or None when it is missing or invalid
        """
        self._loaded = True
        self.load_error = None
        try:
            self._document = self._read()
        except DocumentLoadError as e:
            self.logger.warning("%s", e)
            self.load_error = e
            self._document = None
        return self._document

    def _read(self) -> ServiceDocument:
        if not self.path.exists():
            raise DocumentLoadError("Service document not found", file_path=str(self.path))

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DocumentLoadError(
                f"Service document is not valid YAML: {e}", file_path=str(self.path), cause=e
            ) from e
        except OSError as e:
            raise DocumentLoadError(
                f"Cannot read service document: {e}", file_path=str(self.path), cause=e
            ) from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise DocumentLoadError(
                "Service document must be a mapping at the top level", file_path=str(self.path)
            )

        try:
            document = ServiceDocument.model_validate(raw)
        except ValidationError as e:
            raise DocumentLoadError(
                f"Service document failed validation: {e}", file_path=str(self.path), cause=e
            ) from e

        self.logger.debug("Loaded %d services from %s", len(document.services), self.path)
        return document

    @property
    def document(self) -> ServiceDocument | None:
        if not self._loaded:
            self.load()
        return self._document

    def save(self, document: ServiceDocument | None = None) -> None:
        """
        Write the full document, replacing the file.

        Fields never set are omitted. Explicit nulls, including a cleared
        override, are written as null. Keys unknown to this version are
        written back unchanged.
        """
        if document is not None:
            self._document = document
            self._loaded = True
        if self._document is None:
            raise DocumentLoadError("No service document loaded", file_path=str(self.path))

        data = self._document.model_dump(mode="json", exclude_unset=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False, allow_unicode=True)
        self.logger.debug("Saved service document to %s", self.path)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def services(self) -> list[ServiceDefinition]:
        return list(self.document.services) if self.document else []

    def enabled_services(self) -> list[ServiceDefinition]:
        """Enabled services ordered by menu position; unordered ones last."""
        enabled = [s for s in self.services() if s.enabled]

        def order(service: ServiceDefinition) -> tuple[int, int]:
            position = service.menu.main_menu_order if service.menu else None
            return (0, position) if position is not None else (1, 0)

        return sorted(enabled, key=order)

    def find_service(self, service_id: str) -> ServiceDefinition | None:
        return self.document.get_service(service_id) if self.document else None

    def get_service(self, service_id: str) -> ServiceDefinition:
        """
        Look up a service by id.

        Raises:
            ServiceNotFoundError: If no such service exists
        """
        service = self.find_service(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    @property
    def defaults(self) -> ServiceDefaults:
        return self.document.defaults if self.document else ServiceDefaults()

    # -------------------------------------------------------------------------
    # Edits (each one persists immediately)
    # -------------------------------------------------------------------------

    def _get_parameter(self, service: ServiceDefinition, name: str) -> ServiceParameter:
        parameter = service.get_parameter(name)
        if parameter is None:
            raise InvalidArgumentError(
                f"Service '{service.id}' has no parameter '{name}'", argument="parameter", value=name
            )
        return parameter

    def set_parameter_value(self, service_id: str, name: str, raw_value: Any) -> Any:
        """
        Validate and store a parameter value.

        On validation failure the previous value is kept and nothing is saved.

        Returns:
            The typed value stored
        """
        parameter = self._get_parameter(self.get_service(service_id), name)
        value = validate_parameter_value(parameter, raw_value)
        parameter.value = value
        self.save()
        return value

    def reset_parameter(self, service_id: str, name: str) -> None:
        """Clear a parameter's user value so it is no longer emitted."""
        parameter = self._get_parameter(self.get_service(service_id), name)
        parameter.unset("value")
        self.save()

    def set_port_override(self, service_id: str, port_name: str, host_port: int | None) -> None:
        service = self.get_service(service_id)
        port = service.get_port(port_name)
        if port is None:
            raise InvalidArgumentError(
                f"Service '{service_id}' has no port '{port_name}'", argument="port", value=port_name
            )
        if host_port is not None and not 1 <= host_port <= 65535:
            raise InvalidArgumentError(
                "Host port must be between 1 and 65535", argument="host_port", value=str(host_port)
            )
        _assign(port, "host_port_override", host_port)
        self.save()

    def set_volume_override(self, service_id: str, volume_name: str, host_path: str | None) -> None:
        service = self.get_service(service_id)
        volume = service.get_volume(volume_name)
        if volume is None:
            raise InvalidArgumentError(
                f"Service '{service_id}' has no volume '{volume_name}'",
                argument="volume",
                value=volume_name,
            )
        _assign(volume, "host_path_override", host_path or None)
        self.save()

    def set_env_override(self, service_id: str, name: str, value: str | None) -> None:
        service = self.get_service(service_id)
        variable = service.get_env(name)
        if variable is None:
            raise InvalidArgumentError(
                f"Service '{service_id}' has no environment variable '{name}'",
                argument="env",
                value=name,
            )
        _assign(variable, "value_override", value)
        self.save()

    def set_name_override(self, service_id: str, name: str | None) -> None:
        service = self.get_service(service_id)
        _assign(service, "container_name_override", name or None)
        self.save()

    def set_network_override(self, service_id: str, network: str | None) -> None:
        service = self.get_service(service_id)
        _assign(service, "network_override", network or None)
        self.save()

    def set_execution_mode(self, service_id: str, mode: ExecutionMode | str) -> None:
        """Switch the authoritative mode; the other mode's settings are kept."""
        service = self.get_service(service_id)
        service.execution_mode = mode  # type: ignore[assignment]
        self.save()

    def set_container_image(self, service_id: str, image: DockerImage) -> None:
        """Apply a discovered image as the service's container version."""
        service = self.get_service(service_id)
        container = service.container
        _assign(container, "repository", image.repository or None)
        container.image = image.image
        container.default_tag = image.tag
        # Reassign so a section that came from the defaults is marked set and saved.
        service.container = container
        self.save()
