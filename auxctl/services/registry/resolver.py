"""
Effective-value resolution for service definitions.

Each function applies the precedence user override, then document default,
then a synthesized fallback. Nothing here mutates the definition, so the
same inputs always give the same answers and resolved values never leak
into the saved document.
"""

from __future__ import annotations

from ...core.models.service import (
    EnvironmentVariable,
    PortMapping,
    ServiceDefaults,
    ServiceDefinition,
    VolumeMapping,
)

CONTAINER_NAME_PREFIX = "aux-"
DEFAULT_TAG = "latest"


def container_name(service: ServiceDefinition) -> str:
    return (
        service.container_name_override
        or service.container.container_name_default
        or f"{CONTAINER_NAME_PREFIX}{service.id}"
    )


def network(service: ServiceDefinition, defaults: ServiceDefaults | None = None) -> str:
    defaults = defaults or ServiceDefaults()
    return service.network_override or defaults.docker_network


def repository(service: ServiceDefinition) -> str:
    """Registry prefix, empty when the image lives in the default registry."""
    return service.container.repository or ""


def image_name(service: ServiceDefinition) -> str:
    return service.container.image or service.id


def image_tag(service: ServiceDefinition) -> str:
    return service.container.default_tag or DEFAULT_TAG


def image_reference(service: ServiceDefinition) -> str:
    """Full image reference: ``repository/image:tag`` or ``image:tag``."""
    repo = repository(service).rstrip("/")
    name = image_name(service)
    base = f"{repo}/{name}" if repo else name
    return f"{base}:{image_tag(service)}"


def host_port(port: PortMapping) -> int:
    if port.host_port_override is not None:
        return port.host_port_override
    if port.host_port_default is not None:
        return port.host_port_default
    return port.container_port


def host_path(volume: VolumeMapping) -> str | None:
    return volume.host_path_override or volume.host_path_default


def env_value(variable: EnvironmentVariable) -> str | None:
    if variable.value_override is not None:
        return variable.value_override
    return variable.value


def binary_name(service: ServiceDefinition) -> str:
    return service.container.binary or service.id
