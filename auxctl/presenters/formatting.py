"""
Formatting helpers for service details.
"""

from __future__ import annotations

from typing import Any

from ..core.models.service import EnvironmentVariable, ServiceDefinition, ServiceParameter
from ..services.registry import resolver

MASK = "********"


def mask(value: Any, sensitive: bool) -> str:
    """Render a value for display, hiding it when sensitive.

    Examples:
        >>> mask("hunter2", True)
        '********'
        >>> mask(None, True)
        '-'
    """
    if value is None or value == "":
        return "-"
    if sensitive:
        return MASK
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def env_display(variable: EnvironmentVariable) -> str:
    value = mask(resolver.env_value(variable), variable.sensitive)
    if variable.value_override is not None:
        return f"{value} (override)"
    return value


def parameter_display(parameter: ServiceParameter) -> str:
    if parameter.value is not None:
        return mask(parameter.value, parameter.sensitive)
    if parameter.default is not None:
        return f"{mask(parameter.default, parameter.sensitive)} (default, not passed)"
    return "-"


def ports_display(service: ServiceDefinition) -> str:
    """Compact host:container list, e.g. ``18332:18332, 8080:80``."""
    parts = []
    for port in service.ports:
        if port.optional:
            continue
        parts.append(f"{resolver.host_port(port)}:{port.container_port}")
    return ", ".join(parts) or "-"


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(width - 3, 0)] + "..."
