"""
Command synthesizer.

Turns a service definition into the concrete launch inputs a backend needs:
the argument token list, port and volume maps, the read-only volume list
and the environment. Every function here is pure: the same definition
always yields the same output, and nothing is written back.
"""

from __future__ import annotations

import shlex
from typing import Any

from ...core.exceptions import InvalidArgumentError
from ...core.models.service import ServiceDefinition, ServiceParameter
from ..registry import resolver
from .validation import split_list_value


def split_command_line(text: str) -> list[str]:
    """
    Split a command line into tokens, honouring single and double quotes.

    Raises:
        InvalidArgumentError: On an unterminated quote
    """
    try:
        return shlex.split(text)
    except ValueError as e:
        raise InvalidArgumentError(
            f"Cannot split command line: {e}", argument="command", value=text, cause=e
        ) from e


def render_command(tokens: list[str]) -> str:
    """Join tokens into a copy-pasteable shell command line."""
    return shlex.join(tokens)


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parameter_tokens(parameter: ServiceParameter) -> list[str]:
    """
    Render one parameter as command-line tokens.

    Only parameters with an explicit user value are rendered. A bool emits
    its bare flag when true and nothing otherwise. Other types use
    ``flag=value`` unless ``use_equals`` is false, in which case the flag
    and value are separate tokens. ``string[]`` repeats the flag per element.
    """
    flag = parameter.cli_flag
    if parameter.hidden or not parameter.has_user_value or not flag:
        return []

    value = parameter.value

    if parameter.type == "bool":
        return [flag] if _is_true(value) else []

    use_equals = True if parameter.use_equals is None else parameter.use_equals

    def render(item: str) -> list[str]:
        return [f"{flag}={item}"] if use_equals else [flag, item]

    if parameter.type == "string[]":
        tokens: list[str] = []
        for item in split_list_value(value):
            tokens.extend(render(item))
        return tokens

    return render(_format_scalar(value))


def synthesize_command(service: ServiceDefinition) -> list[str]:
    """
    Build the full argument list for a service.

    Order: binary, legacy base command tokens, then parameters in
    declaration order.
    """
    tokens: list[str] = []
    if service.container.binary:
        tokens.append(service.container.binary)
    if service.container.command:
        tokens.extend(split_command_line(service.container.command))
    for parameter in service.parameters:
        tokens.extend(parameter_tokens(parameter))
    return tokens


def build_port_map(service: ServiceDefinition) -> dict[int, int]:
    """Map effective host port to container port, skipping optional ports."""
    ports: dict[int, int] = {}
    for port in service.ports:
        if port.optional:
            continue
        ports[resolver.host_port(port)] = port.container_port
    return ports


def build_volume_map(service: ServiceDefinition) -> dict[str, str]:
    """Map effective host path to container path; volumes without a host path are skipped."""
    volumes: dict[str, str] = {}
    for volume in service.volumes:
        host = resolver.host_path(volume)
        if host:
            volumes[host] = volume.container_path
    return volumes


def read_only_paths(service: ServiceDefinition) -> list[str]:
    """Host paths of volumes mounted read-only."""
    paths = []
    for volume in service.volumes:
        host = resolver.host_path(volume)
        if host and volume.read_only:
            paths.append(host)
    return paths


def build_environment(service: ServiceDefinition) -> dict[str, str]:
    """Effective environment; variables resolving to empty are omitted."""
    env: dict[str, str] = {}
    for variable in service.environment:
        value = resolver.env_value(variable)
        if value:
            env[variable.name] = value
    return env
