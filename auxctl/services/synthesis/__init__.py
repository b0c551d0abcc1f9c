"""
Command synthesis: service definition to launch inputs.
"""

from .command_synthesizer import (
    build_environment,
    build_port_map,
    build_volume_map,
    parameter_tokens,
    read_only_paths,
    render_command,
    split_command_line,
    synthesize_command,
)
from .validation import split_list_value, validate_parameter_value

__all__ = [
    "build_environment",
    "build_port_map",
    "build_volume_map",
    "parameter_tokens",
    "read_only_paths",
    "render_command",
    "split_command_line",
    "split_list_value",
    "synthesize_command",
    "validate_parameter_value",
]
