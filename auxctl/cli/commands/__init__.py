"""
Click command implementations for auxctl CLI.

Each module implements one command or command group. Commands are
registered with the main CLI group by register_commands() in auxctl.cli.
"""

from .config import config
from .exec import exec_command
from .lifecycle import logs, start, stop
from .overrides import mode, override
from .params import param
from .services import list_services, status
from .versions import versions

# Commands registered with the main group, in help order
COMMANDS = [
    list_services,
    status,
    start,
    stop,
    logs,
    exec_command,
    param,
    override,
    mode,
    versions,
    config,
]

__all__ = [
    "COMMANDS",
    "config",
    "exec_command",
    "list_services",
    "logs",
    "mode",
    "override",
    "param",
    "start",
    "status",
    "stop",
    "versions",
]
