"""
Click-based CLI for auxctl.

This module provides the main Click command group and serves as the
entry point for the auxctl CLI.

Usage:
    from auxctl.cli import cli
    cli()  # Invokes the CLI
"""

from __future__ import annotations

import click

from .context import AuxctlContext

# Version is loaded from package metadata
try:
    from importlib.metadata import version

    __version__ = version("auxctl")
except Exception:
    __version__ = "0.1.0"


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="auxctl")
@click.option(
    "--document",
    "-d",
    type=click.Path(dir_okay=False),
    help="Service document to use instead of the configured one (AUXCTL_DOCUMENT__PATH).",
)
@click.pass_context
def cli(ctx: click.Context, document: str | None) -> None:
    """auxctl - manage auxiliary services from one YAML document

    Each service runs either as a Docker container or as a native process,
    as chosen by its execution mode.

    \b
    Services:
        auxctl list                 List services in the document
        auxctl status [ID]          Show service state
        auxctl start ID...          Start services
        auxctl stop ID...           Stop services
        auxctl logs ID              Show recent output
        auxctl exec ID ACTION       Run a custom command in a running service

    \b
    Settings:
        auxctl param ...            Set command-line parameters
        auxctl override ...         Override ports, volumes, env, names
        auxctl mode ID MODE         Switch between docker and native
        auxctl versions ...         Discover and select versions
        auxctl config ...           Application configuration
    """
    ctx.ensure_object(dict)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)
    else:
        ctx.obj = AuxctlContext.create(document=document)


def register_commands() -> None:
    """Register all CLI commands with the main group."""
    from .commands import COMMANDS

    for cmd in COMMANDS:
        cli.add_command(cmd)


# Register commands at module load time
register_commands()


__all__ = [
    "AuxctlContext",
    "__version__",
    "cli",
    "register_commands",
]
