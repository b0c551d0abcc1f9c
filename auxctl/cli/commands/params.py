"""
Native Click implementation of the param command.

Usage: auxctl param [show|set|unset] SERVICE_ID [NAME] [VALUE]
"""

from __future__ import annotations

import click

from ...presenters.formatting import mask, parameter_display
from ...services.synthesis import render_command, synthesize_command
from ..context import AuxctlContext
from ..decorators import handle_errors, with_document


@click.group("param", invoke_without_command=True)
@click.pass_context
def param(ctx: click.Context) -> None:
    """View or set command-line parameters of a service.

    A parameter is passed to the service only once it has a value;
    defaults in the service document are informational.

    \b
    Examples:

        auxctl param show node

        auxctl param set node rpcport 18443

        auxctl param unset node txindex
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@param.command("show")
@click.argument("service_id")
@click.option("--all", "show_hidden", is_flag=True, help="Include hidden parameters.")
@click.pass_obj
@with_document
@handle_errors
def param_show(ctx: AuxctlContext, service_id: str, show_hidden: bool) -> None:
    """Show parameters and the resulting command line."""
    service = ctx.registry.get_service(service_id)
    rows = [
        [p.name, p.type, p.cli_flag or "-", parameter_display(p), p.category or "-"]
        for p in service.parameters
        if show_hidden or not p.hidden
    ]
    if rows:
        ctx.presenter.print_table(["NAME", "TYPE", "FLAG", "VALUE", "CATEGORY"], rows)
    else:
        click.echo("No parameters.")

    if any(p.sensitive and p.value is not None for p in service.parameters):
        click.echo("\nCommand: (contains sensitive values, not shown)")
    else:
        click.echo(f"\nCommand: {render_command(synthesize_command(service)) or '-'}")


@param.command("set")
@click.argument("service_id")
@click.argument("name")
@click.argument("value")
@click.pass_obj
@with_document
@handle_errors
def param_set(ctx: AuxctlContext, service_id: str, name: str, value: str) -> None:
    """Set a parameter value.

    Lists (type string[]) take comma-separated values. The value is checked
    against the parameter's type, bounds and allowed values; an invalid value
    leaves the previous one in place.
    """
    typed = ctx.registry.set_parameter_value(service_id, name, value)
    parameter = ctx.registry.get_service(service_id).get_parameter(name)
    shown = mask(typed, parameter.sensitive if parameter else False)
    ctx.presenter.print_success(f"Set {service_id}.{name} = {shown}")


@param.command("unset")
@click.argument("service_id")
@click.argument("name")
@click.pass_obj
@with_document
@handle_errors
def param_unset(ctx: AuxctlContext, service_id: str, name: str) -> None:
    """Clear a parameter so it is no longer passed."""
    ctx.registry.reset_parameter(service_id, name)
    ctx.presenter.print_success(f"Cleared {service_id}.{name}")
