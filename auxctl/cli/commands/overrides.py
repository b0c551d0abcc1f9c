"""
Native Click implementation of the override and mode commands.

Usage:
    auxctl override port|volume|env SERVICE_ID NAME [VALUE] [--reset]
    auxctl override name|network SERVICE_ID [VALUE] [--reset]
    auxctl mode SERVICE_ID [docker|native]
"""

from __future__ import annotations

import click

from ..context import AuxctlContext
from ..decorators import handle_errors, with_document

MODE_CHOICES = ["docker", "native", "container", "process"]


def _value_or_reset(value, reset: bool):
    if reset and value is not None:
        raise click.UsageError("Give a value or --reset, not both.")
    if not reset and value is None:
        raise click.UsageError("Give a value, or --reset to return to the default.")
    return None if reset else value


def _done(ctx: AuxctlContext, what: str, value) -> None:
    if value is None:
        ctx.presenter.print_success(f"Reset {what} to its default")
    else:
        ctx.presenter.print_success(f"Set {what} = {value}")


@click.group("override", invoke_without_command=True)
@click.pass_context
def override(ctx: click.Context) -> None:
    """Override document defaults for a service.

    Overrides are stored next to the defaults in the service document and
    take precedence until reset.

    \b
    Examples:

        auxctl override port node rpc 28332

        auxctl override volume node data ~/node-data

        auxctl override env node RPC_PASSWORD secret

        auxctl override name node --reset
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@override.command("port")
@click.argument("service_id")
@click.argument("name")
@click.argument("host_port", type=int, required=False)
@click.option("--reset", is_flag=True, help="Remove the override.")
@click.pass_obj
@with_document
@handle_errors
def override_port(ctx: AuxctlContext, service_id: str, name: str, host_port: int | None, reset: bool) -> None:
    """Publish a container port on a different host port."""
    value = _value_or_reset(host_port, reset)
    ctx.registry.set_port_override(service_id, name, value)
    _done(ctx, f"{service_id} port {name}", value)


@override.command("volume")
@click.argument("service_id")
@click.argument("name")
@click.argument("host_path", required=False)
@click.option("--reset", is_flag=True, help="Remove the override.")
@click.pass_obj
@with_document
@handle_errors
def override_volume(ctx: AuxctlContext, service_id: str, name: str, host_path: str | None, reset: bool) -> None:
    """Mount a different host path for a volume."""
    value = _value_or_reset(host_path, reset)
    ctx.registry.set_volume_override(service_id, name, value)
    _done(ctx, f"{service_id} volume {name}", value)


@override.command("env")
@click.argument("service_id")
@click.argument("name")
@click.argument("value", required=False)
@click.option("--reset", is_flag=True, help="Remove the override.")
@click.pass_obj
@with_document
@handle_errors
def override_env(ctx: AuxctlContext, service_id: str, name: str, value: str | None, reset: bool) -> None:
    """Override an environment variable. An empty value omits the variable."""
    value = _value_or_reset(value, reset)
    ctx.registry.set_env_override(service_id, name, value)
    variable = ctx.registry.get_service(service_id).get_env(name)
    shown = "********" if value and variable is not None and variable.sensitive else value
    _done(ctx, f"{service_id} env {name}", shown)


@override.command("name")
@click.argument("service_id")
@click.argument("container_name", required=False)
@click.option("--reset", is_flag=True, help="Remove the override.")
@click.pass_obj
@with_document
@handle_errors
def override_name(ctx: AuxctlContext, service_id: str, container_name: str | None, reset: bool) -> None:
    """Use a different container name."""
    value = _value_or_reset(container_name, reset)
    ctx.registry.set_name_override(service_id, value)
    _done(ctx, f"{service_id} container name", value)


@override.command("network")
@click.argument("service_id")
@click.argument("network", required=False)
@click.option("--reset", is_flag=True, help="Remove the override.")
@click.pass_obj
@with_document
@handle_errors
def override_network(ctx: AuxctlContext, service_id: str, network: str | None, reset: bool) -> None:
    """Attach the container to a different network."""
    value = _value_or_reset(network, reset)
    ctx.registry.set_network_override(service_id, value)
    _done(ctx, f"{service_id} network", value)


@click.command("mode")
@click.argument("service_id")
@click.argument("mode", type=click.Choice(MODE_CHOICES, case_sensitive=False), required=False)
@click.pass_obj
@with_document
@handle_errors
def mode(ctx: AuxctlContext, service_id: str, mode: str | None) -> None:
    """Show or switch how a service runs.

    Settings of the other mode are kept, so switching back restores them.
    Stop the service before switching.
    """
    if mode is None:
        click.echo(ctx.registry.get_service(service_id).mode.value)
        return
    ctx.registry.set_execution_mode(service_id, mode.lower())
    current = ctx.registry.get_service(service_id).mode.value
    ctx.presenter.print_success(f"{service_id} now runs in {current} mode")
