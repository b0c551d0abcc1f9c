"""
Native Click implementation of the list and status commands.

Usage:
    auxctl list [--all]
    auxctl status [SERVICE_ID]
"""

from __future__ import annotations

import click

from ...core.exceptions import BackendUnavailableError
from ...core.models.backend import ServiceStatus
from ...core.models.service import ExecutionMode, ServiceDefinition
from ...presenters.formatting import env_display, parameter_display, ports_display
from ...services.registry import resolver
from ..context import AuxctlContext
from ..decorators import handle_errors, with_document
from ._async import run


@click.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include disabled services.")
@click.pass_obj
@with_document
def list_services(ctx: AuxctlContext, show_all: bool) -> None:
    """List the services defined in the service document."""
    services = ctx.registry.services() if show_all else ctx.registry.enabled_services()
    if not services:
        click.echo("No services defined.")
        return

    rows = [
        [
            s.id,
            s.name,
            s.mode.value,
            s.category or "-",
            "yes" if s.enabled else "no",
        ]
        for s in services
    ]
    ctx.presenter.print_table(["ID", "NAME", "MODE", "CATEGORY", "ENABLED"], rows)


@click.command("status")
@click.argument("service_id", required=False)
@click.pass_obj
@with_document
@handle_errors
def status(ctx: AuxctlContext, service_id: str | None) -> None:
    """Show service state.

    Without SERVICE_ID, shows every enabled service. With it, shows the
    service's effective configuration as well.
    """
    presenter = ctx.presenter
    orchestrator = ctx.orchestrator

    if service_id is None:
        statuses = run(orchestrator.statuses())
        if not statuses:
            click.echo("No services defined.")
            return
        rows = [
            [
                service.id,
                orchestrator.instance_name(service),
                service.mode.value,
                ports_display(service) if service.mode == ExecutionMode.DOCKER else "-",
                presenter.format_status(state.value),
            ]
            for service, state in statuses
        ]
        presenter.print_table(["ID", "INSTANCE", "MODE", "PORTS", "STATUS"], rows)
        return

    service = ctx.registry.get_service(service_id)
    try:
        state = run(orchestrator.service_status(service_id))
    except BackendUnavailableError as e:
        presenter.print_warning(str(e))
        state = ServiceStatus.UNKNOWN
    _print_details(ctx, service, presenter.format_status(state.value))


def _print_details(ctx: AuxctlContext, service: ServiceDefinition, state: str) -> None:
    presenter = ctx.presenter
    presenter.print_section(service.name)
    presenter.print_key_value("Status", state)
    presenter.print_key_value("Mode", service.mode.value)
    presenter.print_key_value("Instance", ctx.orchestrator.instance_name(service))
    if service.description:
        presenter.print_key_value("Description", service.description)

    if service.mode == ExecutionMode.DOCKER:
        presenter.print_key_value("Image", resolver.image_reference(service))
        presenter.print_key_value("Network", resolver.network(service, ctx.registry.defaults))
        for port in service.ports:
            suffix = " (optional, not published)" if port.optional else ""
            presenter.print_key_value(
                f"Port {port.name}", f"{resolver.host_port(port)} -> {port.container_port}{suffix}", indent=1
            )
        for volume in service.volumes:
            mode = "ro" if volume.read_only else "rw"
            presenter.print_key_value(
                f"Volume {volume.name}",
                f"{resolver.host_path(volume) or '-'} -> {volume.container_path} ({mode})",
                indent=1,
            )
    else:
        presenter.print_key_value("Binary", resolver.binary_name(service))

    for variable in service.environment:
        presenter.print_key_value(f"Env {variable.name}", env_display(variable), indent=1)
    for parameter in service.parameters:
        if parameter.hidden:
            continue
        presenter.print_key_value(f"Param {parameter.name}", parameter_display(parameter), indent=1)
