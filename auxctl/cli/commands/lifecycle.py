"""
Native Click implementation of the start, stop and logs commands.

Usage:
    auxctl start [--all] [SERVICE_ID...]
    auxctl stop [--all] [SERVICE_ID...]
    auxctl logs [-n LINES] SERVICE_ID

Native services are child processes of auxctl, so `start` stays in the
foreground while any of them runs and stops them on Ctrl-C.
"""

from __future__ import annotations

import asyncio

import click

from ...core.exceptions import AuxctlException
from ...core.models.service import ExecutionMode
from ...services.orchestration import OperationResult, ServiceOrchestrator, ShutdownSignalHandler
from ..context import AuxctlContext
from ..decorators import handle_errors, with_document
from ._async import report, run

# Seconds between checks for native processes that exited on their own.
SUPERVISE_POLL_INTERVAL = 1.0


def _select(ctx: AuxctlContext, service_ids: tuple[str, ...], select_all: bool) -> list[str]:
    if select_all:
        return [s.id for s in ctx.registry.enabled_services()]
    if not service_ids:
        raise click.UsageError("Give at least one SERVICE_ID, or --all.")
    for service_id in service_ids:
        ctx.registry.get_service(service_id)
    return list(dict.fromkeys(service_ids))


async def _gather_results(service_ids: list[str], operation) -> list[OperationResult]:
    """Run operation for every service concurrently; errors are scoped per service."""
    outcomes = await asyncio.gather(*(operation(s) for s in service_ids), return_exceptions=True)
    results = []
    for service_id, outcome in zip(service_ids, outcomes):
        if isinstance(outcome, AuxctlException):
            results.append(OperationResult(service_id=service_id, success=False, message=str(outcome)))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.append(outcome)
    return results


def _print_results(ctx: AuxctlContext, results: list[OperationResult]) -> int:
    failed = 0
    for result in results:
        click.echo(f"[{result.service_id}]")
        report(ctx.presenter, result)
        if not result.success:
            failed += 1
    return failed


async def _supervise(ctx: AuxctlContext, orchestrator: ServiceOrchestrator) -> None:
    names = orchestrator.native_instance_names()
    click.echo(f"Supervising native services: {', '.join(names)}. Press Ctrl+C to stop them.")

    handler = ShutdownSignalHandler(
        on_first_interrupt=lambda: click.echo("\nStopping native services (Ctrl+C again to abort)..."),
    )
    handler.install()
    try:
        while orchestrator.native_instance_names():
            try:
                await asyncio.wait_for(handler.wait(), timeout=SUPERVISE_POLL_INTERVAL)
                break
            except asyncio.TimeoutError:
                continue
        else:
            click.echo("All native services have exited.")
    finally:
        handler.restore()
        stopped = await orchestrator.stop_native_instances()
        _print_results(ctx, stopped)


async def _start(ctx: AuxctlContext, service_ids: list[str]) -> int:
    orchestrator = ctx.orchestrator
    results = await _gather_results(service_ids, orchestrator.start_service)
    failed = _print_results(ctx, results)

    started_native = [
        r.service_id
        for r in results
        if r.success and ctx.registry.get_service(r.service_id).mode == ExecutionMode.NATIVE
    ]
    if started_native:
        await _supervise(ctx, orchestrator)
    return failed


@click.command("start")
@click.argument("service_ids", nargs=-1)
@click.option("--all", "start_all", is_flag=True, help="Start every enabled service.")
@click.pass_obj
@with_document
@handle_errors
def start(ctx: AuxctlContext, service_ids: tuple[str, ...], start_all: bool) -> None:
    """Start services.

    Container services are started detached. Native services keep auxctl
    in the foreground until Ctrl+C, which stops them.

    \b
    Examples:

        auxctl start node            # Start one service

        auxctl start --all           # Start all enabled services
    """
    selected = _select(ctx, service_ids, start_all)
    if not selected:
        click.echo("No services to start.")
        return
    if run(_start(ctx, selected)):
        raise SystemExit(1)


@click.command("stop")
@click.argument("service_ids", nargs=-1)
@click.option("--all", "stop_all", is_flag=True, help="Stop every enabled service.")
@click.pass_obj
@with_document
@handle_errors
def stop(ctx: AuxctlContext, service_ids: tuple[str, ...], stop_all: bool) -> None:
    """Stop services. Stopping a service that is not running is not an error."""
    selected = _select(ctx, service_ids, stop_all)
    if not selected:
        click.echo("No services to stop.")
        return
    results = run(_gather_results(selected, ctx.orchestrator.stop_service))
    if _print_results(ctx, results):
        raise SystemExit(1)


@click.command("logs")
@click.argument("service_id")
@click.option("--tail", "-n", "tail_lines", default=100, show_default=True, help="Number of lines to show.")
@click.pass_obj
@with_document
@handle_errors
def logs(ctx: AuxctlContext, service_id: str, tail_lines: int) -> None:
    """Show the most recent output of a service."""
    output = run(ctx.orchestrator.service_logs(service_id, tail_lines))
    if not output:
        click.echo("No log output.")
        return
    click.echo(output.rstrip("\n"))
