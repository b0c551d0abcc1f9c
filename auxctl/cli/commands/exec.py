"""
Native Click implementation of the exec command.

Usage: auxctl exec SERVICE_ID [ACTION] [-i NAME=VALUE ...]
"""

from __future__ import annotations

import click

from ...core.models.service import CommandInput, CustomCommand, ServiceDefinition
from ...services.templates import CommandTemplateEngine
from ..context import AuxctlContext
from ..decorators import handle_errors, with_document
from ._async import report, run


def _commands(service: ServiceDefinition) -> list[tuple[str, CustomCommand, str]]:
    if service.menu is None:
        return []
    return [
        (item.id or item.action, item.command, item.label or item.command.description or "")
        for item in service.menu.submenu
        if item.command is not None
    ]


def _prompt(engine: CommandTemplateEngine, command_input: CommandInput) -> str:
    text = command_input.prompt or command_input.name
    kind = command_input.type.lower()

    if kind == "bool":
        initial = (command_input.default or "").lower() == "true"
        return "true" if click.confirm(text, default=initial) else "false"

    default = command_input.default or (None if command_input.required else "")
    while True:
        value = click.prompt(
            text,
            default=default,
            hide_input=kind == "password",
            show_default=kind != "password",
        )
        if engine.validate_input(command_input, value):
            return value
        click.echo(f"Value must match {command_input.pattern}")


def collect_inputs(
    engine: CommandTemplateEngine,
    command: CustomCommand,
    given: dict[str, str],
    interactive: bool,
) -> dict[str, str]:
    """Merge inputs given on the command line with prompted ones.

    Inputs already given are validated but not prompted for. When not
    interactive, inputs with a default use it and the rest stay missing,
    which fails template resolution before anything runs.
    """
    inputs = dict(given)
    for command_input in command.inputs:
        if command_input.name in inputs:
            if not engine.validate_input(command_input, inputs[command_input.name]):
                raise click.BadParameter(
                    f"{command_input.name} must match {command_input.pattern}", param_hint="--input"
                )
            continue
        if interactive:
            inputs[command_input.name] = _prompt(engine, command_input)
        elif command_input.default is not None:
            inputs[command_input.name] = command_input.default
        elif not command_input.required:
            inputs[command_input.name] = ""
    return inputs


def _parse_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    parsed = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"Expected NAME=VALUE, got {pair!r}", param_hint="--input")
        parsed[name] = value
    return parsed


@click.command("exec")
@click.argument("service_id")
@click.argument("action", required=False)
@click.option("--input", "-i", "input_pairs", multiple=True, metavar="NAME=VALUE", help="Supply an input.")
@click.pass_obj
@with_document
@handle_errors
def exec_command(ctx: AuxctlContext, service_id: str, action: str | None, input_pairs: tuple[str, ...]) -> None:
    """Run a custom command inside a running service.

    Without ACTION, lists the commands the service defines. Inputs not
    given with -i are prompted for.

    \b
    Examples:

        auxctl exec node

        auxctl exec node import-descriptor -i label=main
    """
    service = ctx.registry.get_service(service_id)

    if action is None:
        commands = _commands(service)
        if not commands:
            click.echo(f"{service.name} defines no custom commands.")
            return
        ctx.presenter.print_table(["ACTION", "DESCRIPTION"], [[a, d] for a, _, d in commands])
        return

    command = service.get_menu_command(action)
    if command is None:
        raise click.BadParameter(f"{service.name} has no command '{action}'", param_hint="ACTION")

    orchestrator = ctx.orchestrator
    inputs = collect_inputs(
        orchestrator.template_engine, command, _parse_pairs(input_pairs), ctx.is_interactive
    )
    result = run(orchestrator.run_custom_command(service_id, action, inputs))
    report(ctx.presenter, result)
    if not result.success:
        raise SystemExit(1)
