"""
`auxctl config`: read and change settings in .auxctl/config.toml.
"""

import click

from ...config import config_get, config_list, config_set
from ...presenters.formatting import mask
from ..context import AuxctlContext
from ..decorators import handle_errors

# Never echoed back in clear text.
SECRET_KEYS = {"discovery.github_token"}


def _shown(key: str, value) -> str:
    return mask(value, key in SECRET_KEYS)


@click.group("config", invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context) -> None:
    """Application configuration.

    Values set here go to .auxctl/config.toml in the current directory
    (or the nearest parent that has one), or with --user to the per-user
    file ~/.config/auxctl/config.toml. The project file wins over the user
    file, and AUXCTL_<SECTION>__<KEY> environment variables win over both.

    \b
        auxctl config list
        auxctl config get docker.binary
        auxctl config set process.services_root ~/services
        auxctl config set --user discovery.github_token ghp_...
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@config.command("list")
@click.pass_obj
def config_list_cmd(ctx: AuxctlContext) -> None:
    """Show every key with its default and current value."""
    rows = [
        [key, _shown(key, config_get(key, start_dir=str(ctx.cwd))), _shown(key, info["default"])]
        for key, info in config_list().items()
    ]
    if ctx.settings.config_file:
        click.echo(f"Config file: {ctx.settings.config_file}")
    ctx.presenter.print_table(["KEY", "VALUE", "DEFAULT"], rows)
    click.echo("")
    for key, info in config_list().items():
        click.echo(f"{key}: {info['description']}")


@config.command("get")
@click.argument("key")
@click.pass_obj
def config_get_cmd(ctx: AuxctlContext, key: str) -> None:
    """Print the effective value of KEY (e.g. docker.binary)."""
    value = config_get(key, start_dir=str(ctx.cwd))
    click.echo(f"{key}: {'(not set)' if value is None else _shown(key, value)}")


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--user", is_flag=True, help="Write the per-user config file instead of the project one.")
@click.pass_obj
@handle_errors
def config_set_cmd(ctx: AuxctlContext, key: str, value: str, user: bool) -> None:
    """Store VALUE for KEY in the project (or user) config file."""
    path, typed_value = config_set(key, value, start_dir=str(ctx.cwd), user=user)
    ctx.presenter.print_success(f"Set {key} = {_shown(key, typed_value)}")
    click.echo(f"Saved to {path}")
