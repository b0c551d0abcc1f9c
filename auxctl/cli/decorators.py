"""
Click decorators for auxctl CLI commands.

- with_document: Loads the service document, warning when it is unusable
- handle_errors: Reports AuxctlException as a Click error with its exit code
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import click

from ..core.exceptions import AuxctlException

if TYPE_CHECKING:
    from .context import AuxctlContext

F = TypeVar("F", bound=Callable[..., Any])


def with_document(f: F) -> F:
    """Decorator that loads the service document before the command runs.

    A missing or corrupt document is reported as a warning and the command
    continues with no services, so read-only commands still work.

    Usage:
        @cli.command()
        @click.pass_obj
        @with_document
        def status(ctx: AuxctlContext):
            ...

    Note:
        This decorator should be applied AFTER @click.pass_obj so that
        the AuxctlContext is available.
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        ctx_maybe: Any = args[0] if args else kwargs.get("ctx")
        if ctx_maybe is None:
            raise click.ClickException(
                "Internal error: AuxctlContext not available. "
                "Ensure @click.pass_obj is applied before @with_document."
            )
        ctx: AuxctlContext = ctx_maybe

        error = ctx.registry.load_error
        if error is not None:
            ctx.presenter.print_warning(f"{error}; continuing with no services")

        return f(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def handle_errors(f: F) -> F:
    """Decorator mapping AuxctlException to click.ClickException.

    The exception's exit_code is kept so scripts can tell failures apart.
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except AuxctlException as e:
            error = click.ClickException(str(e))
            error.exit_code = e.exit_code
            raise error from e

    return wrapper  # type: ignore[return-value]

