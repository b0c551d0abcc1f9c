"""
Helpers shared by commands that drive the async orchestrator.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from ...core.interfaces.presenter import IPresenter
from ...services.orchestration import OperationResult

T = TypeVar("T")


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a synchronous Click command."""
    return asyncio.run(coro)


def report(presenter: IPresenter, result: OperationResult, show_output: bool = True) -> None:
    """Print an operation result, its warnings and any captured output."""
    for warning in result.warnings:
        presenter.print_warning(warning)
    if result.success:
        presenter.print_success(result.message)
    else:
        presenter.print_error(result.message)
    if show_output and result.output:
        presenter.print(result.output.rstrip("\n"))
