"""
Custom command template engine.

Custom commands in the service document carry placeholders in their
arguments:

- ``{{input:<name>}}`` is replaced by a value the user supplied
- ``{{macro:<Name>(arg, ...)}}`` is replaced by the result of a named macro;
  the parentheses may be omitted when there are no arguments

Every input is checked before any macro runs. Placeholders are then
replaced in a single pass, so text coming from an input value is never
expanded again. A command is resolved completely before it is handed to a
backend, so a resolution error means nothing ran.
"""

from __future__ import annotations

import re

from ...core.exceptions import TemplateResolutionError
from ...core.interfaces.logger import ILogger
from ...core.models.service import CommandInput, CustomCommand
from ..discovery.filtering import DEFAULT_TIMEOUT, matches_within
from .macros import Macro, WalletSource, default_macros

INPUT_PATTERN = re.compile(r"\{\{input:(\w+)\}\}")
MACRO_PATTERN = re.compile(r"\{\{macro:(\w+(?:\.\w+)?)(?:\(([^)]*)\))?\}\}")
PLACEHOLDER_PATTERN = re.compile(rf"{INPUT_PATTERN.pattern}|{MACRO_PATTERN.pattern}")


class CommandTemplateEngine:
    """Resolves input and macro placeholders in custom commands."""

    def __init__(
        self,
        wallet_provider: WalletSource | None = None,
        *,
        pattern_timeout: float = DEFAULT_TIMEOUT,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            wallet_provider: Returns the loaded wallet, or None if none is loaded
            pattern_timeout: Seconds allowed for input pattern validation
            logger: Logger for diagnostics
        """
        self._macros: dict[str, Macro] = default_macros(wallet_provider)
        self.pattern_timeout = pattern_timeout
        self._logger = logger

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    def register_macro(self, name: str, fn: Macro) -> None:
        """Add or replace a macro."""
        self._macros[name] = fn

    @property
    def macros(self) -> list[str]:
        return sorted(self._macros)

    def resolve(self, template: str, inputs: dict[str, str]) -> str:
        """
        Resolve every placeholder in a single template string.

        Raises:
            TemplateResolutionError: For a missing input, an unknown macro, or
                a macro that failed
        """
        for match in INPUT_PATTERN.finditer(template):
            if match.group(1) not in inputs:
                raise TemplateResolutionError(f"Missing input: {match.group(1)}", placeholder=match.group(0))

        def replace(match: re.Match[str]) -> str:
            if match.group(1) is not None:
                return inputs[match.group(1)]
            name, raw_args = match.group(2), match.group(3)
            fn = self._macros.get(name)
            if fn is None:
                raise TemplateResolutionError(f"Unknown macro: {name}", placeholder=match.group(0))
            args = [a.strip() for a in raw_args.split(",")] if raw_args and raw_args.strip() else []
            try:
                return fn(args)
            except TemplateResolutionError:
                raise
            except Exception as e:
                raise TemplateResolutionError(
                    f"Macro {name} failed: {e}", placeholder=match.group(0), cause=e
                ) from e

        return PLACEHOLDER_PATTERN.sub(replace, template)

    def resolve_arguments(self, command: CustomCommand, inputs: dict[str, str]) -> list[str]:
        """Resolve each argument of a command, in order."""
        return [self.resolve(arg, inputs) for arg in command.arguments]

    def process_command(self, command: CustomCommand, inputs: dict[str, str]) -> str:
        """
        Resolve a custom command into the command line to execute.

        Returns:
            The binary followed by the resolved arguments, space separated
        """
        return " ".join([command.binary, *self.resolve_arguments(command, inputs)])

    def validate_input(self, command_input: CommandInput, value: str) -> bool:
        """
        Check a value against the input's pattern.

        Empty values and inputs without a pattern always pass. A pattern that
        does not finish within the time limit is skipped and the value passes.
        """
        if not command_input.pattern or not value:
            return True
        result = matches_within(command_input.pattern, value, timeout=self.pattern_timeout)
        if result is None:
            self.logger.warning(
                "Validation of input %s skipped: pattern took too long", command_input.name
            )
            return True
        return result
