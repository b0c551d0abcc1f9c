"""
Console presenter for terminal output.

Renders operator-facing output for the CLI. Diagnostics go to the logger,
never through here.
"""

import sys
from typing import Any

from ..core.interfaces.presenter import IPresenter

BOLD = "\033[1m"

_STATUS_COLORS = {
    "running": "\033[92m",
    "stopped": "\033[93m",
    "not_found": "\033[90m",
    "unknown": "\033[91m",
}

_STATUS_LABELS = {
    "running": "running",
    "stopped": "stopped",
    "not_found": "not created",
    "unknown": "unknown",
}


class ConsolePresenter(IPresenter):
    """
    Console output presenter.

    Colors are used only when stdout is a terminal.
    """

    def __init__(self, use_color: bool = True, file=None) -> None:
        """
        Args:
            use_color: Whether to use ANSI color codes
            file: Output file (defaults to sys.stdout)
        """
        self._color_enabled = use_color
        self._out = file

    @property
    def _file(self):
        # Looked up per call so redirected stdout (tests, pipes) is honored.
        return self._out or sys.stdout

    @property
    def _err_file(self):
        return sys.stderr

    @property
    def _use_color(self) -> bool:
        return self._color_enabled and self._file.isatty()

    def _paint(self, text: str, code: str) -> str:
        return f"{code}{text}\033[0m" if self._use_color else text

    def print(self, message: str) -> None:
        print(message, file=self._file)

    def print_error(self, message: str) -> None:
        print(self._paint(f"Error: {message}", "\033[91m"), file=self._err_file)

    def print_warning(self, message: str) -> None:
        print(self._paint(f"Warning: {message}", "\033[93m"), file=self._err_file)

    def print_success(self, message: str) -> None:
        print(self._paint(message, "\033[92m"), file=self._file)

    def print_table(self, headers: list[str], rows: list[list[str]]) -> None:
        """
        Print a column-aligned table.

        Widths are computed from the raw cell text; a colored cell belongs in
        the last column.
        """
        if not rows:
            return

        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                if i < len(widths):
                    widths[i] = max(widths[i], len(str(cell)))

        header_line = "  ".join(str(h).ljust(widths[i]) for i, h in enumerate(headers))
        print(self._paint(header_line, BOLD), file=self._file)
        print("-" * len(header_line), file=self._file)

        for row in rows:
            line = "  ".join(
                str(cell).ljust(widths[i]) if i < len(widths) else str(cell)
                for i, cell in enumerate(row)
            )
            print(line.rstrip(), file=self._file)

    def print_key_value(self, key: str, value: Any, indent: int = 0) -> None:
        prefix = "  " * indent
        label = self._paint(f"{key}:", BOLD)
        print(f"{prefix}{label} {value}", file=self._file)

    def print_section(self, title: str) -> None:
        print(f"\n{self._paint(title, BOLD)}", file=self._file)
        print("-" * len(title), file=self._file)

    def format_status(self, status: str) -> str:
        label = _STATUS_LABELS.get(status, status)
        code = _STATUS_COLORS.get(status)
        return self._paint(label, code) if code else label

