"""
Presenter interface: everything the operator reads on the terminal.

Commands talk to an IPresenter rather than printing, so the rendering of
tables, sections and service states stays in one place.
"""

from abc import ABC, abstractmethod
from typing import Any


class IPresenter(ABC):
    """Renders messages, tables and service details for the operator."""

    @abstractmethod
    def print(self, message: str) -> None:
        """Plain output line."""

    @abstractmethod
    def print_error(self, message: str) -> None: ...

    @abstractmethod
    def print_warning(self, message: str) -> None: ...

    @abstractmethod
    def print_success(self, message: str) -> None: ...

    @abstractmethod
    def print_table(self, headers: list[str], rows: list[list[str]]) -> None:
        """
        Column-aligned table; one inner list per row, in header order.
        """

    @abstractmethod
    def print_key_value(self, key: str, value: Any, indent: int = 0) -> None:
        """One ``key: value`` detail line, indented by ``indent`` levels."""

    @abstractmethod
    def print_section(self, title: str) -> None:
        """Heading that starts a block of detail lines."""

    @abstractmethod
    def format_status(self, status: str) -> str:
        """
        Inline label for a ServiceStatus value.

        Args:
            status: 'running', 'stopped', 'not_found' or 'unknown'
        """
