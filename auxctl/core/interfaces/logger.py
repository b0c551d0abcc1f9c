"""
Logger interface.

Diagnostics only: container CLI invocations, HTTP requests, process
lifecycle events. Anything the operator is meant to read goes through
IPresenter instead.
"""

from abc import ABC, abstractmethod
from typing import Any


class ILogger(ABC):
    """printf-style leveled logging, as in the stdlib ``logging`` module."""

    @abstractmethod
    def debug(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    @abstractmethod
    def info(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    @abstractmethod
    def warning(self, message: str, *args: Any, **kwargs: Any) -> None: ...

    @abstractmethod
    def error(self, message: str, *args: Any, **kwargs: Any) -> None: ...
