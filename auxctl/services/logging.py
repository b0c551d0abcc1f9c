"""
Diagnostic logging for auxctl.

AuxctlLogger sends records to a size-rotated file under ~/.auxctl and,
when enabled, to stderr. Both sinks share the configured level.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from ..core.interfaces.logger import ILogger
from ..core.models.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3


def default_log_file() -> Path:
    return Path.home() / ".auxctl" / "auxctl.log"


class AuxctlLogger(ILogger):
    """ILogger backed by a stdlib logger that does not propagate to root."""

    def __init__(
        self,
        name: str = "auxctl",
        level: str = "warning",
        console_enabled: bool = False,
        file_enabled: bool = True,
        log_file: Path | None = None,
    ) -> None:
        """
        Args:
            name: stdlib logger name
            level: debug, info, warning or error
            console_enabled: Also write to stderr
            file_enabled: Write to the rotating log file
            log_file: Log file location (default: ~/.auxctl/auxctl.log)
        """
        self.log_file = log_file or default_log_file()
        self._logger = logging.getLogger(name)
        self._logger.handlers.clear()
        self._logger.propagate = False
        self._logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

        formatter = logging.Formatter(LOG_FORMAT)
        if console_enabled:
            self._attach(logging.StreamHandler(sys.stderr), formatter)
        if file_enabled:
            self._attach_file(formatter)

    @classmethod
    def from_config(cls, config: LoggingConfig, log_file: Path | None = None) -> "AuxctlLogger":
        return cls(
            level=config.level,
            console_enabled=config.console,
            file_enabled=config.file,
            log_file=log_file,
        )

    def _attach(self, handler: logging.Handler, formatter: logging.Formatter) -> None:
        handler.setFormatter(formatter)
        self._logger.addHandler(handler)

    def _attach_file(self, formatter: logging.Formatter) -> None:
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(self.log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
        except OSError as e:
            # An unwritable home directory leaves the other sinks working.
            print(f"auxctl: not logging to {self.log_file}: {e}", file=sys.stderr)
            return
        self._attach(handler, formatter)

    @property
    def handlers(self) -> list[logging.Handler]:
        return list(self._logger.handlers)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(message, *args, **kwargs)


class NullLogger(ILogger):
    """Discards everything. Used before bootstrap and in unit tests."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        pass

    info = warning = error = debug
