"""
Signal handling for foreground supervision of native services.

When auxctl starts process-mode services it stays in the foreground until
interrupted, then stops them. The first Ctrl-C requests a graceful
shutdown; a second one aborts.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from collections.abc import Callable

from ...core.interfaces.logger import ILogger


class ShutdownSignalHandler:
    """
    Turns SIGINT/SIGTERM into an asyncio event.

    Must be installed from inside a running event loop.
    """

    def __init__(
        self,
        on_first_interrupt: Callable[[], None] | None = None,
        on_abort: Callable[[], None] | None = None,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            on_first_interrupt: Callback when the first signal is received
            on_abort: Callback when a second signal is received, before exit
            logger: Logger for internal diagnostics
        """
        self._interrupt_count = 0
        self._on_first_interrupt = on_first_interrupt
        self._on_abort = on_abort
        self._event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        self._fallback_handler = None
        self._logger = logger

    @property
    def logger(self) -> ILogger:
        """Get logger, resolving from container or creating NullLogger."""
        if self._logger is None:
            from ...core.di import resolve_or_default
            from ..logging import NullLogger

            self._logger = resolve_or_default(ILogger, NullLogger)  # type: ignore[type-abstract]
        return self._logger

    def install(self) -> None:
        """Install signal handlers on the running loop."""
        self._loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                self._loop.add_signal_handler(sig, self._handle_signal)
                self._installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no add_signal_handler.
                if sig == signal.SIGINT:
                    self._fallback_handler = signal.signal(signal.SIGINT, self._handle_threadsafe)
        self.logger.debug("Shutdown signal handlers installed")

    def restore(self) -> None:
        """Remove the handlers installed by install()."""
        if self._loop is not None:
            for sig in self._installed:
                self._loop.remove_signal_handler(sig)
        self._installed.clear()
        if self._fallback_handler is not None:
            signal.signal(signal.SIGINT, self._fallback_handler)
            self._fallback_handler = None

    def is_interrupted(self) -> bool:
        return self._event.is_set()

    def should_abort(self) -> bool:
        return self._interrupt_count >= 2

    async def wait(self) -> None:
        """Block until the first signal arrives."""
        await self._event.wait()

    def _handle_threadsafe(self, signum: int, frame) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._handle_signal)

    def _handle_signal(self) -> None:
        self._interrupt_count += 1
        self.logger.debug("Shutdown signal received: interrupt_count=%d", self._interrupt_count)

        if self._interrupt_count == 1:
            self._event.set()
            if self._on_first_interrupt:
                self._on_first_interrupt()
        else:
            if self._on_abort:
                self._on_abort()
            sys.exit(130)
