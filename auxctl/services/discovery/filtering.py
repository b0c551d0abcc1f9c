"""
Bounded-time regex filtering.

Filters come from a hand-edited document, so a pathological pattern must
not hang discovery. Matching uses the ``regex`` package, whose ``timeout``
argument aborts evaluation; a timed-out match counts as "no match".
"""

from __future__ import annotations

import regex

from ...core.exceptions import InvalidArgumentError
from ...core.interfaces.logger import ILogger

DEFAULT_TIMEOUT = 1.0


class BoundedPattern:
    """A case-insensitive pattern whose matches are time-limited."""

    def __init__(
        self,
        pattern: str | None,
        timeout: float = DEFAULT_TIMEOUT,
        logger: ILogger | None = None,
    ) -> None:
        """
        Args:
            pattern: Regex, or None/empty to accept everything
            timeout: Seconds allowed per match

        Raises:
            InvalidArgumentError: If the pattern does not compile
        """
        self.pattern = pattern or ""
        self.timeout = timeout
        self._logger = logger
        try:
            self._compiled = regex.compile(self.pattern, regex.IGNORECASE) if self.pattern else None
        except regex.error as e:
            raise InvalidArgumentError(
                f"Invalid filter pattern: {e}", argument="filter", value=self.pattern, cause=e
            ) from e

    def matches(self, text: str) -> bool:
        if self._compiled is None:
            return True
        try:
            return self._compiled.search(text, timeout=self.timeout) is not None
        except TimeoutError:
            if self._logger is not None:
                self._logger.warning("Filter %r timed out on %r; treating as no match", self.pattern, text)
            return False

    def filter(self, items: list[str]) -> list[str]:
        return [item for item in items if self.matches(item)]


def matches_within(pattern: str, text: str, timeout: float = DEFAULT_TIMEOUT) -> bool | None:
    """
    Search text for a pattern with a time limit.

    Returns:
        True/False for the match result, or None if evaluation timed out
    """
    try:
        return regex.search(pattern, text, timeout=timeout) is not None
    except TimeoutError:
        return None
