"""
Turnfold Exception Hierarchy.

All custom exceptions inherit from TurnfoldError for unified error handling.
The grouping core itself never raises into the event layer; these are used
by the configuration loader, the reference surface and the replay CLI.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class TurnfoldError(Exception):
    """Base exception for Turnfold errors.

    Attributes:
        message: Human-readable error description
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self._log_error()

    def _log_error(self) -> None:
        """Log the error creation at debug level.

        Callers should log at appropriate level when handling the exception.
        """
        logger.debug(
            f"{self.__class__.__name__}: {self.message}",
            extra={"error_context": self.context},
        )

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} [{ctx}]"
        return self.message


class ConfigError(TurnfoldError):
    """Raised for configuration errors.

    Examples:
        - Malformed TOML config file
        - Out-of-range spinner interval
        - Invalid log level
    """


class SurfaceError(TurnfoldError):
    """Raised when a document surface operation is refused."""


class FragmentNotFoundError(SurfaceError):
    """Raised when a user action targets a fragment the surface does not hold.

    Attributes:
        turn_id: Turn the fragment was looked up in
        fragment_id: The missing fragment identifier
    """

    def __init__(
        self,
        message: str,
        turn_id: int | None = None,
        fragment_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if turn_id is not None:
            ctx["turn_id"] = turn_id
        if fragment_id:
            ctx["fragment_id"] = fragment_id
        super().__init__(message, ctx)
        self.turn_id = turn_id
        self.fragment_id = fragment_id


class ScriptError(TurnfoldError):
    """Raised when a replay script line cannot be parsed.

    Attributes:
        line_no: 1-based line number of the offending entry
    """

    def __init__(
        self,
        message: str,
        line_no: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if line_no is not None:
            ctx["line_no"] = line_no
        super().__init__(message, ctx)
        self.line_no = line_no
