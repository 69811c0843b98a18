"""
Unified exception hierarchy for teelog.

Construction-time failures (configuration, filesystem) are raised to the
caller of ``new_logger``/``init_logger`` and never logged, since the logger
may not exist yet. Flush failures are collected across every core before
being raised. Per-record write failures never surface here: the affected
core swallows and counts them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TeelogError(Exception):
    """Base class of every teelog exception."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class ConfigurationError(TeelogError):
    """Unknown severity level or malformed configuration source."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class FilesystemError(TeelogError):
    """A sink's directory or file could not be created."""

    def __init__(self, *, path: str, reason: str) -> None:
        super().__init__(
            f"Cannot prepare log destination '{path}': {reason}",
            code="FILESYSTEM_ERROR",
            details={"path": path, "reason": reason},
        )


class FlushError(TeelogError):
    """One or more cores failed to flush their buffered writers.

    ``details["failures"]`` lists every failed core as ``(core_name, error)``;
    the first failure is also chained as ``__cause__``.
    """

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        name, first = failures[0]
        super().__init__(
            f"Failed to flush core '{name}': {first}",
            code="FLUSH_ERROR",
            details={"failures": failures},
        )


class UninitializedAccess(TeelogError, RuntimeError):
    """The process-wide logger was requested before ``init_logger``."""

    def __init__(self) -> None:
        super().__init__(
            "logger not initialized, please call init_logger first",
            code="UNINITIALIZED_ACCESS",
        )
