"""
Exception types raised inside host_update.
"""

from __future__ import annotations

from enum import Enum


class HostUpdateError(Exception):
    """
    Base exception for host_update errors.

    Attributes:
        message: Human-readable error message
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ParseFailure(Enum):
    """Why a parsing strategy could not produce records."""

    NO_MATCHING_BRACKET = "no_matching_bracket"
    NO_USABLE_RECORDS = "no_usable_records"
    NO_SEPARATOR = "no_separator"


class ParseError(HostUpdateError):
    """
    Raised when a parsing strategy cannot produce any records.

    Attributes:
        reason: ParseFailure describing which step failed
        detail: Optional extra context (decoder message, excerpt)
    """
    def __init__(self, reason: ParseFailure, detail: str | None = None):
        self.reason = reason
        self.detail = detail
        message = f"Parse failed: {reason.value}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class CommandError(HostUpdateError):
    """
    Raised when a command cannot be spawned or does not finish in time.

    Attributes:
        command: The argv that was attempted
    """
    def __init__(self, message: str, command: tuple[str, ...] = ()):
        self.command = command
        super().__init__(message)
