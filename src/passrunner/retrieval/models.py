"""Retrieval pipeline data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RetrievalState(str, Enum):
    """Lifecycle of a single retrieval."""

    IDLE = "idle"
    COMMAND_RUNNING = "command_running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RetrievalReason(str, Enum):
    """Why a retrieval ended the way it did."""

    COPIED = "copied"
    DISPLAYED = "displayed"
    COMMAND_FAILED = "command_failed"
    EMPTY_OUTPUT = "empty_output"
    PATTERN_MISS = "pattern_miss"
    INVALID_PATTERN = "invalid_pattern"
    CLIPBOARD_UNAVAILABLE = "clipboard_unavailable"
    SENSITIVE_HINT_UNSUPPORTED = "sensitive_hint_unsupported"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured output of the decrypt command."""

    exit_status: int
    stdout: str
    stderr: str = ""


@dataclass(frozen=True, slots=True)
class RetrievalOutcome:
    """Terminal result of a retrieval.

    Attributes:
        entry: Entry identifier that was requested.
        state: Either ``SUCCEEDED`` or ``FAILED``.
        reason: Detail explaining the terminal state.
        action: Name of the selected action, if any.
        otp: Whether the one-time-password command was used.
        exit_status: Exit status of the decrypt command when it ran.
    """

    entry: str
    state: RetrievalState
    reason: RetrievalReason
    action: Optional[str] = None
    otp: bool = False
    exit_status: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RetrievalState.SUCCEEDED


__all__ = ["CommandResult", "RetrievalOutcome", "RetrievalReason", "RetrievalState"]
