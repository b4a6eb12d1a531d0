"""Secret retrieval through the external decrypt command."""

from .clipboard import Clipboard, ClipboardError, SystemClipboard, TimerScheduler
from .models import CommandResult, RetrievalOutcome, RetrievalReason, RetrievalState
from .pipeline import (
    CommandRunner,
    RetrievalPipeline,
    build_command,
    first_line,
    is_otp_entry,
    run_command,
)

__all__ = [
    "Clipboard",
    "ClipboardError",
    "CommandResult",
    "CommandRunner",
    "RetrievalOutcome",
    "RetrievalPipeline",
    "RetrievalReason",
    "RetrievalState",
    "SystemClipboard",
    "TimerScheduler",
    "build_command",
    "first_line",
    "is_otp_entry",
    "run_command",
]
