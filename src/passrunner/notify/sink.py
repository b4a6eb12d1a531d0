"""User-facing notifications for completed retrievals."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

LOGGER = logging.getLogger(__name__)

APP_NAME = "Pass"
COPIED_ICON = "object-unlocked"
FAILED_ICON = "dialog-error"


def format_copied_message(entry: str, action_name: Optional[str], timeout: int) -> str:
    """Return the confirmation text shown after a secret was copied."""
    prefix = f"{action_name} of " if action_name else ""
    return f"{prefix}Password {entry} copied to clipboard for {timeout} seconds"


def format_failure_message(entry: str, action_name: Optional[str], reason: str) -> str:
    """Return the text shown when a retrieval fails."""
    subject = f"{action_name} of {entry}" if action_name else entry
    return f"Could not retrieve {subject}: {reason.replace('_', ' ')}"


class NotificationSink(Protocol):
    """Receiver of retrieval results; every method is fire-and-forget."""

    def notify_copied(self, entry: str, action_name: Optional[str], timeout: int) -> None: ...

    def notify_failure(self, entry: str, action_name: Optional[str], reason: str) -> None: ...

    def show_content(self, entry: str, content: str) -> None: ...


class NullNotifier:
    """Discard every notification."""

    def notify_copied(self, entry: str, action_name: Optional[str], timeout: int) -> None:
        return None

    def notify_failure(self, entry: str, action_name: Optional[str], reason: str) -> None:
        return None

    def show_content(self, entry: str, content: str) -> None:
        return None


class ConsoleNotifier:
    """Render notifications on a rich console.

    Entry names and decrypted content are wrapped in :class:`~rich.text.Text`
    so brackets in them are printed as-is instead of being read as markup.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def notify_copied(self, entry: str, action_name: Optional[str], timeout: int) -> None:
        message = format_copied_message(entry, action_name, timeout)
        self._console.print(Text(f"{message}.", style="green"))

    def notify_failure(self, entry: str, action_name: Optional[str], reason: str) -> None:
        message = format_failure_message(entry, action_name, reason)
        self._console.print(Text(f"{message}.", style="red"))

    def show_content(self, entry: str, content: str) -> None:
        body = Text(content.rstrip("\n"))
        self._console.print(Panel(body, title=Text(entry), expand=False))


class DesktopNotifier:
    """Send desktop notifications through ``notify-send``.

    Copy confirmations expire after the clipboard timeout. A missing
    ``notify-send`` binary is logged and otherwise ignored. Decrypted file
    content never goes on the ``notify-send`` command line, where other local
    users could read it; :meth:`show_content` hands it to ``content_sink``
    (a stderr :class:`ConsoleNotifier` unless given).
    """

    def __init__(
        self,
        executable: str = "notify-send",
        *,
        content_sink: NotificationSink | None = None,
    ) -> None:
        self._executable = executable
        self._content_sink = content_sink or ConsoleNotifier()

    def notify_copied(self, entry: str, action_name: Optional[str], timeout: int) -> None:
        self._send(
            format_copied_message(entry, action_name, timeout),
            icon=COPIED_ICON,
            expire_ms=timeout * 1000,
        )

    def notify_failure(self, entry: str, action_name: Optional[str], reason: str) -> None:
        self._send(format_failure_message(entry, action_name, reason), icon=FAILED_ICON)

    def show_content(self, entry: str, content: str) -> None:
        self._content_sink.show_content(entry, content)

    def _send(self, body: str, *, icon: str, expire_ms: int | None = None) -> None:
        executable = shutil.which(self._executable)
        if executable is None:
            LOGGER.info("%s not found; notification dropped.", self._executable)
            return
        args = [executable, "--app-name", APP_NAME, "--icon", icon]
        if expire_ms is not None and expire_ms > 0:
            args.extend(["--expire-time", str(expire_ms)])
        # Bodies starting with "-" must not be read as options.
        args.extend(["--", APP_NAME, body])
        try:
            subprocess.run(args, check=False, capture_output=True, timeout=10)
        except (OSError, subprocess.TimeoutExpired) as exc:
            LOGGER.info("Desktop notification failed: %s", exc)


def build_notifier(backend: str, *, console: Console | None = None) -> NotificationSink:
    """Return the notifier implementation named by ``backend``."""
    if backend == "desktop":
        return DesktopNotifier(content_sink=ConsoleNotifier(console))
    if backend == "console":
        return ConsoleNotifier(console)
    if backend == "none":
        return NullNotifier()
    raise ValueError(f"Unknown notification backend: {backend}")


__all__ = [
    "ConsoleNotifier",
    "DesktopNotifier",
    "NotificationSink",
    "NullNotifier",
    "build_notifier",
    "format_copied_message",
    "format_failure_message",
]
