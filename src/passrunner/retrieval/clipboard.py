"""Clipboard access and deferred clearing."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

import pyperclip
from pyperclip import PyperclipException

LOGGER = logging.getLogger(__name__)


class ClipboardError(Exception):
    """Raised when the system clipboard cannot be used."""


class Clipboard(Protocol):
    """Destination for retrieved secrets.

    ``marks_sensitive`` tells whether :meth:`copy_secret` tags the text so
    clipboard managers leave it out of their history.
    """

    marks_sensitive: bool

    def copy_secret(self, text: str) -> None: ...

    def clear(self) -> None: ...


class SystemClipboard:
    """Write secrets to the system clipboard through pyperclip.

    pyperclip offers plain text only, so the ``x-kde-passwordManagerHint``
    type cannot be attached and copies are not marked as sensitive.
    """

    marks_sensitive = False

    def copy_secret(self, text: str) -> None:
        """Place ``text`` on the clipboard.

        Raises:
            ClipboardError: If no clipboard mechanism is available.
        """
        try:
            pyperclip.copy(text)
        except PyperclipException as exc:
            raise ClipboardError(f"Clipboard not available: {exc}") from exc

    def clear(self) -> None:
        """Replace the clipboard contents with an empty string.

        Raises:
            ClipboardError: If no clipboard mechanism is available.
        """
        try:
            pyperclip.copy("")
        except PyperclipException as exc:
            raise ClipboardError(f"Clipboard not available: {exc}") from exc


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Run a callback once after a delay."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ScheduledCall:
    """Handle for a callback registered with :class:`TimerScheduler`."""

    def __init__(self, scheduler: "TimerScheduler", callback: Callable[[], None]) -> None:
        self._scheduler = scheduler
        self.callback = callback

    def cancel(self) -> None:
        self._scheduler.cancel(self)


class TimerScheduler:
    """One-shot deferred callbacks backed by :class:`threading.Timer`.

    Pending callbacks are tracked so they can be awaited or run early, which
    lets a short-lived process clear the clipboard before it exits.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[ScheduledCall, threading.Timer] = {}

    def schedule(self, delay: float, callback: Callable[[], None]) -> "ScheduledCall":
        call = ScheduledCall(self, callback)
        timer = threading.Timer(max(0.0, delay), self._fire, args=(call,))
        timer.daemon = True
        with self._lock:
            self._pending[call] = timer
        timer.start()
        return call

    def cancel(self, call: "ScheduledCall") -> None:
        """Drop ``call`` without running it."""
        with self._lock:
            timer = self._pending.pop(call, None)
        if timer is not None:
            timer.cancel()

    def pending(self) -> int:
        """Return how many callbacks have not fired yet."""
        with self._lock:
            return len(self._pending)

    def wait(self, timeout: float | None = None) -> None:
        """Block until every scheduled callback has fired."""
        with self._lock:
            timers = list(self._pending.values())
        for timer in timers:
            timer.join(timeout)

    def flush(self) -> None:
        """Cancel pending timers and run their callbacks immediately."""
        with self._lock:
            pending = list(self._pending.items())
            self._pending.clear()
        for call, timer in pending:
            timer.cancel()
            call.callback()

    def _fire(self, call: "ScheduledCall") -> None:
        with self._lock:
            if self._pending.pop(call, None) is None:
                return
        call.callback()


__all__ = [
    "Cancellable",
    "Clipboard",
    "ClipboardError",
    "ScheduledCall",
    "Scheduler",
    "SystemClipboard",
    "TimerScheduler",
]
