"""Decrypt an entry, extract the requested secret and deliver it."""

from __future__ import annotations

import logging
import re
import subprocess
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional, Sequence

from passrunner.actions import ActionDescriptor
from passrunner.config import RuntimeSettings
from passrunner.notify import NotificationSink

from .clipboard import Cancellable, Clipboard, ClipboardError, Scheduler, TimerScheduler
from .models import CommandResult, RetrievalOutcome, RetrievalReason, RetrievalState

LOGGER = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], CommandResult]


def run_command(args: Sequence[str]) -> CommandResult:
    """Run ``args`` to completion and capture its output.

    The process handle is closed before returning, whatever the exit status.

    Raises:
        OSError: If the executable cannot be started.
    """
    with subprocess.Popen(
        list(args),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as process:
        stdout, stderr = process.communicate()
    return CommandResult(exit_status=process.returncode, stdout=stdout, stderr=stderr)


def is_otp_entry(entry: str, identifier: str) -> bool:
    """Return whether any path segment of ``entry`` starts with ``identifier``."""
    if not identifier:
        return False
    return any(segment.startswith(identifier) for segment in entry.split("/"))


def build_command(command: str, entry: str, *, otp: bool) -> list[str]:
    """Return the argument vector that decrypts ``entry``."""
    args = [command]
    if otp:
        args.append("otp")
    args.extend(["show", entry])
    return args


def first_line(output: str) -> Optional[str]:
    """Return the first non-empty line of ``output``.

    Lines end at ``\\n`` only, with a trailing ``\\r`` dropped; other line
    boundary characters are part of the secret.
    """
    for line in output.split("\n"):
        line = line.removesuffix("\r")
        if line:
            return line
    return None


class RetrievalPipeline:
    """Run the decrypt command asynchronously and deliver its result.

    ``retrieve`` submits the work to an executor and returns immediately. The
    command, the extraction step, the clipboard write and the notification all
    run on the executor's worker thread; callers observe completion through
    the returned :class:`~concurrent.futures.Future`. Retrievals are not
    serialized against each other and the clipboard is last-writer-wins.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        clipboard: Clipboard,
        notifier: NotificationSink,
        runner: CommandRunner = run_command,
        scheduler: Scheduler | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.settings = settings
        self._clipboard = clipboard
        self.notifier = notifier
        self._runner = runner
        self._scheduler: Scheduler = scheduler or TimerScheduler()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="passrunner-retrieve"
        )
        self._clear_lock = threading.Lock()
        self._pending_clear: Optional[Cancellable] = None

    def retrieve(
        self, entry: str, action: Optional[ActionDescriptor] = None
    ) -> Future[RetrievalOutcome]:
        """Start retrieving ``entry`` and return a future for the outcome.

        Args:
            entry: Entry identifier to decrypt.
            action: Optional action selecting what to extract.

        Returns:
            Future[RetrievalOutcome]: Completes once delivery has finished.
        """
        settings = self.settings
        return self._executor.submit(self._run, entry, action, settings)

    def wait_for_clears(self, timeout: float | None = None) -> None:
        """Block until scheduled clipboard clears have run."""
        if isinstance(self._scheduler, TimerScheduler):
            self._scheduler.wait(timeout)

    def shutdown(self, *, wait: bool = True, flush_clears: bool = False) -> None:
        """Stop accepting retrievals.

        Args:
            wait: Wait for in-flight retrievals to finish.
            flush_clears: Run pending clipboard clears immediately.
        """
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
        if flush_clears and isinstance(self._scheduler, TimerScheduler):
            self._scheduler.flush()

    # Internal helpers -------------------------------------------------

    def _run(
        self,
        entry: str,
        action: Optional[ActionDescriptor],
        settings: RuntimeSettings,
    ) -> RetrievalOutcome:
        otp = is_otp_entry(entry, settings.otp_identifier)
        args = build_command(settings.command, entry, otp=otp)
        action_name = action.name if action is not None else None
        LOGGER.debug("Running %s.", " ".join(args))

        try:
            result = self._runner(args)
        except OSError as exc:
            LOGGER.warning("Unable to run %s: %s", settings.command, exc)
            return self._fail(entry, action_name, otp, RetrievalReason.COMMAND_FAILED, settings)

        if result.exit_status != 0:
            LOGGER.info(
                "%s exited with status %d for %s: %s",
                settings.command,
                result.exit_status,
                entry,
                result.stderr.strip(),
            )
            return self._fail(
                entry,
                action_name,
                otp,
                RetrievalReason.COMMAND_FAILED,
                settings,
                exit_status=result.exit_status,
            )

        if action is not None and action.shows_file_content:
            self.notifier.show_content(entry, result.stdout)
            return self._succeed(entry, action_name, otp, RetrievalReason.DISPLAYED, result)

        if action is None:
            secret = first_line(result.stdout)
            if secret is None:
                LOGGER.info("Decrypted output of %s is empty.", entry)
                return self._fail(
                    entry, action_name, otp, RetrievalReason.EMPTY_OUTPUT, settings, exit_status=0
                )
        else:
            extracted = self._extract(entry, action, result.stdout)
            if isinstance(extracted, RetrievalReason):
                return self._fail(entry, action_name, otp, extracted, settings, exit_status=0)
            secret = extracted

        if not self._clipboard.marks_sensitive:
            if settings.require_sensitive_hint:
                LOGGER.warning(
                    "Not copying %s: the clipboard cannot mark it as sensitive.", entry
                )
                return self._fail(
                    entry,
                    action_name,
                    otp,
                    RetrievalReason.SENSITIVE_HINT_UNSUPPORTED,
                    settings,
                    exit_status=0,
                )
            LOGGER.info("Copying %s without a sensitive-content hint.", entry)

        try:
            self._clipboard.copy_secret(secret)
        except ClipboardError as exc:
            LOGGER.warning("Could not copy %s: %s", entry, exc)
            return self._fail(
                entry,
                action_name,
                otp,
                RetrievalReason.CLIPBOARD_UNAVAILABLE,
                settings,
                exit_status=0,
            )

        self._schedule_clear(settings)
        self.notifier.notify_copied(entry, action_name, settings.clip_timeout)
        return self._succeed(entry, action_name, otp, RetrievalReason.COPIED, result)

    def _extract(
        self, entry: str, action: ActionDescriptor, output: str
    ) -> str | RetrievalReason:
        """Apply the action's capture pattern and return group 1 or a failure reason."""
        try:
            pattern = action.compile()
        except re.error as exc:
            LOGGER.info("Regexp: %s", action.pattern)
            LOGGER.info("Is regexp valid? False (%s)", exc)
            LOGGER.info("The file: %s", entry)
            return RetrievalReason.INVALID_PATTERN

        if pattern.groups < 1:
            LOGGER.info("Regexp %s of action %s has no capture group.", action.pattern, action.name)
            return RetrievalReason.INVALID_PATTERN

        found = pattern.search(output)
        if found is None or found.group(1) is None:
            LOGGER.info("Regexp: %s", action.pattern)
            LOGGER.info("Is regexp valid? True")
            LOGGER.info("The file: %s", entry)
            return RetrievalReason.PATTERN_MISS
        return found.group(1)

    def _schedule_clear(self, settings: RuntimeSettings) -> None:
        call = self._scheduler.schedule(float(settings.clip_timeout), self._clear_clipboard)
        with self._clear_lock:
            previous, self._pending_clear = self._pending_clear, call
        if settings.cancel_pending_clear and previous is not None:
            previous.cancel()

    def _clear_clipboard(self) -> None:
        try:
            self._clipboard.clear()
        except ClipboardError as exc:
            LOGGER.warning("Could not clear the clipboard: %s", exc)

    def _succeed(
        self,
        entry: str,
        action_name: Optional[str],
        otp: bool,
        reason: RetrievalReason,
        result: CommandResult,
    ) -> RetrievalOutcome:
        LOGGER.debug("Retrieval of %s succeeded (%s).", entry, reason.value)
        return RetrievalOutcome(
            entry=entry,
            state=RetrievalState.SUCCEEDED,
            reason=reason,
            action=action_name,
            otp=otp,
            exit_status=result.exit_status,
        )

    def _fail(
        self,
        entry: str,
        action_name: Optional[str],
        otp: bool,
        reason: RetrievalReason,
        settings: RuntimeSettings,
        *,
        exit_status: Optional[int] = None,
    ) -> RetrievalOutcome:
        LOGGER.debug("Retrieval of %s failed (%s).", entry, reason.value)
        if settings.notify_failures:
            self.notifier.notify_failure(entry, action_name, reason.value)
        return RetrievalOutcome(
            entry=entry,
            state=RetrievalState.FAILED,
            reason=reason,
            action=action_name,
            otp=otp,
            exit_status=exit_status,
        )


__all__ = [
    "CommandRunner",
    "RetrievalPipeline",
    "build_command",
    "first_line",
    "is_otp_entry",
    "run_command",
]
