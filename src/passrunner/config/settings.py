"""Immutable runtime settings derived from the resolved configuration."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .models import ActionSettings, PassRunnerConfig

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from . import ConfigManager

DEFAULT_STORE_DIR = Path("~/.password-store")


@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    """Process-wide settings read by every component.

    Instances are never mutated; :meth:`SettingsLoader.reload` publishes a new
    instance instead.

    Attributes:
        store_dir: Root directory of the password store.
        command: Executable used to decrypt entries.
        clip_timeout: Seconds before the clipboard is cleared.
        otp_identifier: Path segment prefix selecting one-time-password mode.
        show_actions: Whether configured actions are offered.
        show_file_content_action: Whether the file-content action is offered.
        actions: Ordered action definitions.
        query_prefix: Token scoping a query to the store.
        min_query_length: Minimum query length outside single-runner mode.
        cancel_pending_clear: Whether a new copy cancels the previous clear timer.
        require_sensitive_hint: Whether unmarked clipboard copies are refused.
        notification_backend: Name of the notifier implementation.
        notify_failures: Whether failed retrievals are reported.
        watch_enabled: Whether the store is watched for changes.
        debounce_seconds: Quiet period used to coalesce change bursts.
    """

    store_dir: Path
    command: str = "pass"
    clip_timeout: int = 45
    otp_identifier: str = "totp::"
    show_actions: bool = False
    show_file_content_action: bool = False
    actions: tuple[ActionSettings, ...] = ()
    query_prefix: str = "pass"
    min_query_length: int = 3
    cancel_pending_clear: bool = False
    require_sensitive_hint: bool = False
    notification_backend: str = "desktop"
    notify_failures: bool = False
    watch_enabled: bool = True
    debounce_seconds: float = 0.5

    @classmethod
    def from_config(cls, config: PassRunnerConfig) -> "RuntimeSettings":
        """Build runtime settings from a validated configuration model."""
        directory = Path(config.store.directory) if config.store.directory else DEFAULT_STORE_DIR
        return cls(
            store_dir=directory.expanduser(),
            command=config.store.command,
            clip_timeout=config.store.clip_timeout_seconds,
            otp_identifier=config.store.otp_identifier,
            show_actions=config.actions.show_actions,
            show_file_content_action=config.actions.show_file_content_action,
            actions=tuple(config.actions.groups),
            query_prefix=config.query.prefix,
            min_query_length=config.query.min_length,
            cancel_pending_clear=config.clipboard.cancel_pending_clear,
            require_sensitive_hint=config.clipboard.require_sensitive_hint,
            notification_backend=config.notifications.backend,
            notify_failures=config.notifications.notify_failures,
            watch_enabled=config.watch.enabled,
            debounce_seconds=config.watch.debounce_seconds,
        )


class SettingsLoader:
    """Own the current :class:`RuntimeSettings` and rebuild it on demand."""

    def __init__(
        self,
        manager: "ConfigManager",
        *,
        cli_overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self._manager = manager
        self._cli_overrides = dict(cli_overrides) if cli_overrides else None
        self._lock = threading.Lock()
        self._current: Optional[RuntimeSettings] = None

    @property
    def current(self) -> RuntimeSettings:
        """Return the active settings, loading them on first access."""
        with self._lock:
            current = self._current
        if current is None:
            return self.reload()
        return current

    def reload(self) -> RuntimeSettings:
        """Re-read configuration and environment and publish fresh settings.

        Raises:
            ConfigError: If the configuration cannot be parsed or validated.
        """
        config = self._manager.load(cli_overrides=self._cli_overrides)
        settings = RuntimeSettings.from_config(config)
        with self._lock:
            self._current = settings
        return settings


__all__ = ["DEFAULT_STORE_DIR", "RuntimeSettings", "SettingsLoader"]
