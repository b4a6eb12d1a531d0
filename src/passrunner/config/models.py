"""Configuration models describing passrunner settings."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}


class PassRunnerBaseModel(BaseModel):
    """Shared configuration for passrunner Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StoreSettings(PassRunnerBaseModel):
    """Password store location and the external command used to decrypt entries.

    Attributes:
        directory: Store root; ``None`` selects ``~/.password-store``.
        command: Executable invoked as ``<command> show <entry>``.
        clip_timeout_seconds: Seconds before a copied secret is cleared.
        otp_identifier: Path segment prefix marking one-time-password entries.
    """

    directory: Optional[str] = None
    command: str = "pass"
    clip_timeout_seconds: int = Field(default=45, ge=0)
    otp_identifier: str = "totp::"


class ActionSettings(PassRunnerBaseModel):
    """A named extraction rule applied to decrypted output.

    Attributes:
        name: Display name presented next to a match.
        icon: Optional icon identifier; a default is used when omitted.
        regex: Pattern whose first capture group is copied to the clipboard.
    """

    name: str
    icon: Optional[str] = None
    regex: str

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("action name must not be blank")
        return value


class ActionOptions(PassRunnerBaseModel):
    """Settings that govern per-match actions.

    Attributes:
        show_actions: Whether configured action groups are offered.
        show_file_content_action: Whether a "show file contents" action is appended.
        groups: Ordered action definitions; order is presentation order.
    """

    show_actions: bool = False
    show_file_content_action: bool = False
    groups: List[ActionSettings] = Field(default_factory=list)


class QuerySettings(PassRunnerBaseModel):
    """Query parsing options.

    Attributes:
        prefix: Token that scopes a query to the password store.
        min_length: Minimum query length outside single-runner mode.
    """

    prefix: str = "pass"
    min_length: int = Field(default=3, ge=0)


class ClipboardSettings(PassRunnerBaseModel):
    """Clipboard behaviour.

    Attributes:
        cancel_pending_clear: Cancel an earlier auto-clear timer when a newer
            secret is copied. Disabled by default so a stale timer may still
            clear the newer secret.
        require_sensitive_hint: Refuse to copy when the clipboard backend
            cannot mark the secret as sensitive. Disabled by default, so such
            copies go through and are logged.
    """

    cancel_pending_clear: bool = False
    require_sensitive_hint: bool = False


class NotificationSettings(PassRunnerBaseModel):
    """User notification options.

    Attributes:
        backend: Notifier implementation used by the runner.
        notify_failures: Whether failed retrievals are reported to the user.
    """

    backend: Literal["desktop", "console", "none"] = "desktop"
    notify_failures: bool = False


class WatchSettings(PassRunnerBaseModel):
    """Directory watching options.

    Attributes:
        enabled: Whether the store is watched for changes.
        debounce_seconds: Quiet period used to coalesce bursts of changes.
    """

    enabled: bool = True
    debounce_seconds: float = Field(default=0.5, gt=0)


class LoggingSettings(PassRunnerBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"unknown logging level: {value}")
        return normalized


class PassRunnerConfig(PassRunnerBaseModel):
    """Top-level configuration struct for passrunner."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    actions: ActionOptions = Field(default_factory=ActionOptions)
    query: QuerySettings = Field(default_factory=QuerySettings)
    clipboard: ClipboardSettings = Field(default_factory=ClipboardSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "PassRunnerBaseModel",
    "StoreSettings",
    "ActionSettings",
    "ActionOptions",
    "QuerySettings",
    "ClipboardSettings",
    "NotificationSettings",
    "WatchSettings",
    "LoggingSettings",
    "PassRunnerConfig",
]
