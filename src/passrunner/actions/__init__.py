"""Per-match extraction actions."""

from .registry import (
    DEFAULT_ACTION_ICON,
    FILE_CONTENT_ICON,
    FILE_CONTENT_NAME,
    SHOW_FILE_CONTENT,
    ActionDescriptor,
    ActionRegistry,
)

__all__ = [
    "ActionDescriptor",
    "ActionRegistry",
    "DEFAULT_ACTION_ICON",
    "FILE_CONTENT_ICON",
    "FILE_CONTENT_NAME",
    "SHOW_FILE_CONTENT",
]
