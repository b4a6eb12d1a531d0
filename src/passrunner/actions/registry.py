"""Ordered extraction actions offered for every match."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from passrunner.config import RuntimeSettings
from passrunner.query import QueryMatch

SHOW_FILE_CONTENT = "showFileContentAction"
DEFAULT_ACTION_ICON = "object-unlocked"
FILE_CONTENT_ICON = "document-new"
FILE_CONTENT_NAME = "Show password file contents"


@dataclass(frozen=True, slots=True)
class ActionDescriptor:
    """A named rule selecting what a retrieval delivers.

    Attributes:
        name: Display name of the action.
        icon: Icon identifier.
        pattern: Regular expression whose first group is the secret, or
            :data:`SHOW_FILE_CONTENT` to display the whole decrypted file.
    """

    name: str
    icon: str
    pattern: str

    @property
    def shows_file_content(self) -> bool:
        """Return whether this is the full-content display action."""
        return self.pattern == SHOW_FILE_CONTENT

    def compile(self) -> re.Pattern[str]:
        """Compile the capture pattern in multiline mode.

        Raises:
            re.error: If the pattern is not a valid regular expression.
            ValueError: If called on the full-content action.
        """
        if self.shows_file_content:
            raise ValueError("The file content action has no capture pattern.")
        return re.compile(self.pattern, re.MULTILINE)


class ActionRegistry:
    """Derive the global, ordered action list from runtime settings."""

    def __init__(self) -> None:
        self._actions: tuple[ActionDescriptor, ...] = ()

    @property
    def actions(self) -> tuple[ActionDescriptor, ...]:
        """Return the currently loaded actions."""
        return self._actions

    def load(self, settings: RuntimeSettings) -> tuple[ActionDescriptor, ...]:
        """Rebuild the action list from ``settings`` and return it."""
        actions: list[ActionDescriptor] = []
        if not settings.show_actions:
            self._actions = ()
            return self._actions
        for group in settings.actions:
            actions.append(
                ActionDescriptor(
                    name=group.name,
                    icon=group.icon or DEFAULT_ACTION_ICON,
                    pattern=group.regex,
                )
            )
        if settings.show_file_content_action:
            actions.append(
                ActionDescriptor(
                    name=FILE_CONTENT_NAME,
                    icon=FILE_CONTENT_ICON,
                    pattern=SHOW_FILE_CONTENT,
                )
            )
        self._actions = tuple(actions)
        return self._actions

    def actions_for(self, match: QueryMatch) -> tuple[ActionDescriptor, ...]:
        """Return the actions available for ``match``; the list is the same for every match."""
        return self._actions

    def find(self, name: str) -> Optional[ActionDescriptor]:
        """Return the action called ``name`` or ``None``."""
        for action in self._actions:
            if action.name == name:
                return action
        return None


__all__ = [
    "ActionDescriptor",
    "ActionRegistry",
    "DEFAULT_ACTION_ICON",
    "FILE_CONTENT_ICON",
    "FILE_CONTENT_NAME",
    "SHOW_FILE_CONTENT",
]
