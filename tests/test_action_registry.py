"""Tests for the per-match action registry."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from passrunner.actions import (
    DEFAULT_ACTION_ICON,
    FILE_CONTENT_ICON,
    SHOW_FILE_CONTENT,
    ActionDescriptor,
    ActionRegistry,
)
from passrunner.config import ActionSettings, RuntimeSettings
from passrunner.query import QueryMatch, Relevance


def _settings(**overrides: object) -> RuntimeSettings:
    values: dict[str, object] = {
        "store_dir": Path("/tmp/store"),
        "show_actions": True,
        "actions": (
            ActionSettings(name="username", icon="user-identity", regex="^user: (.*)$"),
            ActionSettings(name="url", regex="^url: (.*)$"),
        ),
    }
    values.update(overrides)
    return RuntimeSettings(**values)  # type: ignore[arg-type]


def test_actions_follow_configured_order() -> None:
    registry = ActionRegistry()

    actions = registry.load(_settings())

    assert [action.name for action in actions] == ["username", "url"]
    assert actions[0].icon == "user-identity"
    assert actions[1].icon == DEFAULT_ACTION_ICON


def test_file_content_action_is_appended_last() -> None:
    registry = ActionRegistry()

    actions = registry.load(_settings(show_file_content_action=True))

    assert actions[-1].pattern == SHOW_FILE_CONTENT
    assert actions[-1].icon == FILE_CONTENT_ICON
    assert actions[-1].shows_file_content
    assert not any(action.shows_file_content for action in actions[:-1])


def test_disabled_actions_yield_empty_list() -> None:
    registry = ActionRegistry()

    actions = registry.load(_settings(show_actions=False, show_file_content_action=True))

    assert actions == ()


def test_every_match_gets_the_same_actions() -> None:
    registry = ActionRegistry()
    registry.load(_settings())

    first = registry.actions_for(QueryMatch(text="web/github", relevance=Relevance.PARTIAL))
    second = registry.actions_for(QueryMatch(text="bank", relevance=Relevance.EXACT))

    assert first == second == registry.actions


def test_reload_replaces_previous_actions() -> None:
    registry = ActionRegistry()
    registry.load(_settings())

    registry.load(_settings(actions=(ActionSettings(name="pin", regex="pin=(\\d+)"),)))

    assert [action.name for action in registry.actions] == ["pin"]
    assert registry.find("username") is None
    assert registry.find("pin") is not None


def test_compile_uses_multiline_mode() -> None:
    action = ActionDescriptor(name="user", icon=DEFAULT_ACTION_ICON, pattern="^user: (.*)$")

    pattern = action.compile()

    assert pattern.flags & re.MULTILINE
    found = pattern.search("secret\nuser: alice\n")
    assert found is not None and found.group(1) == "alice"


def test_compile_rejects_file_content_action() -> None:
    action = ActionDescriptor(name="show", icon=FILE_CONTENT_ICON, pattern=SHOW_FILE_CONTENT)

    with pytest.raises(ValueError):
        action.compile()
