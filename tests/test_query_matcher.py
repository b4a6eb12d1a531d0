"""Tests for query normalization and substring matching."""

from __future__ import annotations

from pathlib import Path

import pytest

from passrunner.index import EntryIndex
from passrunner.query import MATCH_ICON, QueryMatcher, Relevance, normalize_query


@pytest.fixture()
def index(tmp_path: Path) -> EntryIndex:
    root = tmp_path / "store"
    for entry in ("web/github", "web/gitlab", "email/work", "Bank/Savings"):
        path = root / f"{entry}.gpg"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"ciphertext")
    built = EntryIndex(root)
    built.rebuild()
    return built


def test_substring_query_matches_in_index_order(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("git")

    assert [match.text for match in matches] == ["web/github", "web/gitlab"]
    assert all(match.relevance is Relevance.PARTIAL for match in matches)
    assert all(match.icon == MATCH_ICON for match in matches)


def test_full_identifier_is_exact_match(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("web/github")

    assert len(matches) == 1
    assert matches[0].text == "web/github"
    assert matches[0].relevance is Relevance.EXACT


def test_matching_is_case_insensitive(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("bank/SAVINGS")

    assert [match.text for match in matches] == ["Bank/Savings"]
    assert matches[0].relevance is Relevance.EXACT


def test_short_query_is_ignored(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    assert matcher.match("gi") == []
    assert matcher.match("") == []


def test_single_runner_query_skips_length_check(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("gi", single_runner_query=True)

    assert [match.text for match in matches] == ["web/github", "web/gitlab"]


def test_prefix_scopes_query_and_skips_length_check(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("pass wo")

    assert [match.text for match in matches] == ["email/work"]


def test_bare_prefix_lists_every_entry(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    matches = matcher.match("pass")

    assert len(matches) == 4


def test_query_without_hits_returns_empty_list(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)

    assert matcher.match("nothing-here") == []


def test_matcher_sees_rebuilt_index(index: EntryIndex) -> None:
    matcher = QueryMatcher(index)
    extra = index.root / "web" / "gitea.gpg"
    extra.write_bytes(b"ciphertext")

    index.rebuild()

    assert "web/gitea" in [match.text for match in matcher.match("git")]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("  web   git ", ("web git", False)),
        ("pass web", ("web", True)),
        ("password", ("password", False)),
        ("Pass web", ("Pass web", False)),
    ],
)
def test_normalize_query(text: str, expected: tuple[str, bool]) -> None:
    assert normalize_query(text, "pass") == expected
