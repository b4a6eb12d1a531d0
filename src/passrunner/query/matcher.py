"""Substring matching of free-text queries against indexed entries."""

from __future__ import annotations

import re

from passrunner.index import EntryIndex

from .models import QueryMatch, Relevance

_WHITESPACE = re.compile(r"\s+")


def normalize_query(text: str, prefix: str) -> tuple[str, bool]:
    """Strip a leading scope ``prefix`` token and collapse whitespace.

    Args:
        text: Raw query text typed by the user.
        prefix: Token that scopes the query to the password store.

    Returns:
        tuple[str, bool]: The normalized query and whether the prefix was present.
    """

    simplified = _WHITESPACE.sub(" ", text).strip()
    if prefix:
        head, _, rest = simplified.partition(" ")
        if head == prefix:
            return rest, True
    return simplified, False


class QueryMatcher:
    """Answer case-insensitive substring queries against an :class:`EntryIndex`."""

    def __init__(self, index: EntryIndex, *, prefix: str = "pass", min_length: int = 3) -> None:
        self._index = index
        self.prefix = prefix
        self.min_length = min_length

    def match(self, query: str, single_runner_query: bool = False) -> list[QueryMatch]:
        """Return every entry containing ``query``.

        Queries shorter than ``min_length`` are ignored unless the caller runs
        in single-runner mode or the query starts with the scope prefix.

        Args:
            query: Free-text query.
            single_runner_query: Whether the host scoped the query to this index.

        Returns:
            list[QueryMatch]: Matches in index order with their relevance tier.
        """

        text, scoped = normalize_query(query, self.prefix)
        if not scoped and not single_runner_query and len(text) < self.min_length:
            return []

        needle = text.casefold()
        snapshot = self._index.snapshot()
        matches: list[QueryMatch] = []
        for entry in snapshot.entries:
            if needle in entry.casefold():
                relevance = Relevance.EXACT if len(text) == len(entry) else Relevance.PARTIAL
                matches.append(QueryMatch(text=entry, relevance=relevance))
        return matches


__all__ = ["QueryMatcher", "normalize_query"]
