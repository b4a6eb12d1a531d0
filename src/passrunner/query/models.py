"""Query result models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

MATCH_ICON = "object-locked"


class Relevance(str, Enum):
    """Advisory ranking tier of a match."""

    EXACT = "exact"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class QueryMatch:
    """A single entry matched by a query.

    Attributes:
        text: Entry identifier that matched.
        relevance: Exact when the query spans the whole identifier.
        icon: Icon identifier suggested to the host.
    """

    text: str
    relevance: Relevance
    icon: str = MATCH_ICON


__all__ = ["MATCH_ICON", "QueryMatch", "Relevance"]
