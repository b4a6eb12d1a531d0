"""Query matching against the entry index."""

from .matcher import QueryMatcher, normalize_query
from .models import MATCH_ICON, QueryMatch, Relevance

__all__ = ["MATCH_ICON", "QueryMatch", "QueryMatcher", "Relevance", "normalize_query"]
