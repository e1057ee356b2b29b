"""Domain layer for moogle-search."""

from moogle_search.domain.search import SearchItem, SearchResult


__all__ = ["SearchItem", "SearchResult"]
