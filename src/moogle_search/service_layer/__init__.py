"""Service layer - query orchestration over an engine snapshot."""

from .search_service import SearchService, search


__all__ = ["SearchService", "search"]
