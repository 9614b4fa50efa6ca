"""Service layer - orchestrates loading, indexing and querying."""

from .search_service import SearchService


__all__ = ["SearchService"]
