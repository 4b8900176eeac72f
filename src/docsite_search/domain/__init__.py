"""Domain layer - corpus and search value objects with no infrastructure dependencies."""

from docsite_search.domain.model import Chunk, Document
from docsite_search.domain.search import (
    HighlightSpan,
    ResultChunk,
    ResultDocument,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchScope,
    SearchStats,
    SearchStatus,
)


__all__ = [
    "Chunk",
    "Document",
    "HighlightSpan",
    "ResultChunk",
    "ResultDocument",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchScope",
    "SearchStats",
    "SearchStatus",
]
