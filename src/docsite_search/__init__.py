"""Client-side documentation search: indexing, ranking, highlighting and suggestions."""

from docsite_search.config import SearchSettings, get_settings
from docsite_search.domain import (
    Chunk,
    Document,
    HighlightSpan,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchScope,
    SearchStatus,
)
from docsite_search.errors import (
    CorpusIngestionError,
    CorpusLoadError,
    CorruptIndexError,
    IndexNotReadyError,
    SearchEngineError,
)
from docsite_search.search_engine import DocumentationSearchEngine


__all__ = [
    "Chunk",
    "CorpusIngestionError",
    "CorpusLoadError",
    "CorruptIndexError",
    "Document",
    "DocumentationSearchEngine",
    "HighlightSpan",
    "IndexNotReadyError",
    "SearchEngineError",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchScope",
    "SearchSettings",
    "SearchStatus",
    "get_settings",
]
