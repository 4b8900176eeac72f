"""Exception taxonomy for the search engine.

Only ingestion and corpus-loading failures are raised in normal operation.
Query-time conditions (index not ready, empty query, no match) are reported
through ``SearchResponse.status`` instead; ``IndexNotReadyError`` exists for
callers that prefer to turn that status into an exception.
"""

from __future__ import annotations


class SearchEngineError(Exception):
    """Base class for all search engine errors."""


class CorpusIngestionError(SearchEngineError):
    """A single document could not be chunked or tokenized."""

    def __init__(self, document_id: str, reason: str) -> None:
        self.document_id = document_id
        self.reason = reason
        super().__init__(f"{document_id}: {reason}")


class CorpusLoadError(SearchEngineError):
    """The corpus source could not be read or decoded."""


class IndexNotReadyError(SearchEngineError):
    """A query was issued before the index finished building."""


class CorruptIndexError(SearchEngineError):
    """The index references data that does not exist in the current corpus."""
