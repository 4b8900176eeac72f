"""Corpus indexing: documents -> chunks -> terms -> inverted index.

The indexer is deterministic: the same documents in the same order always
produce the same index. A malformed document is skipped with a diagnostic and
the build carries on with the rest of the corpus.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import logging
from typing import Any

from pydantic import ValidationError

from docsite_search.domain.model import Chunk, Document
from docsite_search.errors import CorpusIngestionError
from docsite_search.observability.metrics import INGESTION_ERRORS
from docsite_search.search.analyzers import Analyzer, Token, get_analyzer
from docsite_search.search.chunker import chunk_document
from docsite_search.search.inverted_index import InvertedIndex, InvertedIndexWriter


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of one index build."""

    index: InvertedIndex
    documents_indexed: int
    documents_skipped: int
    chunks_indexed: int
    errors: tuple[str, ...]


@dataclass(frozen=True)
class _AnalyzedChunk:
    chunk: Chunk
    title_tokens: list[Token]
    category_tokens: list[Token]
    body_tokens: list[Token]


class CorpusIndexer:
    """Build an ``InvertedIndex`` from a collection of documents."""

    def __init__(self, analyzer: Analyzer | None = None) -> None:
        self.analyzer = analyzer or get_analyzer("default")

    def build(self, documents: Iterable[Document | Mapping[str, Any]], *, generation: int = 1) -> IndexBuildResult:
        writer = InvertedIndexWriter(generation)
        documents_indexed = 0
        documents_skipped = 0
        chunks_indexed = 0
        errors: list[str] = []

        for position, raw in enumerate(documents):
            try:
                document = self._coerce(raw, position)
                if writer.has_document(document.id):
                    raise CorpusIngestionError(document.id, "duplicate document id")
                analyzed = self._analyze(document)
            except (CorpusIngestionError, ValueError, TypeError) as exc:
                logger.warning("Failed to index document #%d: %s", position, exc)
                INGESTION_ERRORS.labels(reason=type(exc).__name__).inc()
                errors.append(str(exc))
                documents_skipped += 1
                continue

            writer.add_document(document)
            for item in analyzed:
                writer.add_chunk(
                    item.chunk,
                    title_tokens=item.title_tokens,
                    category_tokens=item.category_tokens,
                    body_tokens=item.body_tokens,
                )
            documents_indexed += 1
            chunks_indexed += len(analyzed)

        index = writer.build()
        logger.info(
            "Indexed %d document(s), %d chunk(s), %d term(s); skipped %d (generation %d)",
            documents_indexed,
            chunks_indexed,
            index.term_count,
            documents_skipped,
            generation,
        )
        return IndexBuildResult(
            index=index,
            documents_indexed=documents_indexed,
            documents_skipped=documents_skipped,
            chunks_indexed=chunks_indexed,
            errors=tuple(errors),
        )

    def _coerce(self, raw: Document | Mapping[str, Any], position: int) -> Document:
        if isinstance(raw, Document):
            return raw
        if not isinstance(raw, Mapping):
            raise CorpusIngestionError(f"#{position}", f"expected a document record, got {type(raw).__name__}")
        try:
            return Document.model_validate(dict(raw))
        except ValidationError as exc:
            document_id = str(raw.get("id") or f"#{position}")
            reason = f"invalid document: {exc.error_count()} validation error(s)"
            raise CorpusIngestionError(document_id, reason) from exc

    def _analyze(self, document: Document) -> list[_AnalyzedChunk]:
        """Chunk and tokenize a whole document before anything is written."""

        category_tokens = self.analyzer(document.category)
        analyzed: list[_AnalyzedChunk] = []
        for chunk in chunk_document(document):
            analyzed.append(
                _AnalyzedChunk(
                    chunk=chunk,
                    title_tokens=self.analyzer(chunk.title),
                    category_tokens=category_tokens,
                    body_tokens=self.analyzer(chunk.text),
                )
            )
        return analyzed
