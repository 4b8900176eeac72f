"""Documentation Search Engine - the query facade over one in-memory corpus.

The engine owns the inverted index and everything derived from it (scorer,
fuzzy matcher, suggestion engine). Those are bundled into an immutable
generation; a rebuild produces a new generation and swaps a single reference,
so a query that already started keeps reading the generation it began with.

Interface Methods:
- build_index(documents) -> IndexBuildResult
- search(query, fuzzy=..., scope=..., limit=...) -> SearchResponse
- auto_suggest(partial) -> list[str]
- is_index_ready() / readiness.subscribe(callback)
- clear(), on_version_change(version), load_and_build(path)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
import logging
from pathlib import Path
import threading
import time
from typing import Any

from docsite_search.config import SearchSettings, get_settings
from docsite_search.corpus import aload_corpus
from docsite_search.domain.model import Chunk, Document
from docsite_search.domain.search import (
    ResultChunk,
    ResultDocument,
    SearchOptions,
    SearchResponse,
    SearchResult,
    SearchScope,
    SearchStats,
    SearchStatus,
)
from docsite_search.observability.context import bind_version
from docsite_search.observability.metrics import INDEX_BUILD_LATENCY, INDEX_CHUNK_COUNT, SEARCH_LATENCY, SEARCH_REQUESTS
from docsite_search.observability.tracing import create_span
from docsite_search.search.analyzers import Analyzer, get_analyzer
from docsite_search.search.fuzzy import FuzzyMatcher
from docsite_search.search.highlighter import find_occurrences, highlight
from docsite_search.search.indexer import CorpusIndexer, IndexBuildResult
from docsite_search.search.inverted_index import InvertedIndex
from docsite_search.search.readiness import IndexReadiness
from docsite_search.search.scope import VersionScopeFilter
from docsite_search.search.scorer import ChunkScore, ChunkScorer, QueryTerm, gather_postings
from docsite_search.search.suggestions import SuggestionEngine


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Generation:
    index: InvertedIndex
    scorer: ChunkScorer
    fuzzy: FuzzyMatcher
    suggestions: SuggestionEngine
    build: IndexBuildResult
    build_ms: float


@dataclass(frozen=True)
class _RankedChunk:
    score: float
    chunk_score: ChunkScore
    chunk: Chunk
    document: Document


class DocumentationSearchEngine:
    """In-process search over a documentation corpus.

    Query-time conditions are reported through ``SearchResponse.status``:
    ``NOT_READY`` before the first build completes (and while a rebuild is in
    progress), ``EMPTY_QUERY`` for blank input and ``NO_MATCH`` when nothing
    scores. Only internal inconsistencies raise.
    """

    def __init__(
        self,
        settings: SearchSettings | None = None,
        *,
        name: str = "docs",
        analyzer: Analyzer | None = None,
        current_version: str | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.name = name
        self.analyzer = analyzer or get_analyzer("default")
        self.current_version = current_version or self.settings.default_version
        self.readiness = IndexReadiness()

        self._indexer = CorpusIndexer(self.analyzer)
        self._scope_filter = VersionScopeFilter()
        self._build_lock = threading.Lock()
        self._generation: _Generation | None = None
        self._generation_counter = 0
        self._corpus: tuple[Document | Mapping[str, Any], ...] = ()

        self.current_query = ""
        self.highlighted_terms: tuple[str, ...] = ()

    # --- index lifecycle ----------------------------------------------------

    def build_index(self, documents: Iterable[Document | Mapping[str, Any]]) -> IndexBuildResult:
        """Index ``documents`` as a new generation and mark the engine ready.

        Malformed documents are skipped and reported in the result. Readiness
        is false for the duration of the build.
        """

        corpus = tuple(documents)
        with self._build_lock:
            self.readiness.reset()
            self._generation_counter += 1
            generation_number = self._generation_counter

            with create_span(
                "search.build_index",
                attributes={"search.engine": self.name, "search.generation": generation_number},
            ) as span:
                start = time.perf_counter()
                result = self._indexer.build(corpus, generation=generation_number)
                index = result.index
                generation = _Generation(
                    index=index,
                    scorer=ChunkScorer(index, field_boosts=self.settings.field_boosts()),
                    fuzzy=FuzzyMatcher(index),
                    suggestions=SuggestionEngine(index),
                    build=result,
                    build_ms=(time.perf_counter() - start) * 1000,
                )
                span.set_attribute("search.documents", result.documents_indexed)
                span.set_attribute("search.chunks", result.chunks_indexed)

            INDEX_BUILD_LATENCY.labels(engine=self.name).observe(generation.build_ms / 1000)
            INDEX_CHUNK_COUNT.labels(engine=self.name).set(index.chunk_count)

            self._corpus = corpus
            self._generation = generation
            self.readiness.mark_ready()

        logger.info(
            "Search index generation %d ready for %s: %d document(s), %d chunk(s) in %.1fms",
            generation_number,
            self.name,
            result.documents_indexed,
            result.chunks_indexed,
            generation.build_ms,
        )
        return result

    async def load_and_build(self, path: Path | str) -> IndexBuildResult:
        """Load a corpus from ``path`` (markdown tree or search-index JSON) and index it.

        Readiness is false while loading. When loading fails an already built
        generation is marked ready again and the error propagates.
        """

        self.readiness.reset()
        try:
            documents = await aload_corpus(path, default_version=self.settings.default_version)
        except Exception:
            # the previous generation keeps serving
            if self._generation is not None:
                self.readiness.mark_ready()
            logger.warning("Corpus load from %s failed for %s", path, self.name, exc_info=True)
            raise
        return self.build_index(documents)

    def on_version_change(
        self,
        new_version: str,
        documents: Iterable[Document | Mapping[str, Any]] | None = None,
    ) -> IndexBuildResult:
        """Switch the active version and rebuild from ``documents`` (or the retained corpus)."""

        new_version = new_version.strip()
        if not new_version:
            raise ValueError("Version must not be blank")
        previous, self.current_version = self.current_version, new_version
        bind_version(new_version)
        logger.info("Active documentation version changed for %s: %s -> %s", self.name, previous, new_version)
        self.clear()
        return self.build_index(self._corpus if documents is None else documents)

    def is_index_ready(self) -> bool:
        return self.readiness.is_ready and self._generation is not None

    def clear(self) -> None:
        """Reset transient query state; the index and readiness are untouched."""

        self.current_query = ""
        self.highlighted_terms = ()

    # --- queries ------------------------------------------------------------

    def search(
        self,
        query: str,
        *,
        fuzzy: float | None = None,
        scope: SearchScope | str | None = None,
        limit: int | None = None,
    ) -> SearchResponse:
        """Run ``query`` against the current generation.

        Raises:
            pydantic.ValidationError: for out-of-range ``fuzzy``/``limit`` or an unknown ``scope``.
        """

        start = time.perf_counter()
        options = SearchOptions(
            fuzzy=fuzzy or 0.0,
            scope=scope if scope is not None else self.settings.default_scope,
            limit=limit,
        )
        generation = self._generation
        self.current_query = query

        with create_span(
            "search.query",
            attributes={"search.engine": self.name, "search.scope": options.scope.value},
        ) as span:
            if not self.readiness.is_ready or generation is None:
                response = SearchResponse(query=query, status=SearchStatus.NOT_READY)
            elif not query or not query.strip():
                response = SearchResponse(
                    query=query,
                    status=SearchStatus.EMPTY_QUERY,
                    stats=SearchStats(generation=generation.index.generation),
                )
            else:
                response = self._run_query(generation, query, options, start)
            span.set_attribute("search.status", response.status.value)
            span.set_attribute("search.results", len(response.results))

        matched = (term for result in response.results for term in result.matched_terms)
        self.highlighted_terms = tuple(dict.fromkeys(matched))
        SEARCH_REQUESTS.labels(engine=self.name, status=response.status.value).inc()
        SEARCH_LATENCY.labels(engine=self.name, scope=options.scope.value).observe(time.perf_counter() - start)
        return response

    def search_all_versions(
        self,
        query: str,
        *,
        fuzzy: float | None = None,
        limit: int | None = None,
    ) -> SearchResponse:
        return self.search(query, fuzzy=fuzzy, scope=SearchScope.ALL, limit=limit)

    def _run_query(self, generation: _Generation, query: str, options: SearchOptions, start: float) -> SearchResponse:
        origins = list(dict.fromkeys(token.text for token in self.analyzer(query)))
        if not origins:
            logger.debug("Query %r has no indexable terms", query)
            return SearchResponse(
                query=query,
                status=SearchStatus.NO_MATCH,
                stats=SearchStats(generation=generation.index.generation),
            )

        index = generation.index
        query_terms = [QueryTerm(term=term, origin=term) for term in origins]
        candidates = gather_postings(index, query_terms)

        fuzzy_terms: dict[str, list[str]] = {}
        threshold = options.fuzzy
        if not threshold and not candidates:
            threshold = self.settings.fallback_fuzzy_threshold
        if threshold:
            for term in origins:
                if index.document_frequency(term):
                    continue
                expansions = [
                    (candidate, distance)
                    for candidate, distance in generation.fuzzy.expand_with_threshold(term, threshold)
                    if candidate != term
                ]
                if not expansions:
                    continue
                fuzzy_terms[term] = [candidate for candidate, _ in expansions]
                query_terms.extend(
                    QueryTerm(term=candidate, origin=term, distance=distance, weight=self.settings.fuzzy_discount)
                    for candidate, distance in expansions
                )
            if fuzzy_terms:
                candidates = gather_postings(index, query_terms)

        ranked = [
            _RankedChunk(
                score=chunk_score.score,
                chunk_score=chunk_score,
                chunk=index.chunk(chunk_score.chunk_id),
                document=index.document(chunk_score.document_id),
            )
            for chunk_score in generation.scorer.rank(query_terms, candidates)
        ]
        scoped = self._scope_filter.filter(ranked, options.scope, self.current_version)
        cap = options.limit or self.settings.result_cap
        results = [self._to_result(entry) for entry in scoped[:cap]]

        stats = SearchStats(
            candidate_chunks=len(candidates),
            fuzzy_terms=fuzzy_terms,
            elapsed_ms=(time.perf_counter() - start) * 1000,
            generation=index.generation,
        )
        status = SearchStatus.OK if results else SearchStatus.NO_MATCH
        logger.debug(
            "Query %r: %d candidate chunk(s), %d result(s) (scope=%s)",
            query,
            len(candidates),
            len(results),
            options.scope.value,
        )
        return SearchResponse(query=query, status=status, results=results, stats=stats)

    def _normalize_word(self, word: str) -> str | None:
        tokens = self.analyzer(word)
        return tokens[0].text if tokens else None

    def _to_result(self, entry: _RankedChunk) -> SearchResult:
        chunk, document = entry.chunk, entry.document
        terms = list(entry.chunk_score.matched_terms)
        window = self.settings.preview_window
        style = self.settings.highlight_style

        # Terms found only in the title are shown by prefixing the title line
        found = {term for _, _, term in find_occurrences(chunk.text, terms, self._normalize_word)}
        source = chunk.text if found.issuperset(terms) else f"{chunk.title}\n{chunk.text}"
        preview = highlight(source, terms, window, style, normalizer=self._normalize_word)
        title = highlight(chunk.title, terms, max(len(chunk.title), 1), style, normalizer=self._normalize_word)

        return SearchResult(
            document=ResultDocument(
                id=document.id,
                title=document.title,
                category=document.category,
                url=document.url,
                version=document.version,
            ),
            chunk=ResultChunk(id=chunk.id, heading=chunk.heading, position=chunk.position),
            score=entry.score,
            matched_terms=terms,
            highlighted_preview=preview.text,
            preview_spans=list(preview.spans),
            highlighted_title=title.text,
        )

    # --- suggestions --------------------------------------------------------

    def should_suggest(self, query: str) -> bool:
        """True when ``query`` is short enough to be answered with suggestions instead of a search."""

        length = len(query.strip()) if query else 0
        return 1 <= length <= self.settings.suggest_max_prefix_length

    def auto_suggest(self, partial_query: str, limit: int | None = None) -> list[str]:
        """Return completions for ``partial_query``; empty until the index is ready."""

        generation = self._generation
        if not self.readiness.is_ready or generation is None:
            return []
        return generation.suggestions.suggest(partial_query, limit or self.settings.suggestion_limit)

    # --- corpus browsing ----------------------------------------------------

    def categories(self) -> list[str]:
        generation = self._generation
        if generation is None:
            return []
        return sorted({document.category for document in generation.index.iter_documents()})

    def documents_in_category(self, category: str) -> list[Document]:
        """Documents whose category contains ``category`` (case-insensitive)."""

        generation = self._generation
        if generation is None:
            return []
        needle = category.casefold()
        return [document for document in generation.index.iter_documents() if needle in document.category.casefold()]

    def get_performance_metrics(self) -> dict:
        """Get index statistics for this engine."""

        generation = self._generation
        metrics: dict[str, Any] = {
            "name": self.name,
            "ready": self.is_index_ready(),
            "current_version": self.current_version,
            "generation": 0,
            "documents": 0,
            "chunks": 0,
            "terms": 0,
            "documents_skipped": 0,
            "last_build_ms": 0.0,
        }
        if generation is not None:
            metrics.update(
                generation=generation.index.generation,
                documents=generation.index.document_count,
                chunks=generation.index.chunk_count,
                terms=generation.index.term_count,
                documents_skipped=generation.build.documents_skipped,
                last_build_ms=round(generation.build_ms, 3),
            )
        return metrics
