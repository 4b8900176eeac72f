"""Chunk scoring and ranking.

Per matched query term a chunk earns ``weighted_tf * idf``, where the weighted
term frequency applies the field boosts (title above category above body).
Terms reached through fuzzy expansion are discounted. The summed relevance is
saturated below one and added to the number of distinct query terms matched,
so a chunk matching two different terms beats one repeating a single term any
number of times.

There is no length normalization: a chunk matching a superset of another
chunk's terms, each at least as often, never scores lower.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from docsite_search.domain.model import Chunk
from docsite_search.search.inverted_index import InvertedIndex
from docsite_search.search.models import Posting
from docsite_search.search.stats import calculate_idf, coverage_score


DEFAULT_FIELD_BOOSTS: Mapping[str, float] = {"title": 3.0, "category": 2.0, "body": 1.0}


@dataclass(frozen=True)
class QueryTerm:
    """An index term to look up on behalf of one query term.

    ``origin`` is the normalized term the user typed; exact lookups have
    ``term == origin`` and ``distance == 0``.
    """

    term: str
    origin: str
    distance: int = 0
    weight: float = 1.0

    @property
    def is_fuzzy(self) -> bool:
        return self.distance > 0 or self.term != self.origin


@dataclass(frozen=True)
class ChunkScore:
    """Score of one candidate chunk together with its tie-break keys.

    ``relevance`` is the summed field-weighted tf-idf before coverage is applied.
    """

    chunk_id: str
    document_id: str
    score: float
    matched_terms: tuple[str, ...]
    title_weight: float
    text_length: int
    relevance: float = 0.0

    def sort_key(self) -> tuple[float, float, int, str, str]:
        return (-self.score, -self.title_weight, self.text_length, self.document_id, self.chunk_id)


def gather_postings(index: InvertedIndex, query_terms: Iterable[QueryTerm]) -> dict[str, dict[str, Posting]]:
    """Group postings by chunk id: ``{chunk_id: {term: posting}}``."""

    candidates: dict[str, dict[str, Posting]] = defaultdict(dict)
    for query_term in query_terms:
        for posting in index.lookup(query_term.term):
            candidates[posting.chunk_id][query_term.term] = posting
    return dict(candidates)


class ChunkScorer:
    """Score and rank chunks of one index generation."""

    def __init__(
        self,
        index: InvertedIndex,
        *,
        field_boosts: Mapping[str, float] | None = None,
    ) -> None:
        self.index = index
        self.field_boosts = dict(field_boosts or DEFAULT_FIELD_BOOSTS)
        self._idf_cache: dict[str, float] = {}

    def idf(self, term: str) -> float:
        cached = self._idf_cache.get(term)
        if cached is None:
            cached = calculate_idf(self.index.document_frequency(term), self.index.chunk_count)
            self._idf_cache[term] = cached
        return cached

    def score(
        self,
        query_terms: Sequence[QueryTerm],
        chunk: Chunk,
        postings_by_term: Mapping[str, Posting],
    ) -> ChunkScore:
        """Score ``chunk`` for ``query_terms`` given its postings keyed by term.

        Each distinct origin term contributes once, through whichever of its
        variants scores best. A chunk matching nothing scores 0.
        """

        origins: list[str] = []
        best: dict[str, tuple[float, QueryTerm, Posting]] = {}
        for query_term in query_terms:
            if query_term.origin not in origins:
                origins.append(query_term.origin)
            posting = postings_by_term.get(query_term.term)
            if posting is None:
                continue
            contribution = posting.weighted_frequency(self.field_boosts) * self.idf(query_term.term) * query_term.weight
            current = best.get(query_term.origin)
            if current is None or contribution > current[0]:
                best[query_term.origin] = (contribution, query_term, posting)

        if not best:
            return ChunkScore(
                chunk_id=chunk.id,
                document_id=chunk.document_id,
                score=0.0,
                matched_terms=(),
                title_weight=0.0,
                text_length=len(chunk.text),
            )

        relevance = sum(contribution for contribution, _, _ in best.values())

        matched: list[str] = []
        title_weight = 0.0
        for origin in origins:
            if origin not in best:
                continue
            _, query_term, posting = best[origin]
            title_weight += posting.title_weight(self.field_boosts)
            # category-only matches add score but have nothing to highlight
            if (posting.frequency or posting.title_frequency) and query_term.term not in matched:
                matched.append(query_term.term)

        return ChunkScore(
            chunk_id=chunk.id,
            document_id=chunk.document_id,
            score=coverage_score(len(best), relevance),
            matched_terms=tuple(matched),
            title_weight=title_weight,
            text_length=len(chunk.text),
            relevance=relevance,
        )

    def rank(
        self,
        query_terms: Sequence[QueryTerm],
        candidates: Mapping[str, Mapping[str, Posting]],
    ) -> list[ChunkScore]:
        """Score every candidate chunk, drop zero scores and order by relevance."""

        scored = []
        for chunk_id, postings_by_term in candidates.items():
            result = self.score(query_terms, self.index.chunk(chunk_id), postings_by_term)
            if result.score > 0:
                scored.append(result)
        scored.sort(key=ChunkScore.sort_key)
        return scored
