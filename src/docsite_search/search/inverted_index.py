"""In-memory inverted index: term -> postings.

``InvertedIndex`` is the read side. It is immutable once built and owned by
the search engine; queries may read it concurrently without locking. All
mutation happens in ``InvertedIndexWriter`` during a build, and a finished
writer produces a brand-new index, so a rebuild is a swap rather than an
in-place patch.
"""

from __future__ import annotations

from array import array
from collections import Counter, defaultdict
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from docsite_search.domain.model import Chunk, Document
from docsite_search.errors import CorruptIndexError
from docsite_search.search.analyzers import Token, normalize_term
from docsite_search.search.models import Posting


class InvertedIndex:
    """Read-only term -> postings mapping for one corpus generation."""

    def __init__(
        self,
        *,
        generation: int,
        postings: Mapping[str, tuple[Posting, ...]],
        chunks: Mapping[str, Chunk],
        documents: Mapping[str, Document],
        term_frequency: Mapping[str, int],
        surface_frequency: Mapping[str, int],
        surface_terms: Mapping[str, str],
    ) -> None:
        self.generation = generation
        self._postings = MappingProxyType(dict(postings))
        self._chunks = MappingProxyType(dict(chunks))
        self._documents = MappingProxyType(dict(documents))
        self._term_frequency = MappingProxyType(dict(term_frequency))
        self._surface_frequency = MappingProxyType(dict(surface_frequency))
        self._surface_terms = MappingProxyType(dict(surface_terms))
        self._sorted_terms = tuple(sorted(self._postings))

    @classmethod
    def empty(cls, generation: int = 0) -> InvertedIndex:
        return cls(
            generation=generation,
            postings={},
            chunks={},
            documents={},
            term_frequency={},
            surface_frequency={},
            surface_terms={},
        )

    # --- lookups ------------------------------------------------------------

    def lookup(self, term: str) -> list[Posting]:
        """Return postings for ``term`` (normalized like tokenizer output), or []."""

        postings = self._postings.get(term)
        if postings is None:
            normalized = normalize_term(term)
            postings = self._postings.get(normalized, ()) if normalized else ()
        return list(postings)

    def __contains__(self, term: object) -> bool:
        return term in self._postings

    def all_terms(self) -> list[str]:
        """Return every indexed term in sorted order."""
        return list(self._sorted_terms)

    def document_frequency(self, term: str) -> int:
        return len(self._postings.get(term, ()))

    def term_frequency(self, term: str) -> int:
        """Total occurrences of ``term`` across every field of every chunk."""
        return self._term_frequency.get(term, 0)

    def surface_forms(self) -> Mapping[str, int]:
        """Folded surface words seen during indexing with their occurrence counts."""
        return self._surface_frequency

    def term_for_surface(self, surface: str) -> str | None:
        return self._surface_terms.get(surface)

    # --- corpus access ------------------------------------------------------

    def chunk(self, chunk_id: str) -> Chunk:
        try:
            return self._chunks[chunk_id]
        except KeyError:
            raise CorruptIndexError(f"Posting references unknown chunk {chunk_id!r}") from None

    def document(self, document_id: str) -> Document:
        try:
            return self._documents[document_id]
        except KeyError:
            raise CorruptIndexError(f"Chunk references unknown document {document_id!r}") from None

    def document_for_chunk(self, chunk_id: str) -> Document:
        return self.document(self.chunk(chunk_id).document_id)

    def iter_documents(self) -> Iterator[Document]:
        return iter(self._documents.values())

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    @property
    def document_count(self) -> int:
        return len(self._documents)

    @property
    def term_count(self) -> int:
        return len(self._postings)

    def is_empty(self) -> bool:
        return not self._postings


@dataclass
class _PostingAccumulator:
    frequency: int = 0
    title_frequency: int = 0
    category_frequency: int = 0
    positions: list[int] = field(default_factory=list)


class InvertedIndexWriter:
    """Mutable builder used only during an index build."""

    def __init__(self, generation: int) -> None:
        self.generation = generation
        self._postings: dict[str, dict[str, _PostingAccumulator]] = defaultdict(dict)
        self._chunks: dict[str, Chunk] = {}
        self._documents: dict[str, Document] = {}
        self._term_frequency: Counter[str] = Counter()
        self._surface_frequency: Counter[str] = Counter()
        self._surface_terms: dict[str, Counter[str]] = defaultdict(Counter)

    def has_document(self, document_id: str) -> bool:
        return document_id in self._documents

    def add_document(self, document: Document) -> None:
        self._documents[document.id] = document

    def add_chunk(
        self,
        chunk: Chunk,
        *,
        title_tokens: Sequence[Token],
        category_tokens: Sequence[Token],
        body_tokens: Sequence[Token],
    ) -> None:
        """Accumulate postings for one chunk's title, category and body terms."""

        if chunk.document_id not in self._documents:
            raise CorruptIndexError(f"Chunk {chunk.id!r} added before its document {chunk.document_id!r}")
        self._chunks[chunk.id] = chunk

        for token in title_tokens:
            self._accumulator(token, chunk.id).title_frequency += 1
        for token in category_tokens:
            self._accumulator(token, chunk.id).category_frequency += 1
        for token in body_tokens:
            accumulator = self._accumulator(token, chunk.id)
            accumulator.frequency += 1
            accumulator.positions.append(token.position)

    def _accumulator(self, token: Token, chunk_id: str) -> _PostingAccumulator:
        self._term_frequency[token.text] += 1
        self._surface_frequency[token.surface] += 1
        self._surface_terms[token.surface][token.text] += 1
        per_chunk = self._postings[token.text]
        accumulator = per_chunk.get(chunk_id)
        if accumulator is None:
            accumulator = per_chunk[chunk_id] = _PostingAccumulator()
        return accumulator

    def build(self) -> InvertedIndex:
        """Freeze the accumulated state into an immutable ``InvertedIndex``."""

        postings = {
            term: tuple(
                Posting(
                    chunk_id=chunk_id,
                    frequency=acc.frequency,
                    title_frequency=acc.title_frequency,
                    category_frequency=acc.category_frequency,
                    positions=array("I", acc.positions),
                )
                for chunk_id, acc in sorted(per_chunk.items())
            )
            for term, per_chunk in self._postings.items()
        }
        surface_terms = {surface: counts.most_common(1)[0][0] for surface, counts in self._surface_terms.items()}
        return InvertedIndex(
            generation=self.generation,
            postings=postings,
            chunks=self._chunks,
            documents=self._documents,
            term_frequency=self._term_frequency,
            surface_frequency=self._surface_frequency,
            surface_terms=surface_terms,
        )
