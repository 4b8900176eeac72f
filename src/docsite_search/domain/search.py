"""Domain models for query options and search results.

Value objects are immutable (frozen=True). Query-time conditions that callers
must render differently (index still building, empty query, no match) are
modelled as ``SearchStatus`` values on the response rather than exceptions.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from docsite_search.errors import IndexNotReadyError


class SearchScope(str, Enum):
    """Which documentation versions a query may return."""

    CURRENT = "current"
    ALL = "all"


class SearchStatus(str, Enum):
    """Outcome of a search call."""

    OK = "ok"
    NOT_READY = "not_ready"
    EMPTY_QUERY = "empty_query"
    NO_MATCH = "no_match"


class SearchOptions(BaseModel):
    """Caller-supplied query options.

    ``fuzzy`` is a proportional tolerance: 0 disables explicit fuzzy mode, a
    positive value allows ``round(fuzzy * len(term))`` edits per term.
    """

    model_config = ConfigDict(frozen=True)

    fuzzy: float = Field(default=0.0, ge=0.0, le=1.0)
    scope: SearchScope = SearchScope.CURRENT
    limit: int | None = Field(default=None, ge=1)


class HighlightSpan(BaseModel):
    """A run of preview text, flagged when it is a highlighted match."""

    model_config = ConfigDict(frozen=True)

    text: str
    is_match: bool = False


class ResultDocument(BaseModel):
    """Document fields surfaced to result renderers."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    category: str
    url: str
    version: str


class ResultChunk(BaseModel):
    """Chunk fields surfaced to result renderers."""

    model_config = ConfigDict(frozen=True)

    id: str
    heading: str | None = None
    position: int = 0


class SearchResult(BaseModel):
    """A single ranked match, created fresh for every query."""

    model_config = ConfigDict(frozen=True)

    document: ResultDocument
    chunk: ResultChunk
    score: float
    matched_terms: list[str] = Field(default_factory=list)
    highlighted_preview: str = ""
    preview_spans: list[HighlightSpan] = Field(default_factory=list)
    highlighted_title: str = ""


class SearchStats(BaseModel):
    """Timing and diagnostic information for one search call."""

    model_config = ConfigDict(frozen=True)

    candidate_chunks: int = 0
    fuzzy_terms: dict[str, list[str]] = Field(default_factory=dict)
    elapsed_ms: float = 0.0
    generation: int = 0


class SearchResponse(BaseModel):
    """Complete response for a search call: status, ordered results, stats."""

    model_config = ConfigDict(frozen=True)

    query: str
    status: SearchStatus
    results: list[SearchResult] = Field(default_factory=list)
    stats: SearchStats = Field(default_factory=SearchStats)

    @property
    def is_ready(self) -> bool:
        return self.status is not SearchStatus.NOT_READY

    def raise_for_status(self) -> "SearchResponse":
        """Raise ``IndexNotReadyError`` when the index was still building."""
        if self.status is SearchStatus.NOT_READY:
            raise IndexNotReadyError(f"Search index not ready for query {self.query!r}")
        return self

    def __len__(self) -> int:
        return len(self.results)
