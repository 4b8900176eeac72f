"""Version scoping for ranked results.

Scoping works on already-ranked results, so switching between the current
version and all versions never requires a rebuild.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, TypeVar

from docsite_search.domain.model import logical_title_key
from docsite_search.domain.search import SearchScope


class _ScopedDocument(Protocol):
    title: str
    version: str


class _ScopedChunk(Protocol):
    heading: str | None


class Scoped(Protocol):
    """Anything carrying a score, its chunk and an owning document with title and version."""

    @property
    def document(self) -> _ScopedDocument: ...

    @property
    def chunk(self) -> _ScopedChunk: ...

    @property
    def score(self) -> float: ...


ScopedT = TypeVar("ScopedT", bound=Scoped)


def section_key(result: Scoped) -> tuple[str, str]:
    """Version-independent identity of a result: logical title plus chunk heading."""
    return logical_title_key(result.document.title), logical_title_key(result.chunk.heading or "")


class VersionScopeFilter:
    """Restrict results to one version, or collapse version duplicates across all."""

    def filter(
        self,
        results: Sequence[ScopedT],
        scope: SearchScope | str,
        current_version: str,
    ) -> list[ScopedT]:
        scope = SearchScope(scope)
        if scope is SearchScope.CURRENT:
            return [result for result in results if result.document.version == current_version]
        return self.collapse_versions(results)

    @staticmethod
    def collapse_versions(results: Sequence[ScopedT]) -> list[ScopedT]:
        """Keep one version of each logical section, preserving input order.

        Results with the same title and heading are the same section published
        under several versions. The version of the highest-scoring entry wins
        (equal scores keep the earlier one) and every entry of that version is
        kept, so distinct pages or sections that share a version never collapse
        into each other.
        """

        best: dict[tuple[str, str], int] = {}
        for position, result in enumerate(results):
            key = section_key(result)
            kept = best.get(key)
            if kept is None or result.score > results[kept].score:
                best[key] = position
        return [
            result
            for result in results
            if result.document.version == results[best[section_key(result)]].document.version
        ]
