"""Prefix completions for short partial queries.

Candidates are the folded surface words seen during indexing (titles, headings
and body text alike), so suggestions read as real words ("routes") rather than
stems ("rout"). Ranking uses the corpus frequency of the
indexed term behind each word, then the word's own frequency, then the word.
"""

from __future__ import annotations

import bisect
import logging
import re

from docsite_search.search.analyzers import fold_text
from docsite_search.search.inverted_index import InvertedIndex


logger = logging.getLogger(__name__)

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)


class SuggestionEngine:
    """Answer ``suggest`` calls from one index generation; holds no query state."""

    def __init__(self, index: InvertedIndex) -> None:
        self.index = index
        self._surface_frequency = index.surface_forms()
        self._surfaces = sorted(self._surface_frequency)

    def _rank_key(self, surface: str) -> tuple[int, int, str]:
        term = self.index.term_for_surface(surface) or surface
        return (-self.index.term_frequency(term), -self._surface_frequency.get(surface, 0), surface)

    def complete(self, prefix: str) -> list[str]:
        """Return every indexed word starting with ``prefix``, best first."""

        if not prefix:
            return []
        lo = bisect.bisect_left(self._surfaces, prefix)
        hi = lo
        while hi < len(self._surfaces) and self._surfaces[hi].startswith(prefix):
            hi += 1
        return sorted(self._surfaces[lo:hi], key=self._rank_key)

    def suggest(self, partial_query: str, max_results: int = 5) -> list[str]:
        """Return up to ``max_results`` distinct completions for ``partial_query``.

        Multi-word input completes the last word and keeps the preceding words
        as typed (folded). Input ending in whitespace has nothing to complete.
        """

        if max_results <= 0 or not partial_query or not partial_query.strip():
            return []
        if partial_query[-1].isspace():
            return []

        words = _WORD_PATTERN.findall(fold_text(partial_query))
        if not words:
            return []
        head, last = words[:-1], words[-1]
        lead = " ".join(head)

        suggestions: list[str] = []
        for word in self.complete(last):
            candidate = f"{lead} {word}" if lead else word
            if candidate not in suggestions:
                suggestions.append(candidate)
            if len(suggestions) >= max_results:
                break

        logger.debug("Suggestions for %r: %s", partial_query, suggestions)
        return suggestions
