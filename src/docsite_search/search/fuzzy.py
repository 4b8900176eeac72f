"""Fuzzy matching for typo-tolerant search.

A proportional threshold is turned into an absolute edit limit with
``round(threshold * len(term))`` (halves round up), so longer terms tolerate
more edits. Raising the threshold never shrinks the set of expansions.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import math

from docsite_search.search.inverted_index import InvertedIndex


logger = logging.getLogger(__name__)


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Uses dynamic programming over two rows, with optional early termination
    when the distance is guaranteed to exceed ``max_distance``.

    Returns:
        The minimum number of single-character insertions, deletions and
        substitutions turning ``s1`` into ``s2``. When ``max_distance`` is set
        and exceeded, returns ``max_distance + 1``.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("recptor", "receptor")
        1
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = curr_row[0]
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def max_distance_for(threshold: float, term_length: int) -> int:
    """Map a proportional fuzzy threshold to an absolute edit distance.

    >>> max_distance_for(0.4, 7)
    3
    >>> max_distance_for(0.2, 7)
    1
    >>> max_distance_for(0.5, 5)
    3
    """
    if threshold <= 0 or term_length <= 0:
        return 0
    return int(math.floor(threshold * term_length + 0.5))


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Sequence[str],
    max_distance: int,
) -> list[tuple[str, int]]:
    """Find terms in ``vocabulary`` within ``max_distance`` edits of ``query_term``.

    Returns:
        ``(term, distance)`` pairs ordered by distance, then alphabetically.
        An exact match has distance 0.
    """
    if not query_term or not vocabulary or max_distance < 0:
        return []

    matches: list[tuple[str, int]] = []
    for term in vocabulary:
        if abs(len(query_term) - len(term)) > max_distance:
            continue
        distance = levenshtein_distance(query_term, term, max_distance)
        if distance <= max_distance:
            matches.append((term, distance))

    matches.sort(key=lambda x: (x[1], x[0]))
    return matches


class FuzzyMatcher:
    """Expand query terms against the vocabulary of one index generation."""

    def __init__(self, index: InvertedIndex) -> None:
        self.index = index
        self._vocabulary = index.all_terms()

    def expand(self, term: str, max_distance: int) -> list[str]:
        """Return indexed terms within ``max_distance`` edits, closest first."""

        return [candidate for candidate, _ in self.expand_with_distance(term, max_distance)]

    def expand_with_distance(self, term: str, max_distance: int) -> list[tuple[str, int]]:
        matches = find_fuzzy_matches(term, self._vocabulary, max_distance)
        logger.debug("Fuzzy expansion of %r (max distance %d): %d term(s)", term, max_distance, len(matches))
        return matches

    def expand_with_threshold(self, term: str, threshold: float) -> list[tuple[str, int]]:
        """Expand ``term`` using a proportional threshold instead of an absolute distance."""

        max_distance = max_distance_for(threshold, len(term))
        if max_distance == 0:
            return []
        return self.expand_with_distance(term, max_distance)
