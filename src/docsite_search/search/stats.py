"""Statistical helpers for chunk scoring.

The functions here stay independent of the index implementation so they can be
unit tested on plain numbers.
"""

from __future__ import annotations

import math


def calculate_idf(doc_freq: int, total_docs: int, *, floor: float = 1e-6) -> float:
    """Return inverse document frequency with small-sample smoothing.

    Uses the BM25 ratio inside ``log(1 + x)`` so a term present in every
    chunk still keeps a small positive weight. Small corpora (two documents
    sharing a title) would otherwise score every match as zero.
    """

    if total_docs <= 0:
        return 0.0
    df = max(0, min(doc_freq, total_docs))
    numerator = total_docs - df + 0.5
    denominator = df + 0.5
    return max(math.log1p(numerator / denominator), floor)


def saturate(value: float) -> float:
    """Map a non-negative relevance onto ``[0, 1)``, preserving order."""

    if value <= 0:
        return 0.0
    return value / (1.0 + value)


def coverage_score(matched: int, relevance: float) -> float:
    """Combine distinct-term coverage with relevance.

    Every matched distinct term adds a whole point and the saturated relevance
    stays below one, so no amount of repetition of one term outweighs a second
    matched term. The result grows with both arguments.
    """

    return max(0, matched) + saturate(relevance)
