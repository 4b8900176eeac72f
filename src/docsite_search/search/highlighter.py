"""Preview extraction and match highlighting.

Matches are found on word boundaries of the case- and diacritic-folded text
and mapped back to the original characters, so "Receptors" in a chunk is
highlighted for the indexed term "receptor". The preview is returned both as a
list of ``HighlightSpan`` runs (safe to render) and as a marked-up string.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import html
import re

from docsite_search.domain.search import HighlightSpan
from docsite_search.search.analyzers import fold_with_offsets, normalize_term


_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)

HIGHLIGHT_STYLES: dict[str, tuple[str, str]] = {
    "html": ("<mark>", "</mark>"),
    "plain": ("[[", "]]"),
}

# Joins preview fragments taken from distant parts of the text
FRAGMENT_SEPARATOR = " … "


@dataclass(frozen=True)
class HighlightedPreview:
    """Marked-up preview text plus the structured spans it was built from."""

    text: str
    spans: tuple[HighlightSpan, ...]

    @property
    def has_match(self) -> bool:
        return any(span.is_match for span in self.spans)


def find_occurrences(
    text: str,
    terms: Iterable[str],
    normalizer: Callable[[str], str | None] = normalize_term,
) -> list[tuple[int, int, str]]:
    """Return ``(start, end, term)`` for every word of ``text`` that normalizes to one of ``terms``.

    Offsets index into the original ``text``.
    """

    wanted = {term for term in terms if term}
    if not text or not wanted:
        return []

    folded, offsets = fold_with_offsets(text)
    seen: dict[str, str | None] = {}
    occurrences: list[tuple[int, int, str]] = []
    for match in _WORD_PATTERN.finditer(folded):
        word = match.group(0)
        if word not in seen:
            seen[word] = normalizer(word)
        term = seen[word]
        if term in wanted:
            occurrences.append((offsets[match.start()], offsets[match.end() - 1] + 1, term))
    return occurrences


def _window_bounds(occurrences: list[tuple[int, int, str]], text_length: int, window: int) -> tuple[int, int]:
    if text_length <= window:
        return 0, text_length

    first_start, first_end, _ = occurrences[0]
    center = (first_start + first_end) // 2
    start = max(0, min(center - window // 2, text_length - window))

    # Slide toward later terms' first occurrences while the first match stays visible
    firsts: dict[str, tuple[int, int]] = {}
    for occ_start, occ_end, term in occurrences:
        firsts.setdefault(term, (occ_start, occ_end))
    last_end = max(end for _, end in firsts.values())
    if last_end > start + window and last_end - first_start <= window:
        start = min(last_end - window, text_length - window)

    return start, start + window


def _fragment_bounds(occurrences: list[tuple[int, int, str]], text_length: int, window: int) -> list[tuple[int, int]]:
    """Primary window plus one smaller fragment per term whose first match falls outside it."""

    bounds = [_window_bounds(occurrences, text_length, window)]
    fragment = max(window // 2, 1)
    firsts: dict[str, tuple[int, int]] = {}
    for occ_start, occ_end, term in occurrences:
        firsts.setdefault(term, (occ_start, occ_end))

    for occ_start, occ_end in firsts.values():
        if any(lo <= occ_start and occ_end <= hi for lo, hi in bounds):
            continue
        center = (occ_start + occ_end) // 2
        lo = max(0, min(center - fragment // 2, text_length - fragment))
        bounds.append((min(lo, occ_start), max(lo + fragment, occ_end)))

    merged: list[tuple[int, int]] = []
    for lo, hi in sorted(bounds):
        if merged and lo <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], hi))
        else:
            merged.append((lo, hi))
    return merged


def _render(spans: Iterable[HighlightSpan], style: str) -> str:
    opener, closer = HIGHLIGHT_STYLES[style]
    escape = html.escape if style == "html" else (lambda value: value)
    parts = []
    for span in spans:
        if span.is_match:
            parts.append(f"{opener}{escape(span.text)}{closer}")
        else:
            parts.append(escape(span.text))
    return "".join(parts)


def highlight(
    text: str,
    terms: Iterable[str],
    preview_window: int = 160,
    style: str = "html",
    *,
    normalizer: Callable[[str], str | None] = normalize_term,
) -> HighlightedPreview:
    """Build a preview of ``text`` centered on the first match of ``terms``.

    Terms whose first match lies outside that window get a fragment of half
    the window around it, joined by ``FRAGMENT_SEPARATOR``, so every matched
    term stays visible. Every match inside a fragment is wrapped in the
    style's emphasis marker.
    Without any match the first ``preview_window`` characters are returned
    unmodified.
    """

    if style not in HIGHLIGHT_STYLES:
        raise ValueError(f"Unknown highlight style '{style}'. Available: {sorted(HIGHLIGHT_STYLES)}")

    occurrences = find_occurrences(text, terms, normalizer)
    if not occurrences:
        preview = text[:preview_window]
        return HighlightedPreview(text=preview, spans=(HighlightSpan(text=preview),) if preview else ())

    spans: list[HighlightSpan] = []
    for index, (start, end) in enumerate(_fragment_bounds(occurrences, len(text), preview_window)):
        if index:
            spans.append(HighlightSpan(text=FRAGMENT_SEPARATOR))
        cursor = start
        for occ_start, occ_end, _ in occurrences:
            if occ_end <= start or occ_start >= end:
                continue
            occ_start, occ_end = max(occ_start, start), min(occ_end, end)
            if occ_start > cursor:
                spans.append(HighlightSpan(text=text[cursor:occ_start]))
            spans.append(HighlightSpan(text=text[occ_start:occ_end], is_match=True))
            cursor = occ_end
        if cursor < end:
            spans.append(HighlightSpan(text=text[cursor:end]))

    return HighlightedPreview(text=_render(spans, style), spans=tuple(spans))
