"""Split documents into heading-delimited chunks.

A markdown heading line (``#`` through ``######``) starts a new chunk. The
heading markers are consumed, the heading text stays as the first line of the
chunk text, so joining every chunk's text rebuilds the body without the
markers. Heading-like lines inside fenced code blocks are not boundaries.
"""

from __future__ import annotations

import logging
import re

from docsite_search.domain.model import Chunk, Document
from docsite_search.errors import CorpusIngestionError


logger = logging.getLogger(__name__)

_HEADING_PATTERN = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t#]*$", re.MULTILINE)
_FENCE_PATTERN = re.compile(r"^[ \t]*(```|~~~)", re.MULTILINE)


def _fenced_regions(body: str) -> list[tuple[int, int]]:
    regions: list[tuple[int, int]] = []
    open_at: int | None = None
    for match in _FENCE_PATTERN.finditer(body):
        if open_at is None:
            open_at = match.start()
        else:
            regions.append((open_at, match.end()))
            open_at = None
    if open_at is not None:
        regions.append((open_at, len(body)))
    return regions


def find_heading_boundaries(body: str) -> list[re.Match[str]]:
    """Return heading matches that are real section boundaries."""

    fenced = _fenced_regions(body)
    return [
        match
        for match in _HEADING_PATTERN.finditer(body)
        if not any(start <= match.start() < end for start, end in fenced)
    ]


def chunk_document(document: Document) -> list[Chunk]:
    """Split ``document`` into chunks; empty bodies yield no chunks.

    Raises:
        CorpusIngestionError: if the document body cannot be processed.
    """

    body = document.body
    if not isinstance(body, str):
        raise CorpusIngestionError(document.id, f"body must be text, got {type(body).__name__}")
    if not body.strip():
        return []

    boundaries = find_heading_boundaries(body)
    sections: list[tuple[str | None, int, str]] = []

    lead_end = boundaries[0].start() if boundaries else len(body)
    lead_text = body[:lead_end]
    if lead_text.strip():
        sections.append((None, 0, lead_text))

    for idx, match in enumerate(boundaries):
        heading = match.group(2).strip()
        text_start = match.start(2)
        text_end = boundaries[idx + 1].start() if idx + 1 < len(boundaries) else len(body)
        sections.append((heading, text_start, body[text_start:text_end]))

    chunks: list[Chunk] = []
    for position, (heading, start_index, text) in enumerate(sections):
        title = document.title if heading is None else f"{document.title} {heading}".strip()
        chunks.append(
            Chunk(
                id=Chunk.make_id(document.id, position),
                document_id=document.id,
                title=title,
                heading=heading,
                text=text,
                position=position,
                start_index=start_index,
            )
        )

    logger.debug("Chunked %s into %d chunk(s)", document.id, len(chunks))
    return chunks
