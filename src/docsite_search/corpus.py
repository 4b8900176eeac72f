"""Corpus acquisition: turn on-disk documentation into ``Document`` records.

Two sources are supported:

- a ``search-index.json`` file, a list of
  ``{slug, title, category, url, chunks: [{id, text, startIndex, preview}]}``
  entries where the version is the first slug segment;
- a markdown tree whose files carry YAML front matter between ``---``
  delimiters, with the version taken from the first directory.

Reading is blocking; the ``aload_*`` variants push it to a worker thread with
anyio so corpus acquisition is the only suspension point.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from pathlib import Path
import re
from typing import Any

from anyio import to_thread
import orjson
from pydantic import ValidationError
import yaml

from docsite_search.domain.model import Document
from docsite_search.errors import CorpusLoadError


logger = logging.getLogger(__name__)

DELIMITER = "---"
FOLDER_SUFFIX = "/_folder"
SKIPPED_DIRECTORIES = frozenset({"internal-docs"})

_FRONT_MATTER_PATTERN = re.compile(
    rf"^{re.escape(DELIMITER)}[ \t]*\r?\n(.*?)\r?\n{re.escape(DELIMITER)}[ \t]*(?:\r?\n|$)",
    re.DOTALL,
)


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML front matter from markdown content.

    Returns:
        Tuple of (front_matter_dict, markdown_content). Without front matter,
        or when it is not a YAML mapping, returns (empty dict, original content).

    Example:
        >>> metadata, body = parse_front_matter("---\\ntitle: Lenses\\n---\\n# Lenses")
        >>> metadata["title"], body
        ('Lenses', '# Lenses')
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content

    try:
        metadata = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        logger.warning("Ignoring invalid YAML front matter")
        return {}, content

    if not isinstance(metadata, dict):
        return {}, content

    return metadata, content[match.end() :]


def title_from_path(path: str) -> str:
    """Derive a display title from a file path ("getting-started.md" -> "Getting Started")."""

    name = path.rsplit("/", 1)[-1]
    if name.endswith(".md"):
        name = name[:-3]
    return " ".join(word.capitalize() for word in name.replace("_", "-").split("-") if word)


def version_from_slug(slug: str, default: str) -> str:
    head, sep, _ = slug.strip("/").partition("/")
    return head if sep and head else default


def parse_search_index(payload: Iterable[Mapping[str, Any]], *, default_version: str = "v1") -> list[Document]:
    """Convert ``search-index.json`` entries into documents.

    Version folder entries (``"<version>/_folder"``) are skipped. An explicit
    ``version`` field wins over the slug prefix.
    """

    if isinstance(payload, (str, bytes)) or not isinstance(payload, Iterable):
        raise CorpusLoadError(f"Search index must be a list of documents, got {type(payload).__name__}")

    documents: list[Document] = []
    for position, entry in enumerate(payload):
        if not isinstance(entry, Mapping):
            raise CorpusLoadError(f"Search index entry #{position} is not an object")
        slug = str(entry.get("slug") or entry.get("id") or "").strip("/")
        if not slug or slug.endswith(FOLDER_SUFFIX) or entry.get("type", "document") != "document":
            continue

        chunks = entry.get("chunks") or []
        body = "\n\n".join(str(chunk.get("text", "")) for chunk in chunks if isinstance(chunk, Mapping))
        try:
            documents.append(
                Document(
                    id=slug,
                    title=str(entry.get("title") or title_from_path(slug)),
                    category=str(entry.get("category") or "General"),
                    version=str(entry.get("version") or version_from_slug(slug, default_version)),
                    url=str(entry.get("url") or f"/docs/{slug}"),
                    body=body,
                )
            )
        except ValidationError as exc:
            raise CorpusLoadError(f"Search index entry {slug!r} is invalid: {exc.error_count()} error(s)") from exc

    logger.info("Parsed %d document(s) from search index", len(documents))
    return documents


def load_search_index(path: Path | str, *, default_version: str = "v1") -> list[Document]:
    """Read and parse a ``search-index.json`` file."""

    path = Path(path)
    try:
        payload = orjson.loads(path.read_bytes())
    except OSError as exc:
        raise CorpusLoadError(f"Cannot read search index {path}: {exc}") from exc
    except orjson.JSONDecodeError as exc:
        raise CorpusLoadError(f"Search index {path} is not valid JSON: {exc}") from exc
    return parse_search_index(payload, default_version=default_version)


def load_markdown_corpus(root: Path | str, *, default_version: str = "v1") -> list[Document]:
    """Load every ``*.md`` file below ``root`` as a document.

    The first directory under ``root`` names the version; files directly in
    ``root`` get ``default_version``. ``internal-docs`` trees are skipped.
    """

    root = Path(root)
    if not root.is_dir():
        raise CorpusLoadError(f"Markdown corpus root {root} is not a directory")

    documents: list[Document] = []
    for path in sorted(root.rglob("*.md")):
        relative = path.relative_to(root)
        if SKIPPED_DIRECTORIES.intersection(relative.parts[:-1]):
            continue
        slug = relative.with_suffix("").as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CorpusLoadError(f"Cannot read {path}: {exc}") from exc

        metadata, body = parse_front_matter(content)
        version = relative.parts[0] if len(relative.parts) > 1 else default_version
        try:
            document = Document(
                id=slug,
                title=str(metadata.get("title") or title_from_path(slug)),
                category=str(metadata.get("category") or "General"),
                version=str(metadata.get("version") or version),
                url=str(metadata.get("url") or f"/docs/{slug}"),
                body=body,
            )
        except ValidationError as exc:
            raise CorpusLoadError(f"Markdown document {path} is invalid: {exc.error_count()} error(s)") from exc
        documents.append(document)

    logger.info("Loaded %d markdown document(s) from %s", len(documents), root)
    return documents


def load_corpus(path: Path | str, *, default_version: str = "v1") -> list[Document]:
    """Load a markdown tree (directory) or a search index (file)."""

    path = Path(path)
    if path.is_dir():
        return load_markdown_corpus(path, default_version=default_version)
    return load_search_index(path, default_version=default_version)


async def aload_search_index(path: Path | str, *, default_version: str = "v1") -> list[Document]:
    return await to_thread.run_sync(lambda: load_search_index(path, default_version=default_version))


async def aload_markdown_corpus(root: Path | str, *, default_version: str = "v1") -> list[Document]:
    return await to_thread.run_sync(lambda: load_markdown_corpus(root, default_version=default_version))


async def aload_corpus(path: Path | str, *, default_version: str = "v1") -> list[Document]:
    return await to_thread.run_sync(lambda: load_corpus(path, default_version=default_version))
