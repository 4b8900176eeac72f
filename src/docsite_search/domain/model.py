"""Corpus value objects: documentation pages and their addressable chunks.

Both types are immutable. A ``Document`` is created when a corpus is loaded and
discarded when a newer corpus supersedes it; ``Chunk`` objects are derived from
a document by the chunker and never outlive it.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


def logical_title_key(title: str) -> str:
    """Version-independent key for a document title (casefolded, whitespace collapsed)."""
    return " ".join(title.casefold().split())


class Document(BaseModel):
    """One documentation page as supplied by the content pipeline."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    category: str = "General"
    version: str = Field(min_length=1)
    url: str = ""
    body: str = ""

    @field_validator("id", "version")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @property
    def logical_key(self) -> str:
        """Version-independent identity used to collapse duplicates across versions."""
        return logical_title_key(self.title)


class Chunk(BaseModel):
    """Heading-delimited section of a document; the unit of search results."""

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    title: str
    heading: str | None = None
    text: str
    position: int = Field(ge=0)
    start_index: int = Field(default=0, ge=0)

    @staticmethod
    def make_id(document_id: str, position: int) -> str:
        return f"{document_id}-chunk-{position}"
