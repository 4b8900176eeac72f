"""Search data models."""

from array import array
from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Posting:
    """A posting represents a term occurrence in a chunk.

    Frequencies are kept per field so the scorer can apply field weights;
    ``positions`` are body token positions.
    """

    chunk_id: str
    frequency: int = 0
    title_frequency: int = 0
    category_frequency: int = 0
    positions: array = field(default_factory=lambda: array("I"))

    @property
    def in_title(self) -> bool:
        return self.title_frequency > 0

    @property
    def total_frequency(self) -> int:
        return self.frequency + self.title_frequency + self.category_frequency

    def weighted_frequency(self, boosts: Mapping[str, float]) -> float:
        """Return field-weighted term frequency for this chunk."""
        return (
            self.frequency * boosts.get("body", 1.0)
            + self.title_frequency * boosts.get("title", 1.0)
            + self.category_frequency * boosts.get("category", 1.0)
        )

    def title_weight(self, boosts: Mapping[str, float]) -> float:
        return self.title_frequency * boosts.get("title", 1.0)
