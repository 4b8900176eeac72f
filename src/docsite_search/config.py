"""Centralized configuration for docsite-search using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Strictly typed search configuration loaded from environment variables.

    Every knob has a working default so the engine can be constructed without
    any environment. Values are read once and passed explicitly into the
    engine; no component reads a shared global.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCSITE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Field weighting
    title_boost: float = Field(default=3.0, gt=0.0, description="Multiplier applied to title term frequency")
    category_boost: float = Field(default=2.0, gt=0.0, description="Multiplier applied to category term frequency")
    body_boost: float = Field(default=1.0, gt=0.0, description="Multiplier applied to body term frequency")

    # Fuzzy matching
    fuzzy_discount: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Score multiplier for terms reached through fuzzy expansion",
    )
    fallback_fuzzy_threshold: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Fuzzy threshold used when exact lookup yields no candidates",
    )

    # Results
    preview_window: int = Field(default=160, ge=20, description="Characters of chunk text shown in a preview")
    result_cap: int = Field(default=50, ge=1, description="Maximum results returned (and highlighted) per query")
    highlight_style: Literal["html", "plain"] = Field(
        default="html",
        description="Marker style: html wraps matches in <mark>, plain in [[...]]",
    )

    # Suggestions
    suggestion_limit: int = Field(default=5, ge=1, description="Maximum suggestions returned by auto_suggest")
    suggest_max_prefix_length: int = Field(
        default=2,
        ge=1,
        description="Longest partial query answered with suggestions instead of a search",
    )
    min_search_length: int = Field(default=3, ge=1, description="Shortest query the UI should send to search")
    debounce_ms: int = Field(default=300, ge=0, description="Keystroke debounce the UI applies before searching")

    # Versioning
    default_scope: Literal["current", "all"] = Field(default="current", description="Scope used when none is given")
    default_version: str = Field(default="v1", min_length=1, description="Active documentation version at startup")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    json_logs: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_suggestion_policy(self) -> "SearchSettings":
        if self.suggest_max_prefix_length >= self.min_search_length:
            raise ValueError(
                "DOCSITE_SEARCH_SUGGEST_MAX_PREFIX_LENGTH must be smaller than DOCSITE_SEARCH_MIN_SEARCH_LENGTH "
                "so every partial query is answered either by suggestions or by a search."
            )
        return self

    def field_boosts(self) -> dict[str, float]:
        """Return the per-field weight multipliers keyed by field name."""
        return {
            "title": self.title_boost,
            "category": self.category_boost,
            "body": self.body_boost,
        }


@lru_cache(maxsize=1)
def get_settings() -> SearchSettings:
    """Return the process default settings (read from the environment once)."""
    return SearchSettings()
