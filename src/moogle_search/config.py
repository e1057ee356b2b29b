"""Centralized configuration for moogle-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed engine configuration loaded from environment variables.

    Engine calls receive a ``Settings`` instance explicitly; nothing in the
    core reads the environment on its own.
    """

    model_config = SettingsConfigDict(
        env_prefix="MOOGLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",  # Ignore extra env vars not defined in model
    )

    # Corpus settings
    content_dir: Path | None = Field(default=None, description="Directory holding the plain-text corpus")
    file_pattern: str = Field(default="*.txt", description="Glob pattern selecting corpus files")

    # Ranking settings
    min_similarity: float = Field(
        default=0.01,
        ge=0.0,
        description="Cosine zero guard; attempts whose best score does not exceed it are void",
    )
    proximity_boost: float = Field(
        default=0.5,
        ge=0.0,
        description="Proximity multiplier is 1 + proximity_boost / span",
    )

    # Fuzzy fallback settings
    min_results: int = Field(default=16, ge=0, description="Fallback runs while fewer results than this are found")
    max_fuzzy_depth: int = Field(default=2, ge=0, description="Largest edit distance explored; 0 disables fallback")

    # Snippet settings
    snippet_budget: int = Field(default=256, ge=1, description="Character budget of a snippet")
    snippet_min_paragraph: int = Field(
        default=64,
        ge=0,
        description="Stop adding paragraphs once less than this many characters remain",
    )
    snippet_word_lookback: int = Field(
        default=16,
        ge=0,
        description="Window searched backwards for whitespace when truncating a paragraph",
    )
    snippet_ellipsis: str = Field(default="...", description="Marker appended to a truncated paragraph")
    snippet_separator: str = Field(default="\n", description="Text placed between snippet paragraphs")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON log lines")

    @model_validator(mode="after")
    def _check_snippet_allowance(self) -> "Settings":
        if self.snippet_min_paragraph > self.snippet_budget:
            raise ValueError(
                f"snippet_min_paragraph ({self.snippet_min_paragraph}) cannot exceed "
                f"snippet_budget ({self.snippet_budget})"
            )
        return self

    def fuzzy_depths(self) -> range:
        """Edit distances explored by the fuzzy fallback, in order."""
        return range(1, self.max_fuzzy_depth + 1)
