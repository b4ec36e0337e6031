"""
CineChat — Pydantic Models

Shared data models used across the entire pipeline.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ── Classification ───────────────────────────────────────


class Intent(str, Enum):
    """What the user's latest message is asking for."""

    MOVIE = "movie"
    TV = "tv"
    OTHER = "other"

    @property
    def is_recommendation(self) -> bool:
        return self is not Intent.OTHER

    @property
    def media_label(self) -> str:
        """Plural, human-readable name of the media kind."""
        return "movies" if self is Intent.MOVIE else "TV shows"


MediaKind = Literal["movie", "tv"]
MEDIA_KINDS = ("movie", "tv")


# ── Structured catalog query ─────────────────────────────


class StructuredQuery(BaseModel):
    """
    Schema-constrained catalog filter produced by the query synthesizer.

    Every field is an optional string: the language model is free to emit
    numbers or lists, which are coerced here, and unknown keys are dropped.
    ``with_cast_names`` / ``with_keywords_names`` are resolved to id-based
    filters before the query is executed.
    """

    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    with_genres: Optional[str] = None
    with_keywords: Optional[str] = None
    with_cast: Optional[str] = None
    with_crew: Optional[str] = None
    year: Optional[str] = None
    primary_release_date_gte: Optional[str] = None
    primary_release_date_lte: Optional[str] = None
    first_air_date_gte: Optional[str] = None
    first_air_date_lte: Optional[str] = None
    sort_by: Optional[str] = None
    with_original_language: Optional[str] = None
    vote_average_gte: Optional[str] = None
    vote_average_lte: Optional[str] = None
    vote_count_gte: Optional[str] = None
    with_runtime_gte: Optional[str] = None
    with_runtime_lte: Optional[str] = None
    language: Optional[str] = None

    # Name-based fields, resolved to ids before execution
    with_cast_names: Optional[str] = None
    with_keywords_names: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_to_string(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, bool):
            return str(value).lower()
        if isinstance(value, (int, float, str)):
            return str(value).strip()
        if isinstance(value, (list, tuple)):
            parts = [str(v).strip() for v in value if isinstance(v, (int, float, str))]
            return ",".join(p for p in parts if p)
        return None

    def as_params(self) -> Dict[str, str]:
        """Only the fields that were actually set, for echoing to the client."""
        return self.model_dump(exclude_none=True)


# ── API Contract ─────────────────────────────────────────


class ConversationMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    role: Literal["user", "assistant"] = "user"
    content: str = Field(default="", validation_alias=AliasChoices("content", "text"))
    tmdb_data: Optional[List[Dict[str, Any]]] = Field(
        default=None, validation_alias=AliasChoices("tmdbData", "tmdb_data")
    )


class RespondRequest(BaseModel):
    messages: Optional[List[ConversationMessage]] = None


class RespondResponse(BaseModel):
    response: str
    tmdbData: Optional[List[Dict[str, Any]]] = None
    queryParams: Optional[Dict[str, str]] = None
    requestType: Optional[MediaKind] = None
