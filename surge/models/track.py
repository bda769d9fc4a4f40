"""
Pydantic model for a single search or related-tracks result.
"""

from pydantic import BaseModel, ConfigDict, field_validator


class SearchResult(BaseModel):
    """One track as returned by the backend. Immutable once produced."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str
    title: str
    thumbnail: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("A search result needs a non-empty id.")
        return v
