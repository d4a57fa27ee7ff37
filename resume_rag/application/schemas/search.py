"""Pydantic schemas for search and answer API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field


# ── Request Schemas ──────────────────────────────────────────────────


class SearchRequest(BaseModel):
    """Request body for a semantic resume search.

    ``filters`` accepts skills, experience_min, experience_max, location,
    education and owner_id; unknown keys are rejected.
    """

    query: str = Field(..., min_length=1, description="Natural-language search query")
    filters: dict[str, Any] | None = None
    top_k: int = Field(default=10, ge=1, le=100, description="Maximum number of passages")


class AnswerRequest(BaseModel):
    """Request body for a retrieval-augmented answer."""

    query: str = Field(..., min_length=1, description="Question about the indexed resumes")
    filters: dict[str, Any] | None = None


# ── Response Schemas ─────────────────────────────────────────────────


class ChunkMatchSchema(BaseModel):
    text: str
    score: float


class SearchResultSchema(BaseModel):
    """A ranked passage and the other hits from the same resume."""

    text: str
    document_id: str
    score: float
    metadata: dict[str, Any] = {}
    matches: list[ChunkMatchSchema] = []


class SearchResponse(BaseModel):
    results: list[SearchResultSchema] = []
    total: int = 0


class CitationSchema(BaseModel):
    text: str
    document_id: str
    score: float


class AnswerResponse(BaseModel):
    answer: str
    citations: list[CitationSchema] = []
    confidence: float = 0.0
