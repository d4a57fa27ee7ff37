"""Domain entities for retrieval and answer generation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from resume_rag.domain.exceptions import ValidationError

_FILTER_KEYS = frozenset({
    "skills",
    "experience_min",
    "experience_max",
    "location",
    "education",
    "owner_id",
})


@dataclass(frozen=True)
class SearchFilters:
    """Structured constraints applied to a semantic search.

    All fields are optional; an empty instance means "no filtering".
    """

    skills: tuple[str, ...] = ()
    experience_min: int | None = None
    experience_max: int | None = None
    location: str | None = None
    education: tuple[str, ...] = ()
    owner_id: str | None = None

    def __post_init__(self) -> None:
        for bound in (self.experience_min, self.experience_max):
            if bound is not None and bound < 0:
                raise ValidationError("Experience bounds must be non-negative")
        if (
            self.experience_min is not None
            and self.experience_max is not None
            and self.experience_min > self.experience_max
        ):
            raise ValidationError("experience_min must not exceed experience_max")

    @property
    def is_empty(self) -> bool:
        return not (
            self.skills
            or self.education
            or self.location
            or self.owner_id
            or self.experience_min is not None
            or self.experience_max is not None
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "SearchFilters":
        """Build filters from a loosely-typed mapping, rejecting unknown keys."""
        if not data:
            return cls()
        unknown = set(data) - _FILTER_KEYS
        if unknown:
            raise ValidationError(f"Unknown filter keys: {', '.join(sorted(unknown))}")

        def _strings(value: Any, name: str) -> tuple[str, ...]:
            if value is None:
                return ()
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)) or not all(
                isinstance(v, str) for v in value
            ):
                raise ValidationError(f"Filter '{name}' must be a list of strings")
            return tuple(v for v in value if v.strip())

        def _text(value: Any, name: str) -> str | None:
            if value is None:
                return None
            if not isinstance(value, str):
                raise ValidationError(f"Filter '{name}' must be a string")
            return value.strip() or None

        def _int(value: Any, name: str) -> int | None:
            if value is None:
                return None
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"Filter '{name}' must be a number")
            # Fractional bounds would silently widen the inclusive range
            if isinstance(value, float) and not value.is_integer():
                raise ValidationError(f"Filter '{name}' must be a whole number of years")
            return int(value)

        return cls(
            skills=_strings(data.get("skills"), "skills"),
            experience_min=_int(data.get("experience_min"), "experience_min"),
            experience_max=_int(data.get("experience_max"), "experience_max"),
            location=_text(data.get("location"), "location"),
            education=_strings(data.get("education"), "education"),
            owner_id=_text(data.get("owner_id"), "owner_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "skills": list(self.skills),
            "experience_min": self.experience_min,
            "experience_max": self.experience_max,
            "location": self.location,
            "education": list(self.education),
            "owner_id": self.owner_id,
        }


@dataclass
class ChunkMatch:
    """A single chunk hit belonging to a search result's document."""

    text: str
    score: float


@dataclass
class SearchResult:
    """A ranked passage returned by the search service."""

    text: str
    document_id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    matches: list[ChunkMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "document_id": self.document_id,
            "score": self.score,
            "metadata": dict(self.metadata),
            "matches": [{"text": m.text, "score": m.score} for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResult":
        return cls(
            text=data["text"],
            document_id=data["document_id"],
            score=float(data["score"]),
            metadata=dict(data.get("metadata") or {}),
            matches=[ChunkMatch(text=m["text"], score=float(m["score"])) for m in data.get("matches") or []],
        )


@dataclass
class ContextResult:
    """A passage considered for answer generation.

    ``score`` is the similarity reported by retrieval; ``relevance`` is the
    combined ranking score assigned by the context optimizer.
    """

    text: str
    document_id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    relevance: float | None = None

    @classmethod
    def from_search_result(cls, result: SearchResult) -> "ContextResult":
        return cls(
            text=result.text,
            document_id=result.document_id,
            score=result.score,
            metadata=dict(result.metadata),
        )


@dataclass
class Citation:
    text: str
    document_id: str
    score: float


@dataclass
class RAGResponse:
    """Generated answer with supporting citations and a confidence estimate."""

    answer: str
    citations: list[Citation] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "citations": [
                {"text": c.text, "document_id": c.document_id, "score": c.score}
                for c in self.citations
            ],
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RAGResponse":
        return cls(
            answer=data["answer"],
            citations=[
                Citation(text=c["text"], document_id=c["document_id"], score=float(c["score"]))
                for c in data.get("citations") or []
            ],
            confidence=float(data.get("confidence", 0.0)),
        )
