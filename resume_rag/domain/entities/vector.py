"""Domain entities for vectors stored in, and returned by, the vector index."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class IndexedVector:
    """An embedded chunk ready to be upserted into the vector index."""

    id: str
    values: list[float]
    document_id: str
    namespace: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorMatch:
    """A raw hit returned by a vector index query, in the index's native order."""

    id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "score": self.score, "metadata": dict(self.metadata)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VectorMatch":
        return cls(
            id=str(data["id"]),
            score=float(data["score"]),
            metadata=dict(data.get("metadata") or {}),
        )
