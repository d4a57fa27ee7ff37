"""Abstract interface (port) for the namespace-scoped vector index."""

from abc import ABC, abstractmethod

from resume_rag.domain.entities import FilterExpression, IndexedVector, VectorMatch


class VectorIndex(ABC):
    """Port for vector storage and similarity search.

    Every operation is scoped to the adapter's namespace. Implementations
    raise ``IndexUnavailable`` on any backend failure.
    """

    @property
    @abstractmethod
    def namespace(self) -> str:
        ...

    @abstractmethod
    async def upsert(self, vectors: list[IndexedVector]) -> list[str]:
        """Insert or overwrite vectors. Returns their identifiers in input order."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter_expression: FilterExpression | None = None,
    ) -> list[VectorMatch]:
        """Return up to ``top_k`` matches ranked by descending similarity."""
        ...

    @abstractmethod
    async def delete(self, ids: list[str]) -> None:
        ...
