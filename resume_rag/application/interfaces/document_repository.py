"""Abstract repository interface (port) for resume documents."""

from abc import ABC, abstractmethod

from resume_rag.domain.entities import Document


class DocumentRepository(ABC):
    """Port for document persistence — implemented in the infrastructure layer.

    Every call is atomic on its own; callers rely on that for checkpoints.
    """

    @abstractmethod
    async def get_by_id(self, document_id: str) -> Document | None:
        ...

    @abstractmethod
    async def get_children(self, parent_id: str) -> list[Document]:
        """Retrieve documents expanded from an archive."""
        ...

    @abstractmethod
    async def create(self, document: Document) -> Document:
        """Persist a new document and return it with the generated ID."""
        ...

    @abstractmethod
    async def update(self, document: Document) -> Document:
        ...

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete a document by ID. Returns True if deleted, False if not found."""
        ...
