"""Abstract repository interface (port) for the ingestion job queue."""

from abc import ABC, abstractmethod
from datetime import datetime

from resume_rag.domain.entities import IngestionJob


class IngestionJobRepository(ABC):
    """Port for the durable job queue — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, job_id: str) -> IngestionJob | None:
        ...

    @abstractmethod
    async def get_active_for_document(self, document_id: str) -> IngestionJob | None:
        """Return the queued or processing job for a document, if any."""
        ...

    @abstractmethod
    async def create(self, job: IngestionJob) -> IngestionJob:
        """Persist a new job and return it with the generated ID."""
        ...

    @abstractmethod
    async def update(self, job: IngestionJob) -> IngestionJob:
        ...

    @abstractmethod
    async def claim_due(
        self, limit: int, now: datetime, stale_before: datetime
    ) -> list[IngestionJob]:
        """Atomically move due jobs to processing and return them.

        Claims queued jobs whose ``next_attempt_at`` has passed, plus processing
        jobs started before ``stale_before`` (abandoned by a crashed worker).
        Each claimed job has its attempt counter incremented.
        """
        ...

    @abstractmethod
    async def delete_for_document(self, document_id: str) -> int:
        """Delete all jobs for a document. Returns number of deleted rows."""
        ...
