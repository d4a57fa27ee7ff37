"""Domain entity for ingestion jobs — database-backed job queue."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle states of an ingestion job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionJob:
    """A single unit of work in the ingestion queue.

    Transient: the Document is the system of record, the job only tracks
    attempts. ``attempts`` is incremented when a worker claims the job.
    """

    document_id: str
    file_path: str
    owner_id: str
    original_filename: str
    is_archive: bool = False
    id: str | None = None
    status: JobStatus = JobStatus.QUEUED
    attempts: int = 0
    max_attempts: int = 3
    last_error: str | None = None
    next_attempt_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status in (JobStatus.QUEUED, JobStatus.PROCESSING)

    @property
    def attempts_exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def mark_processing(self, now: datetime | None = None) -> None:
        """Transition to processing state — one more attempt is under way."""
        self.status = JobStatus.PROCESSING
        self.attempts += 1
        self.started_at = now or datetime.now(timezone.utc)

    def mark_completed(self) -> None:
        self.status = JobStatus.COMPLETED
        self.last_error = None
        self.completed_at = datetime.now(timezone.utc)

    def mark_retry(self, error: str, delay_seconds: float) -> None:
        """Put the job back in the queue, due after ``delay_seconds``."""
        self.status = JobStatus.QUEUED
        self.last_error = error
        self.next_attempt_at = datetime.now(timezone.utc) + timedelta(seconds=delay_seconds)

    def mark_failed(self, error: str) -> None:
        self.status = JobStatus.FAILED
        self.last_error = error
        self.completed_at = datetime.now(timezone.utc)
