"""Domain entities for resume documents and their derived artefacts."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class DocumentStatus(str, Enum):
    """Ingestion state machine of a document."""

    QUEUED = "queued"
    EXTRACTING = "extracting"
    REDACTING = "redacting"
    CHUNKING = "chunking"
    EMBEDDING_AND_INDEXING = "embedding_and_indexing"
    INDEXED = "indexed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DocumentStatus.INDEXED, DocumentStatus.FAILED)


@dataclass(frozen=True)
class Chunk:
    """A bounded slice of normalized document text.

    ``offset`` is the chunk's start relative to the start of the previous
    chunk; ``overlap`` is how many leading characters it shares with the
    previous chunk's tail. ``text[overlap:]`` is the chunk's unique span.
    """

    index: int
    text: str
    offset: int = 0
    overlap: int = 0

    @property
    def unique_text(self) -> str:
        return self.text[self.overlap:]

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "text": self.text,
            "offset": self.offset,
            "overlap": self.overlap,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chunk":
        return cls(
            index=int(data.get("index", 0)),
            text=data.get("text", ""),
            offset=int(data.get("offset", 0)),
            overlap=int(data.get("overlap", 0)),
        )


@dataclass
class EducationEntry:
    """A degree found in the education section of a resume."""

    degree: str
    institution: str | None = None
    year: int | None = None


@dataclass
class ResumeMetadata:
    """Structured fields extracted from a resume.

    ``email`` and ``phone`` are captured before redaction; everything else is
    derived from the resume text with lightweight heuristics.
    """

    email: str | None = None
    phone: str | None = None
    location: str | None = None
    experience_years: int = 0
    skills: list[str] = field(default_factory=list)
    education: list[EducationEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "experience_years": self.experience_years,
            "skills": list(self.skills),
            "education": [
                {"degree": e.degree, "institution": e.institution, "year": e.year}
                for e in self.education
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ResumeMetadata":
        data = data or {}
        return cls(
            email=data.get("email"),
            phone=data.get("phone"),
            location=data.get("location"),
            experience_years=int(data.get("experience_years") or 0),
            skills=list(data.get("skills") or []),
            education=[
                EducationEntry(
                    degree=e.get("degree", ""),
                    institution=e.get("institution"),
                    year=e.get("year"),
                )
                for e in data.get("education") or []
            ],
        )


@dataclass
class Document:
    """A resume moving through the ingestion pipeline.

    Owned exclusively by the pipeline while a job runs; read or deleted by the
    application layer afterwards. ``processed`` with no ``error`` means every
    chunk has a vector-index identifier.
    """

    owner_id: str
    original_filename: str
    media_type: str = "application/octet-stream"
    byte_size: int = 0
    id: str | None = None
    storage_key: str | None = None
    raw_text: str = ""
    redacted_text: str = ""
    chunks: list[Chunk] = field(default_factory=list)
    metadata: ResumeMetadata = field(default_factory=ResumeMetadata)
    vector_ids: list[str] = field(default_factory=list)
    processed: bool = False
    error: str | None = None
    status: DocumentStatus = DocumentStatus.QUEUED
    parent_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_indexed(self) -> bool:
        return len(self.vector_ids) == len(self.chunks)

    def begin_attempt(self) -> None:
        """Reset terminal flags before a (re)run of the pipeline."""
        self.processed = False
        self.error = None
        self.advance(DocumentStatus.EXTRACTING)

    def advance(self, status: DocumentStatus) -> None:
        self.status = status
        self.updated_at = datetime.now(timezone.utc)

    def mark_indexed(self, vector_ids: list[str]) -> None:
        if len(vector_ids) != len(self.chunks):
            raise ValueError(
                f"Expected {len(self.chunks)} vector ids, got {len(vector_ids)}"
            )
        self.vector_ids = list(vector_ids)
        self.processed = True
        self.error = None
        self.advance(DocumentStatus.INDEXED)

    def mark_failed(self, error: str, *, terminal: bool) -> None:
        """Record a failed attempt; a non-terminal failure awaits a retry."""
        self.processed = True
        self.error = error
        self.advance(DocumentStatus.FAILED if terminal else DocumentStatus.QUEUED)
