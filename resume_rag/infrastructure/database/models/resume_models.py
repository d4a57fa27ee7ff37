"""SQLAlchemy ORM models for resume documents and ingestion jobs."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from resume_rag.infrastructure.database.base import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
_JSON = JSON().with_variant(JSONB(), "postgresql")


def _generate_uuid() -> str:
    return str(uuid.uuid4())


class DocumentModel(Base):
    """A resume and every artefact the ingestion pipeline derives from it."""

    __tablename__ = "resume_documents"

    id = Column(String(36), primary_key=True, default=_generate_uuid)
    owner_id = Column(String(255), nullable=False, index=True)
    original_filename = Column(String(500), nullable=False)
    media_type = Column(String(255), nullable=False, default="application/octet-stream")
    byte_size = Column(Integer, nullable=False, default=0)
    storage_key = Column(String(1000), nullable=True)
    raw_text = Column(Text, nullable=False, default="")
    redacted_text = Column(Text, nullable=False, default="")
    chunks = Column(_JSON, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    extracted_metadata = Column("metadata", _JSON, nullable=False, default=dict)
    vector_ids = Column(_JSON, nullable=False, default=list)
    processed = Column(Boolean, nullable=False, default=False)
    error = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default="queued", index=True)
    parent_id = Column(
        String(36),
        ForeignKey("resume_documents.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class IngestionJobModel(Base):
    """A single unit of work in the ingestion queue."""

    __tablename__ = "ingestion_jobs"

    id = Column(String(36), primary_key=True, default=_generate_uuid)
    document_id = Column(
        String(36),
        ForeignKey("resume_documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_path = Column(String(1000), nullable=False)
    owner_id = Column(String(255), nullable=False)
    original_filename = Column(String(500), nullable=False)
    is_archive = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="queued", index=True)
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    last_error = Column(Text, nullable=True)
    next_attempt_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_ingestion_jobs_status_due", "status", "next_attempt_at"),
    )
