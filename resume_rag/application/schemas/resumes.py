"""Pydantic DTOs for the resume ingestion API."""

from datetime import datetime

from pydantic import BaseModel, Field


class EducationSchema(BaseModel):
    degree: str
    institution: str | None = None
    year: int | None = None


class ResumeMetadataSchema(BaseModel):
    """Structured facts pulled from a resume. Contact fields are never echoed in search payloads."""

    email: str | None = None
    phone: str | None = None
    location: str | None = None
    experience_years: int = 0
    skills: list[str] = []
    education: list[EducationSchema] = []


class ChunkSchema(BaseModel):
    index: int
    text: str
    offset: int
    overlap: int


class DocumentResponse(BaseModel):
    """Current state of a submitted resume."""

    id: str
    owner_id: str
    original_filename: str
    media_type: str
    byte_size: int
    status: str
    processed: bool
    error: str | None = None
    parent_id: str | None = None
    chunk_count: int = 0
    vector_count: int = 0
    metadata: ResumeMetadataSchema = Field(default_factory=ResumeMetadataSchema)
    chunks: list[ChunkSchema] | None = None
    created_at: datetime
    updated_at: datetime


class UploadAcceptedResponse(BaseModel):
    """Returned once a file is staged and its ingestion job is queued."""

    document_id: str
    status: str
    original_filename: str
    archive: bool = False


class BulkUploadResponse(BaseModel):
    accepted: list[UploadAcceptedResponse]
    count: int


class DeleteResponse(BaseModel):
    document_id: str
    deleted: bool = True
