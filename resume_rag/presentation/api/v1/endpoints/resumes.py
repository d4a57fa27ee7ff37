"""Resumes API — submit files for ingestion, inspect and delete them."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from resume_rag.application.schemas.resumes import (
    BulkUploadResponse,
    ChunkSchema,
    DeleteResponse,
    DocumentResponse,
    EducationSchema,
    ResumeMetadataSchema,
    UploadAcceptedResponse,
)
from resume_rag.application.services.ingestion_service import IngestionService
from resume_rag.config import get_settings
from resume_rag.domain.entities import Document
from resume_rag.domain.exceptions import ResumeRagError
from resume_rag.infrastructure.dependencies import get_ingestion_service
from resume_rag.presentation.api.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])

MAX_BULK_FILES = 10


# ── Helpers ──────────────────────────────────────────────────────────


def _to_response(document: Document, *, include_chunks: bool = False) -> DocumentResponse:
    metadata = document.metadata
    return DocumentResponse(
        id=document.id,
        owner_id=document.owner_id,
        original_filename=document.original_filename,
        media_type=document.media_type,
        byte_size=document.byte_size,
        status=document.status.value,
        processed=document.processed,
        error=document.error,
        parent_id=document.parent_id,
        chunk_count=len(document.chunks),
        vector_count=len(document.vector_ids),
        metadata=ResumeMetadataSchema(
            email=metadata.email,
            phone=metadata.phone,
            location=metadata.location,
            experience_years=metadata.experience_years,
            skills=list(metadata.skills),
            education=[
                EducationSchema(degree=e.degree, institution=e.institution, year=e.year)
                for e in metadata.education
            ],
        ),
        chunks=[ChunkSchema(**c.to_dict()) for c in document.chunks] if include_chunks else None,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


async def _read_upload(file: UploadFile) -> bytes:
    limit = get_settings().max_upload_size_mb * 1024 * 1024
    content = await file.read()
    if len(content) > limit:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {get_settings().max_upload_size_mb} MB",
        )
    return content


async def _submit(
    file: UploadFile, owner_id: str, service: IngestionService, *, is_archive: bool
) -> UploadAcceptedResponse:
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")
    content = await _read_upload(file)
    return await _accept(content, file.filename, owner_id, service, is_archive=is_archive)


async def _accept(
    content: bytes,
    filename: str,
    owner_id: str,
    service: IngestionService,
    *,
    is_archive: bool = False,
) -> UploadAcceptedResponse:
    try:
        document = await service.submit_upload(content, filename, owner_id, is_archive=is_archive)
    except ResumeRagError as e:
        raise to_http_exception(e)

    logger.info("Accepted %s as document %s", filename, document.id)
    return UploadAcceptedResponse(
        document_id=document.id,
        status=document.status.value,
        original_filename=document.original_filename,
        archive=is_archive,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post("", response_model=UploadAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_resume(
    file: UploadFile,
    owner_id: str = Form(...),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Upload a single resume (.pdf, .docx, .txt) and queue it for ingestion."""
    return await _submit(file, owner_id, service, is_archive=False)


@router.post("/bulk", response_model=BulkUploadResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_resumes_bulk(
    files: list[UploadFile] = File(...),
    owner_id: str = Form(...),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Upload up to ten resumes in one request; each is queued as its own document.

    The whole batch is checked before anything is staged, so a rejected
    request queues nothing.
    """
    if len(files) > MAX_BULK_FILES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"At most {MAX_BULK_FILES} files may be uploaded at once",
        )

    batch: list[tuple[str, bytes]] = []
    for file in files:
        if not file.filename:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file provided")
        content = await _read_upload(file)
        if not content:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Uploaded file is empty: {file.filename}",
            )
        batch.append((file.filename, content))

    accepted = [await _accept(content, filename, owner_id, service) for filename, content in batch]
    return BulkUploadResponse(accepted=accepted, count=len(accepted))


@router.post("/archive", response_model=UploadAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_archive(
    file: UploadFile,
    owner_id: str = Form(...),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Upload a .zip of resumes; each member becomes its own document."""
    return await _submit(file, owner_id, service, is_archive=True)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_resume(
    document_id: str,
    include_chunks: bool = Query(False),
    service: IngestionService = Depends(get_ingestion_service),
):
    """Current ingestion status, extracted metadata and optionally the chunks."""
    try:
        document = await service.get_document(document_id)
    except ResumeRagError as e:
        raise to_http_exception(e)
    return _to_response(document, include_chunks=include_chunks)


@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_resume(
    document_id: str,
    service: IngestionService = Depends(get_ingestion_service),
):
    """Delete a resume, its vectors, its stored original and its jobs."""
    try:
        await service.delete_document(document_id)
    except ResumeRagError as e:
        raise to_http_exception(e)
    return DeleteResponse(document_id=document_id)
