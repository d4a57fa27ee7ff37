"""Ingestion pipeline — turns a queued resume into indexed, redacted chunks.

State machine per document:
    QUEUED → EXTRACTING → REDACTING → CHUNKING → EMBEDDING_AND_INDEXING → INDEXED | FAILED

The document is written back after every step, so a replayed job restarts
from a consistent checkpoint. Extraction and chunking are deterministic and
embeddings are cached, which makes replays cheap and idempotent.
"""

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path

from resume_rag.application.interfaces.document_repository import DocumentRepository
from resume_rag.application.interfaces.ingestion_job_repository import IngestionJobRepository
from resume_rag.application.interfaces.object_storage import ObjectStorage
from resume_rag.application.interfaces.text_extractor import TextExtractor
from resume_rag.application.services.embedding_service import EmbeddingService
from resume_rag.application.services.pii_redactor import PIIRedactor
from resume_rag.application.services.resume_metadata_extractor import ResumeMetadataExtractor
from resume_rag.application.services.text_chunker import TextChunker
from resume_rag.application.services.vector_index_service import VectorIndexService
from resume_rag.domain.entities import (
    Chunk,
    Document,
    DocumentStatus,
    IndexedVector,
    IngestionJob,
)
from resume_rag.domain.exceptions import EntityNotFoundError, ExtractionFailed, ValidationError
from resume_rag.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("IngestionPipeline")

ARCHIVE_MEMBER_EXTENSIONS = frozenset({".pdf", ".doc", ".docx"})


def build_storage_key(owner_id: str, filename: str, now: datetime | None = None) -> str:
    """``resumes/<owner>/<UTC stamp>-<sanitised filename>``."""
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S%f")
    safe_owner = re.sub(r"[^\w\-]", "_", owner_id)
    safe_name = re.sub(r"[^\w\-.]", "_", Path(filename).name) or "unnamed"
    return f"resumes/{safe_owner}/{stamp}-{safe_name}"


def vector_id(namespace: str, document_id: str, chunk_index: int) -> str:
    """Deterministic identifier so replays overwrite instead of duplicating."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{namespace}:{document_id}:{chunk_index}"))


class IngestionService:
    """Application service owning a document while its ingestion job runs."""

    def __init__(
        self,
        documents: DocumentRepository,
        jobs: IngestionJobRepository,
        extractor: TextExtractor,
        redactor: PIIRedactor,
        metadata_extractor: ResumeMetadataExtractor,
        chunker: TextChunker,
        embeddings: EmbeddingService,
        vector_index: VectorIndexService,
        storage: ObjectStorage,
        *,
        max_attempts: int = 3,
    ):
        self._documents = documents
        self._jobs = jobs
        self._extractor = extractor
        self._redactor = redactor
        self._metadata_extractor = metadata_extractor
        self._chunker = chunker
        self._embeddings = embeddings
        self._vector_index = vector_index
        self._storage = storage
        self._max_attempts = max_attempts

    # ── Caller operations ───────────────────────────────────────────

    async def enqueue(
        self,
        document: Document,
        file_path: str,
        owner_id: str,
        original_filename: str,
        is_archive: bool = False,
    ) -> IngestionJob:
        """Queue ``document`` for ingestion from the staged file at ``file_path``.

        Raises:
            ValidationError: Blank owner or filename, missing file, or the
                document already has an active job.
        """
        if not owner_id or not owner_id.strip():
            raise ValidationError("owner_id must not be empty")
        if not original_filename or not original_filename.strip():
            raise ValidationError("original_filename must not be empty")
        if not Path(file_path).is_file():
            raise ValidationError(f"Source file not found: {file_path}")

        if document.id is None:
            document.owner_id = owner_id
            document.original_filename = original_filename
            await self._documents.create(document)
        elif await self._jobs.get_active_for_document(document.id):
            raise ValidationError(f"Document {document.id} already has an active ingestion job")

        document.processed = False
        document.error = None
        document.advance(DocumentStatus.QUEUED)
        await self._documents.update(document)

        job = await self._jobs.create(
            IngestionJob(
                document_id=document.id,
                file_path=file_path,
                owner_id=owner_id,
                original_filename=original_filename,
                is_archive=is_archive,
                max_attempts=self._max_attempts,
            )
        )
        plog.step_start(
            PipelineStage.UPLOAD,
            f"Queued {original_filename}",
            document=document.id,
            archive=is_archive,
        )
        return job

    async def submit_upload(
        self, content: bytes, filename: str, owner_id: str, *, is_archive: bool = False
    ) -> Document:
        """Stage an uploaded file, create its document and queue it."""
        if not content:
            raise ValidationError("Uploaded file is empty")
        if is_archive and Path(filename).suffix.lower() != ".zip":
            raise ValidationError("Archive uploads must be .zip files")

        staged = await self._storage.stage_upload(content, filename)
        document = Document(
            owner_id=owner_id,
            original_filename=filename,
            media_type=staged.media_type,
            byte_size=staged.byte_size,
        )
        try:
            await self.enqueue(document, staged.path, owner_id, filename, is_archive)
        except ValidationError:
            Path(staged.path).unlink(missing_ok=True)
            raise
        return document

    async def get_document(self, document_id: str) -> Document:
        document = await self._documents.get_by_id(document_id)
        if document is None:
            raise EntityNotFoundError("Document", document_id)
        return document

    async def delete_document_vectors(self, ids: list[str]) -> None:
        await self._vector_index.delete(list(ids))

    async def delete_document(self, document_id: str) -> None:
        """Remove a document with its vectors, stored original, jobs and staged upload.

        Documents expanded from an archive are deleted along with it.
        """
        document = await self.get_document(document_id)
        for child in await self._documents.get_children(document_id):
            await self.delete_document(child.id)

        await self.delete_document_vectors(document.vector_ids)
        if document.storage_key:
            await self._storage.delete_object(document.storage_key)
        active = await self._jobs.get_active_for_document(document_id)
        if active is not None:
            self.release_staged_file(active)
        await self._jobs.delete_for_document(document_id)
        await self._documents.delete(document_id)
        logger.info("Deleted document %s (%d vectors)", document_id, len(document.vector_ids))

    # ── Worker operations ───────────────────────────────────────────

    async def process(self, job: IngestionJob) -> Document:
        """Run the full pipeline for one job. Exceptions propagate to the caller."""
        document = await self.get_document(job.document_id)
        plog.separator(job.original_filename)

        if job.is_archive:
            return await self._expand_archive(job, document)

        document.begin_attempt()
        await self._documents.update(document)

        extension = Path(job.original_filename).suffix.lower()
        with plog.timed_step(PipelineStage.EXTRACT, f"Extracting {job.original_filename}"):
            extraction = await self._extractor.extract(job.file_path, extension)
            if not extraction.text.strip():
                raise ExtractionFailed(f"No text could be extracted from {job.original_filename}")
        plog.detail("Extracted text", chars=len(extraction.text), pages=extraction.page_count)

        with plog.timed_step(PipelineStage.STORAGE, "Storing original"):
            content = await asyncio.to_thread(Path(job.file_path).read_bytes)
            # Replays overwrite the original already on record
            key = document.storage_key or build_storage_key(job.owner_id, job.original_filename)
            document.storage_key = await self._storage.put_object(content, key, document.media_type)
        document.raw_text = extraction.text
        document.advance(DocumentStatus.REDACTING)
        await self._documents.update(document)

        with plog.timed_step(PipelineStage.REDACT, "Redacting PII"):
            redaction = self._redactor.extract_and_redact(document.raw_text)
            metadata = self._metadata_extractor.extract(document.raw_text)
            metadata.email = redaction.email
            metadata.phone = redaction.phone
        document.redacted_text = redaction.redacted_text
        document.metadata = metadata
        document.advance(DocumentStatus.CHUNKING)
        await self._documents.update(document)

        with plog.timed_step(PipelineStage.CHUNK, "Chunking redacted text"):
            chunks = self._chunker.chunk(document.redacted_text)
            if not chunks:
                raise ExtractionFailed("Redacted text produced no chunks")
        document.chunks = chunks
        document.advance(DocumentStatus.EMBEDDING_AND_INDEXING)
        await self._documents.update(document)

        with plog.timed_step(PipelineStage.EMBED, f"Embedding {len(chunks)} chunks"):
            values = await self._embeddings.embed_many([c.text for c in chunks])

        with plog.timed_step(PipelineStage.INDEX, f"Indexing {len(chunks)} vectors"):
            vectors = [
                self._to_indexed_vector(document, chunk, vector)
                for chunk, vector in zip(chunks, values, strict=True)
            ]
            ids = await self._vector_index.upsert(vectors)
            stale = [i for i in document.vector_ids if i not in set(ids)]
            if stale:
                await self._vector_index.delete(stale)

        document.mark_indexed(ids)
        await self._documents.update(document)

        Path(job.file_path).unlink(missing_ok=True)
        plog.step_complete(
            PipelineStage.COMPLETE,
            f"Indexed {job.original_filename}",
            chunks=len(chunks),
            skills=len(metadata.skills),
        )
        return document

    async def record_failure(self, document_id: str, error: str, *, terminal: bool) -> None:
        """Mark a failed attempt on the document and withdraw any vectors it left behind."""
        document = await self._documents.get_by_id(document_id)
        if document is None:
            logger.warning("Cannot record failure for missing document %s", document_id)
            return

        leftover = set(document.vector_ids)
        leftover.update(
            vector_id(self._vector_index.namespace, document_id, c.index) for c in document.chunks
        )
        if leftover:
            try:
                await self._vector_index.delete(sorted(leftover))
            except Exception:
                logger.exception("Could not withdraw vectors of failed document %s", document_id)
        document.vector_ids = []

        document.mark_failed(error, terminal=terminal)
        await self._documents.update(document)
        plog.step_error(
            PipelineStage.ERROR,
            f"Document {document_id} failed ({'terminal' if terminal else 'will retry'})",
        )

    def release_staged_file(self, job: IngestionJob) -> None:
        """Remove the upload staged for ``job`` once nothing will read it again."""
        Path(job.file_path).unlink(missing_ok=True)
        logger.debug("Released staged file for job %s", job.id)

    # ── Internals ───────────────────────────────────────────────────

    def _to_indexed_vector(self, document: Document, chunk: Chunk, values: list[float]) -> IndexedVector:
        metadata = document.metadata
        payload = {
            "document_id": document.id,
            "owner_id": document.owner_id,
            "namespace": self._vector_index.namespace,
            "filename": document.original_filename,
            "chunk_index": chunk.index,
            "text": chunk.text,
            "skills": [s.lower() for s in metadata.skills],
            "experience": metadata.experience_years,
            "education": [e.degree.lower() for e in metadata.education],
        }
        if metadata.location:
            payload["location"] = metadata.location.lower()
        return IndexedVector(
            id=vector_id(self._vector_index.namespace, document.id, chunk.index),
            values=values,
            document_id=document.id,
            namespace=self._vector_index.namespace,
            metadata=payload,
        )

    async def _expand_archive(self, job: IngestionJob, archive: Document) -> Document:
        """Fan an archive out into one child document and job per resume inside it."""
        archive.begin_attempt()
        await self._documents.update(archive)

        with plog.timed_step(PipelineStage.ARCHIVE, f"Expanding {job.original_filename}"):
            already_expanded = {
                child.original_filename for child in await self._documents.get_children(archive.id)
            }
            staged_files = await self._storage.expand_archive(job.file_path, ARCHIVE_MEMBER_EXTENSIONS)

            queued = 0
            for staged in staged_files:
                if staged.filename in already_expanded:
                    Path(staged.path).unlink(missing_ok=True)
                    continue
                child = Document(
                    owner_id=job.owner_id,
                    original_filename=staged.filename,
                    media_type=staged.media_type,
                    byte_size=staged.byte_size,
                    parent_id=archive.id,
                )
                await self.enqueue(child, staged.path, job.owner_id, staged.filename)
                already_expanded.add(staged.filename)
                queued += 1

        plog.detail("Archive members queued", queued=queued, skipped=len(staged_files) - queued)
        archive.chunks = []
        archive.mark_indexed([])
        await self._documents.update(archive)
        Path(job.file_path).unlink(missing_ok=True)
        return archive
