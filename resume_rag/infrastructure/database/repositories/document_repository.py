"""SQLAlchemy implementation of the DocumentRepository."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from resume_rag.application.interfaces.document_repository import DocumentRepository
from resume_rag.domain.entities import Chunk, Document, DocumentStatus, ResumeMetadata
from resume_rag.domain.exceptions import EntityNotFoundError
from resume_rag.infrastructure.database.models.resume_models import DocumentModel


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite returns naive datetimes; every stored value is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyDocumentRepository(DocumentRepository):
    """Concrete document repository backed by PostgreSQL via SQLAlchemy.

    Each method runs in its own short transaction, so every update is a
    durable checkpoint.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_id(self, document_id: str) -> Document | None:
        async with self._session_factory() as session:
            model = await session.get(DocumentModel, document_id)
            return self._to_domain(model) if model else None

    async def get_children(self, parent_id: str) -> list[Document]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(DocumentModel)
                .where(DocumentModel.parent_id == parent_id)
                .order_by(DocumentModel.created_at.asc())
            )
            return [self._to_domain(m) for m in result.scalars().all()]

    async def create(self, document: Document) -> Document:
        if not document.id:
            document.id = str(uuid.uuid4())

        async with self._session_factory() as session, session.begin():
            model = DocumentModel(id=document.id, created_at=document.created_at)
            self._apply(model, document)
            session.add(model)
        return document

    async def update(self, document: Document) -> Document:
        document.updated_at = datetime.now(timezone.utc)
        async with self._session_factory() as session, session.begin():
            model = await session.get(DocumentModel, document.id)
            if model is None:
                raise EntityNotFoundError("Document", document.id)
            self._apply(model, document)
        return document

    async def delete(self, document_id: str) -> bool:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(DocumentModel).where(DocumentModel.id == document_id)
            )
            return result.rowcount > 0

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _apply(model: DocumentModel, document: Document) -> None:
        model.owner_id = document.owner_id
        model.original_filename = document.original_filename
        model.media_type = document.media_type
        model.byte_size = document.byte_size
        model.storage_key = document.storage_key
        model.raw_text = document.raw_text
        model.redacted_text = document.redacted_text
        model.chunks = [c.to_dict() for c in document.chunks]
        model.extracted_metadata = document.metadata.to_dict()
        model.vector_ids = list(document.vector_ids)
        model.processed = document.processed
        model.error = document.error
        model.status = document.status.value
        model.parent_id = document.parent_id
        model.updated_at = document.updated_at

    @staticmethod
    def _to_domain(model: DocumentModel) -> Document:
        return Document(
            id=model.id,
            owner_id=model.owner_id,
            original_filename=model.original_filename,
            media_type=model.media_type,
            byte_size=model.byte_size,
            storage_key=model.storage_key,
            raw_text=model.raw_text or "",
            redacted_text=model.redacted_text or "",
            chunks=[Chunk.from_dict(c) for c in model.chunks or []],
            metadata=ResumeMetadata.from_dict(model.extracted_metadata),
            vector_ids=list(model.vector_ids or []),
            processed=model.processed,
            error=model.error,
            status=DocumentStatus(model.status),
            parent_id=model.parent_id,
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )
