"""SQLAlchemy implementation of the IngestionJobRepository — the durable job queue."""

import uuid
from datetime import datetime

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from resume_rag.application.interfaces.ingestion_job_repository import IngestionJobRepository
from resume_rag.domain.entities import IngestionJob, JobStatus
from resume_rag.domain.exceptions import EntityNotFoundError
from resume_rag.infrastructure.database.models.resume_models import IngestionJobModel
from resume_rag.infrastructure.database.repositories.document_repository import as_utc

_ACTIVE = (JobStatus.QUEUED.value, JobStatus.PROCESSING.value)


class SQLAlchemyIngestionJobRepository(IngestionJobRepository):
    """Concrete job queue backed by PostgreSQL via SQLAlchemy.

    Claiming uses ``FOR UPDATE SKIP LOCKED`` so concurrent workers never
    pick up the same job; SQLite ignores the clause.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_id(self, job_id: str) -> IngestionJob | None:
        async with self._session_factory() as session:
            model = await session.get(IngestionJobModel, job_id)
            return self._to_domain(model) if model else None

    async def get_active_for_document(self, document_id: str) -> IngestionJob | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(IngestionJobModel)
                .where(
                    IngestionJobModel.document_id == document_id,
                    IngestionJobModel.status.in_(_ACTIVE),
                )
                .limit(1)
            )
            model = result.scalar_one_or_none()
            return self._to_domain(model) if model else None

    async def create(self, job: IngestionJob) -> IngestionJob:
        if not job.id:
            job.id = str(uuid.uuid4())

        async with self._session_factory() as session, session.begin():
            model = IngestionJobModel(
                id=job.id,
                document_id=job.document_id,
                file_path=job.file_path,
                owner_id=job.owner_id,
                original_filename=job.original_filename,
                is_archive=job.is_archive,
                created_at=job.created_at,
            )
            self._apply(model, job)
            session.add(model)
        return job

    async def update(self, job: IngestionJob) -> IngestionJob:
        async with self._session_factory() as session, session.begin():
            model = await session.get(IngestionJobModel, job.id)
            if model is None:
                raise EntityNotFoundError("IngestionJob", job.id)
            self._apply(model, job)
        return job

    async def claim_due(
        self, limit: int, now: datetime, stale_before: datetime
    ) -> list[IngestionJob]:
        if limit < 1:
            return []

        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                select(IngestionJobModel)
                .where(
                    or_(
                        and_(
                            IngestionJobModel.status == JobStatus.QUEUED.value,
                            IngestionJobModel.next_attempt_at <= now,
                        ),
                        and_(
                            IngestionJobModel.status == JobStatus.PROCESSING.value,
                            IngestionJobModel.started_at < stale_before,
                        ),
                    )
                )
                .order_by(IngestionJobModel.next_attempt_at.asc())
                .limit(limit)
                .with_for_update(skip_locked=True)
            )
            claimed = []
            for model in result.scalars().all():
                job = self._to_domain(model)
                job.mark_processing(now)
                self._apply(model, job)
                claimed.append(job)
        return claimed

    async def delete_for_document(self, document_id: str) -> int:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                delete(IngestionJobModel).where(IngestionJobModel.document_id == document_id)
            )
            return result.rowcount

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _apply(model: IngestionJobModel, job: IngestionJob) -> None:
        model.status = job.status.value
        model.attempts = job.attempts
        model.max_attempts = job.max_attempts
        model.last_error = job.last_error
        model.next_attempt_at = job.next_attempt_at
        model.started_at = job.started_at
        model.completed_at = job.completed_at

    @staticmethod
    def _to_domain(model: IngestionJobModel) -> IngestionJob:
        return IngestionJob(
            id=model.id,
            document_id=model.document_id,
            file_path=model.file_path,
            owner_id=model.owner_id,
            original_filename=model.original_filename,
            is_archive=model.is_archive,
            status=JobStatus(model.status),
            attempts=model.attempts,
            max_attempts=model.max_attempts,
            last_error=model.last_error,
            next_attempt_at=as_utc(model.next_attempt_at),
            created_at=as_utc(model.created_at),
            started_at=as_utc(model.started_at),
            completed_at=as_utc(model.completed_at),
        )
