"""Integration tests for the SQLAlchemy repositories against a SQLite database."""

from datetime import datetime, timedelta, timezone

import pytest

from resume_rag.domain.entities import (
    Chunk,
    Document,
    DocumentStatus,
    EducationEntry,
    IngestionJob,
    JobStatus,
    ResumeMetadata,
)
from resume_rag.domain.exceptions import EntityNotFoundError
from resume_rag.infrastructure.database import create_engine, create_session_factory, create_tables
from resume_rag.infrastructure.database.repositories import (
    SQLAlchemyDocumentRepository,
    SQLAlchemyIngestionJobRepository,
)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'resumes.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def documents(session_factory):
    return SQLAlchemyDocumentRepository(session_factory)


@pytest.fixture
def jobs(session_factory):
    return SQLAlchemyIngestionJobRepository(session_factory)


async def _document(documents, **overrides) -> Document:
    fields = {"owner_id": "owner-1", "original_filename": "jane.pdf"}
    fields.update(overrides)
    return await documents.create(Document(**fields))


def _job(document_id: str, **overrides) -> IngestionJob:
    fields = {
        "document_id": document_id,
        "file_path": "/tmp/jane.pdf",
        "owner_id": "owner-1",
        "original_filename": "jane.pdf",
    }
    fields.update(overrides)
    return IngestionJob(**fields)


# ── Documents ──


@pytest.mark.asyncio
async def test_document_round_trips_every_field(documents):
    created = await _document(documents, media_type="application/pdf", byte_size=2048)
    created.raw_text = "Jane Doe jane@example.com"
    created.redacted_text = "Jane Doe [EMAIL_REDACTED]"
    created.chunks = [Chunk(0, "Jane Doe"), Chunk(1, "Doe [EMAIL_REDACTED]", offset=5, overlap=3)]
    created.metadata = ResumeMetadata(
        email="jane@example.com",
        experience_years=5,
        skills=["react"],
        education=[EducationEntry("Bachelor of Science", "MIT", 2015)],
    )
    created.storage_key = "resumes/owner-1/jane.pdf"
    created.mark_indexed(["v0", "v1"])
    await documents.update(created)

    loaded = await documents.get_by_id(created.id)

    assert loaded.status == DocumentStatus.INDEXED
    assert loaded.processed is True
    assert loaded.byte_size == 2048
    assert loaded.redacted_text == "Jane Doe [EMAIL_REDACTED]"
    assert loaded.chunks == created.chunks
    assert loaded.chunks[1].unique_text == "[EMAIL_REDACTED]"
    assert loaded.metadata == created.metadata
    assert loaded.vector_ids == ["v0", "v1"]
    assert loaded.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_missing_document_returns_none(documents):
    assert await documents.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_updating_missing_document_raises(documents):
    ghost = Document(owner_id="o", original_filename="x.pdf", id="missing")

    with pytest.raises(EntityNotFoundError):
        await documents.update(ghost)


@pytest.mark.asyncio
async def test_children_are_listed_by_parent(documents):
    archive = await _document(documents, original_filename="batch.zip")
    await _document(documents, original_filename="alice.pdf", parent_id=archive.id)
    await _document(documents, original_filename="bob.pdf", parent_id=archive.id)
    await _document(documents, original_filename="unrelated.pdf")

    children = await documents.get_children(archive.id)

    assert sorted(c.original_filename for c in children) == ["alice.pdf", "bob.pdf"]


@pytest.mark.asyncio
async def test_delete_document(documents):
    document = await _document(documents)

    assert await documents.delete(document.id) is True
    assert await documents.delete(document.id) is False
    assert await documents.get_by_id(document.id) is None


# ── Jobs ──


@pytest.mark.asyncio
async def test_claim_due_marks_jobs_processing(documents, jobs):
    document = await _document(documents)
    created = await jobs.create(_job(document.id))
    now = datetime.now(timezone.utc) + timedelta(seconds=1)

    claimed = await jobs.claim_due(5, now, now - timedelta(minutes=15))

    assert [j.id for j in claimed] == [created.id]
    assert claimed[0].status == JobStatus.PROCESSING
    assert claimed[0].attempts == 1
    stored = await jobs.get_by_id(created.id)
    assert stored.status == JobStatus.PROCESSING
    assert stored.attempts == 1

    # Already claimed and not stale
    assert await jobs.claim_due(5, now, now - timedelta(minutes=15)) == []


@pytest.mark.asyncio
async def test_claim_due_skips_future_retries_and_respects_limit(documents, jobs):
    document = await _document(documents)
    now = datetime.now(timezone.utc)
    first = await jobs.create(_job(document.id, next_attempt_at=now - timedelta(minutes=2)))
    await jobs.create(_job(document.id, next_attempt_at=now - timedelta(minutes=1)))
    await jobs.create(_job(document.id, next_attempt_at=now + timedelta(hours=1)))

    claimed = await jobs.claim_due(1, now, now - timedelta(minutes=15))
    assert [j.id for j in claimed] == [first.id]

    claimed = await jobs.claim_due(10, now, now - timedelta(minutes=15))
    assert len(claimed) == 1

    assert await jobs.claim_due(0, now, now) == []


@pytest.mark.asyncio
async def test_stale_processing_job_is_reclaimed(documents, jobs):
    document = await _document(documents)
    job = await jobs.create(_job(document.id))
    job.mark_processing(datetime.now(timezone.utc) - timedelta(hours=1))
    await jobs.update(job)
    now = datetime.now(timezone.utc)

    claimed = await jobs.claim_due(5, now, now - timedelta(minutes=15))

    assert [j.id for j in claimed] == [job.id]
    assert claimed[0].attempts == 2


@pytest.mark.asyncio
async def test_active_job_lookup(documents, jobs):
    document = await _document(documents)
    job = await jobs.create(_job(document.id))
    assert (await jobs.get_active_for_document(document.id)).id == job.id

    job.mark_completed()
    await jobs.update(job)

    assert await jobs.get_active_for_document(document.id) is None


@pytest.mark.asyncio
async def test_retry_state_is_persisted(documents, jobs):
    document = await _document(documents)
    job = await jobs.create(_job(document.id))
    job.mark_processing()
    job.mark_retry("embedding timeout", 30)
    await jobs.update(job)

    stored = await jobs.get_by_id(job.id)

    assert stored.status == JobStatus.QUEUED
    assert stored.last_error == "embedding timeout"
    assert stored.next_attempt_at > datetime.now(timezone.utc) + timedelta(seconds=25)


@pytest.mark.asyncio
async def test_delete_for_document(documents, jobs):
    document = await _document(documents)
    other = await _document(documents)
    await jobs.create(_job(document.id))
    await jobs.create(_job(document.id))
    kept = await jobs.create(_job(other.id))

    assert await jobs.delete_for_document(document.id) == 2
    assert await jobs.get_by_id(kept.id) is not None
