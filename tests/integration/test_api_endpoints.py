"""End-to-end tests for the resumes and search endpoints over in-memory backing services."""

import pytest
from httpx import ASGITransport, AsyncClient

from fakes import (
    FakeChatProvider,
    FakeEmbeddingProvider,
    FakeTextExtractor,
    InMemoryDocumentRepository,
    InMemoryJobRepository,
    InMemoryObjectStorage,
    InMemoryVectorIndex,
)
from resume_rag.application.services import (
    BackgroundProcessor,
    ContextOptimizer,
    EmbeddingService,
    IngestionService,
    PIIRedactor,
    RAGService,
    ResumeMetadataExtractor,
    SearchService,
    TextChunker,
    VectorIndexService,
)
from resume_rag.infrastructure.cache import MemoryCache
from resume_rag.infrastructure.dependencies import (
    get_ingestion_service,
    get_rag_service,
    get_search_service,
)
from resume_rag.main import create_app

JANE = (
    b"Jane Doe\nAustin, TX\njane@example.com\n\n"
    b"Skills: React, TypeScript, Node.js\n\n"
    b"Experience\nSenior frontend engineer building React applications for 5 years"
)
BOB = (
    b"Bob Smith\nbob@example.com\n\n"
    b"Skills: Python, SQL, Docker\n\n"
    b"Experience\nBackend engineer writing Python data pipelines for 3 years"
)


class Backend:
    """Application services wired over in-memory adapters."""

    def __init__(self, tmp_path):
        cache = MemoryCache()
        self.index = InMemoryVectorIndex()
        self.chat = FakeChatProvider()
        self.embedder = FakeEmbeddingProvider()
        jobs = InMemoryJobRepository()
        embeddings = EmbeddingService(self.embedder, cache)
        vectors = VectorIndexService(self.index, cache)
        self.ingestion = IngestionService(
            InMemoryDocumentRepository(),
            jobs,
            FakeTextExtractor(),
            PIIRedactor(),
            ResumeMetadataExtractor(),
            TextChunker(),
            embeddings,
            vectors,
            InMemoryObjectStorage(tmp_path / "uploads"),
        )
        self.search = SearchService(embeddings, vectors, cache)
        self.rag = RAGService(
            self.search,
            ContextOptimizer(min_relevance=0.0),
            self.chat,
            cache,
            model="openai/gpt-4o-mini",
        )
        self.processor = BackgroundProcessor(jobs, self.ingestion, backoff_seconds=0)


@pytest.fixture
def backend(tmp_path):
    return Backend(tmp_path)


@pytest.fixture
async def client(backend):
    app = create_app()
    app.dependency_overrides[get_ingestion_service] = lambda: backend.ingestion
    app.dependency_overrides[get_search_service] = lambda: backend.search
    app.dependency_overrides[get_rag_service] = lambda: backend.rag

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _upload(client, name: str, content: bytes, owner: str = "recruiter-1"):
    return await client.post(
        "/api/v1/resumes",
        files={"file": (name, content, "text/plain")},
        data={"owner_id": owner},
    )


# ── Resumes ──


@pytest.mark.asyncio
async def test_upload_is_accepted_then_indexed(client, backend):
    response = await _upload(client, "jane.txt", JANE)

    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "queued"
    assert body["archive"] is False
    document_id = body["document_id"]

    await backend.processor.run_until_idle()

    response = await client.get(f"/api/v1/resumes/{document_id}", params={"include_chunks": True})
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "indexed"
    assert data["processed"] is True
    assert data["error"] is None
    assert data["metadata"]["email"] == "jane@example.com"
    assert "react" in data["metadata"]["skills"]
    assert data["chunk_count"] == data["vector_count"] == len(data["chunks"])
    assert all("jane@example.com" not in c["text"] for c in data["chunks"])


@pytest.mark.asyncio
async def test_chunks_are_omitted_by_default(client, backend):
    document_id = (await _upload(client, "jane.txt", JANE)).json()["document_id"]
    await backend.processor.run_until_idle()

    data = (await client.get(f"/api/v1/resumes/{document_id}")).json()

    assert data["chunks"] is None
    assert data["chunk_count"] > 0


@pytest.mark.asyncio
async def test_empty_upload_is_unprocessable(client):
    response = await _upload(client, "empty.txt", b"")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_archive_endpoint_requires_zip(client):
    response = await client.post(
        "/api/v1/resumes/archive",
        files={"file": ("jane.pdf", b"%PDF", "application/pdf")},
        data={"owner_id": "recruiter-1"},
    )

    assert response.status_code == 422
    assert "zip" in response.json()["detail"]


@pytest.mark.asyncio
async def test_bulk_upload_queues_each_file(client, backend):
    response = await client.post(
        "/api/v1/resumes/bulk",
        files=[
            ("files", ("jane.txt", JANE, "text/plain")),
            ("files", ("bob.txt", BOB, "text/plain")),
        ],
        data={"owner_id": "recruiter-1"},
    )

    assert response.status_code == 202
    body = response.json()
    assert body["count"] == 2
    assert [a["original_filename"] for a in body["accepted"]] == ["jane.txt", "bob.txt"]
    assert all(a["status"] == "queued" for a in body["accepted"])

    assert await backend.processor.run_until_idle() == 2
    for accepted in body["accepted"]:
        data = (await client.get(f"/api/v1/resumes/{accepted['document_id']}")).json()
        assert data["status"] == "indexed"


@pytest.mark.asyncio
async def test_bulk_upload_rejects_more_than_ten_files(client, backend):
    files = [("files", (f"cv{i}.txt", JANE, "text/plain")) for i in range(11)]

    response = await client.post(
        "/api/v1/resumes/bulk", files=files, data={"owner_id": "recruiter-1"}
    )

    assert response.status_code == 422
    assert await backend.processor.run_until_idle() == 0


@pytest.mark.asyncio
async def test_bulk_upload_with_an_empty_file_queues_nothing(client, backend):
    response = await client.post(
        "/api/v1/resumes/bulk",
        files=[
            ("files", ("jane.txt", JANE, "text/plain")),
            ("files", ("empty.txt", b"", "text/plain")),
        ],
        data={"owner_id": "recruiter-1"},
    )

    assert response.status_code == 422
    assert "empty.txt" in response.json()["detail"]
    assert await backend.processor.run_until_idle() == 0


@pytest.mark.asyncio
async def test_missing_owner_is_rejected_by_validation(client):
    response = await client.post(
        "/api/v1/resumes", files={"file": ("jane.txt", JANE, "text/plain")}
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_document_is_404(client):
    assert (await client.get("/api/v1/resumes/missing")).status_code == 404
    assert (await client.delete("/api/v1/resumes/missing")).status_code == 404


@pytest.mark.asyncio
async def test_delete_removes_document_and_vectors(client, backend):
    document_id = (await _upload(client, "jane.txt", JANE)).json()["document_id"]
    await backend.processor.run_until_idle()
    assert backend.index.points

    response = await client.delete(f"/api/v1/resumes/{document_id}")

    assert response.status_code == 200
    assert response.json()["document_id"] == document_id
    assert backend.index.points == {}
    assert (await client.get(f"/api/v1/resumes/{document_id}")).status_code == 404


# ── Search and answers ──


@pytest.mark.asyncio
async def test_search_ranks_and_filters(client, backend):
    jane_id = (await _upload(client, "jane.txt", JANE)).json()["document_id"]
    await _upload(client, "bob.txt", BOB)
    await backend.processor.run_until_idle()

    response = await client.post(
        "/api/v1/search", json={"query": "React frontend engineer", "top_k": 5}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == len(body["results"]) > 0
    assert body["results"][0]["document_id"] == jane_id
    scores = [r["score"] for r in body["results"]]
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= s <= 1.0 for s in scores)

    response = await client.post(
        "/api/v1/search",
        json={"query": "engineer", "filters": {"skills": ["python"]}},
    )
    results = response.json()["results"]
    assert results
    assert all(r["document_id"] != jane_id for r in results)


@pytest.mark.asyncio
async def test_search_rejects_unknown_filter_keys(client):
    response = await client.post(
        "/api/v1/search", json={"query": "react", "filters": {"salary": 100}}
    )

    assert response.status_code == 422
    assert "salary" in response.json()["detail"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "filters", [{"location": 5}, {"skills": 5}, {"owner_id": ["a"]}, {"experience_min": 2.5}]
)
async def test_malformed_filters_are_unprocessable(client, filters):
    for path in ("/api/v1/search", "/api/v1/answer"):
        response = await client.post(path, json={"query": "react", "filters": filters})

        assert response.status_code == 422


@pytest.mark.asyncio
async def test_search_validates_request_body(client):
    assert (await client.post("/api/v1/search", json={"query": ""})).status_code == 422
    assert (await client.post("/api/v1/search", json={"query": "x", "top_k": 0})).status_code == 422


@pytest.mark.asyncio
async def test_embedding_outage_is_service_unavailable(client, backend):
    backend.embedder.fail = True

    response = await client.post("/api/v1/search", json={"query": "react"})

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_answer_returns_citations(client, backend):
    jane_id = (await _upload(client, "jane.txt", JANE)).json()["document_id"]
    await backend.processor.run_until_idle()

    response = await client.post(
        "/api/v1/answer", json={"query": "Who has React experience?"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["answer"] == backend.chat.answer
    assert body["citations"]
    assert {c["document_id"] for c in body["citations"]} == {jane_id}
    assert 0.0 <= body["confidence"] <= 1.0


@pytest.mark.asyncio
async def test_completion_failure_is_bad_gateway(client, backend):
    await _upload(client, "jane.txt", JANE)
    await backend.processor.run_until_idle()
    backend.chat.fail = True

    response = await client.post("/api/v1/answer", json={"query": "Who knows React?"})

    assert response.status_code == 502
    assert response.json()["detail"].startswith("[fake]")
