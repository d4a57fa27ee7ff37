"""Unit tests for SearchService and filter translation."""

import pytest

from fakes import FakeEmbeddingProvider, InMemoryVectorIndex, bag_of_words_vector
from resume_rag.application.services.embedding_service import EmbeddingService
from resume_rag.application.services.search_service import (
    SearchService,
    build_filter_expression,
)
from resume_rag.application.services.vector_index_service import VectorIndexService
from resume_rag.domain.entities import (
    All,
    Equals,
    IndexedVector,
    MemberOf,
    RangeBounded,
    SearchFilters,
)
from resume_rag.domain.exceptions import EmbeddingProviderError, ValidationError
from resume_rag.infrastructure.cache import MemoryCache


# ── Helpers ──


def _point(point_id: str, document_id: str, text: str, **payload) -> IndexedVector:
    return IndexedVector(
        id=point_id,
        values=bag_of_words_vector(text),
        document_id=document_id,
        namespace="resumes",
        metadata={"text": text, **payload},
    )


async def _service(provider: FakeEmbeddingProvider | None = None):
    index = InMemoryVectorIndex()
    await index.upsert([
        _point("p1", "doc-react", "React developer building web apps",
               skills=["react", "javascript"], experience=5, location="austin, tx"),
        _point("p2", "doc-react", "React Native mobile developer",
               skills=["react", "javascript"], experience=5, location="austin, tx"),
        _point("p3", "doc-python", "Python developer building data pipelines",
               skills=["python", "sql"], experience=2, location="berlin"),
    ])
    cache = MemoryCache()
    embeddings = EmbeddingService(provider or FakeEmbeddingProvider(), cache)
    service = SearchService(embeddings, VectorIndexService(index, cache), cache)
    return service, index


# ── Filter translation ──


def test_empty_filters_translate_to_no_expression():
    assert build_filter_expression(SearchFilters()) is None


def test_single_filter_is_not_wrapped():
    assert build_filter_expression(SearchFilters(location="Austin, TX")) == Equals(
        "location", "austin, tx"
    )


def test_filters_translate_to_all_of_predicates():
    expression = build_filter_expression(
        SearchFilters(
            skills=("React", "Node.js"),
            experience_min=3,
            experience_max=8,
            education=("Bachelor",),
        )
    )

    assert isinstance(expression, All)
    assert expression.flatten() == [
        MemberOf("skills", ("react",)),
        MemberOf("skills", ("node.js",)),
        RangeBounded("experience", gte=3, lte=8),
        MemberOf("education", ("bachelor",)),
    ]


def test_inverted_experience_range_is_rejected():
    with pytest.raises(ValidationError):
        SearchFilters(experience_min=9, experience_max=2)


def test_unknown_filter_key_is_rejected():
    with pytest.raises(ValidationError):
        SearchFilters.from_dict({"salary": 100})


@pytest.mark.parametrize(
    "raw",
    [
        {"location": 5},
        {"location": ["austin"]},
        {"owner_id": ["a"]},
        {"owner_id": 7},
        {"skills": 5},
        {"skills": {"react": True}},
        {"education": [1, 2]},
        {"experience_min": "3"},
        {"experience_max": True},
    ],
)
def test_malformed_filter_values_are_rejected(raw):
    with pytest.raises(ValidationError):
        SearchFilters.from_dict(raw)


@pytest.mark.parametrize("raw", [{"experience_min": 2.5}, {"experience_max": 7.9}])
def test_fractional_experience_bounds_are_rejected(raw):
    with pytest.raises(ValidationError):
        SearchFilters.from_dict(raw)


def test_whole_float_bounds_and_scalar_strings_are_accepted():
    filters = SearchFilters.from_dict(
        {"experience_min": 3.0, "skills": "react", "location": " Austin ", "owner_id": ""}
    )

    assert filters.experience_min == 3
    assert filters.skills == ("react",)
    assert filters.location == "Austin"
    assert filters.owner_id is None


@pytest.mark.asyncio
async def test_malformed_filters_fail_before_any_lookup():
    service, index = await _service()

    with pytest.raises(ValidationError):
        await service.search("react developer", {"location": 5})
    assert index.query_calls == 0


# ── Search ──


@pytest.mark.asyncio
async def test_search_ranks_by_descending_score():
    service, _ = await _service()

    results = await service.search("python data pipelines")

    assert results[0].document_id == "doc-python"
    assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)
    assert all(0.0 <= r.score <= 1.0 for r in results)


@pytest.mark.asyncio
async def test_search_applies_skill_and_experience_filters():
    service, _ = await _service()

    results = await service.search(
        "developer", {"skills": ["React"], "experience_min": 4}
    )

    assert {r.document_id for r in results} == {"doc-react"}


@pytest.mark.asyncio
async def test_results_group_matches_from_the_same_document():
    service, _ = await _service()

    results = await service.search("react developer", {"skills": ["react"]})

    assert len(results) == 2
    for result in results:
        assert len(result.matches) == 2
        assert "text" not in result.metadata


@pytest.mark.asyncio
async def test_repeated_search_is_served_from_cache():
    service, index = await _service()

    first = await service.search("react developer", top_k=2)
    second = await service.search("react developer", top_k=2)

    assert [r.to_dict() for r in first] == [r.to_dict() for r in second]
    assert index.query_calls == 1


@pytest.mark.asyncio
async def test_clear_cache_forces_a_fresh_query():
    service, index = await _service()
    await service.search("react developer")

    # One cached search plus the index query beneath it
    assert await service.clear_cache() == 2
    await service.search("react developer")
    assert index.query_calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("query,top_k", [("", 10), ("   ", 10), ("react", 0)])
async def test_invalid_requests_are_rejected(query, top_k):
    service, index = await _service()

    with pytest.raises(ValidationError):
        await service.search(query, top_k=top_k)
    assert index.query_calls == 0


@pytest.mark.asyncio
async def test_embedding_failure_propagates_uncached():
    provider = FakeEmbeddingProvider(fail=True)
    service, index = await _service(provider)

    with pytest.raises(EmbeddingProviderError):
        await service.search("react developer")

    provider.fail = False
    assert await service.search("react developer")
