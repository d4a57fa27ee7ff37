"""Search service — free-text query plus structured filters to ranked passages.

Flow:
    1. Validate the query and filters
    2. Serve from the search cache when possible
    3. Embed the query (cached by the EmbeddingService)
    4. Translate filters into a FilterExpression
    5. Query the vector index and map matches into SearchResults
"""

import json
import logging
import time
from collections import defaultdict
from collections.abc import Mapping
from typing import Any

from resume_rag.application.interfaces.cache import Cache
from resume_rag.application.services.cache_keys import QUERY_PREFIX, SEARCH_PREFIX, make_key
from resume_rag.application.services.embedding_service import EmbeddingService
from resume_rag.application.services.vector_index_service import VectorIndexService
from resume_rag.domain.entities import (
    All,
    ChunkMatch,
    Equals,
    FilterExpression,
    MemberOf,
    RangeBounded,
    SearchFilters,
    SearchResult,
    VectorMatch,
)
from resume_rag.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

_DEFAULT_TOP_K = 10
_DEFAULT_TTL = 3600


def coerce_filters(filters: SearchFilters | Mapping[str, Any] | None) -> SearchFilters:
    """Accept typed filters, a plain mapping, or nothing."""
    if filters is None:
        return SearchFilters()
    if isinstance(filters, SearchFilters):
        return filters
    if isinstance(filters, Mapping):
        return SearchFilters.from_dict(filters)
    raise ValidationError(f"Unsupported filters type: {type(filters).__name__}")


def build_filter_expression(filters: SearchFilters) -> FilterExpression | None:
    """Translate search filters into the index-neutral filter grammar.

    Skills become one membership constraint per skill (all must hold),
    experience bounds an inclusive range, location and education
    case-normalized equality and membership.
    """
    predicates: list[FilterExpression] = []

    if filters.skills:
        predicates.append(
            All(tuple(MemberOf("skills", (skill.lower(),)) for skill in filters.skills))
        )
    if filters.experience_min is not None or filters.experience_max is not None:
        predicates.append(
            RangeBounded("experience", gte=filters.experience_min, lte=filters.experience_max)
        )
    if filters.location:
        predicates.append(Equals("location", filters.location.lower()))
    if filters.education:
        predicates.append(MemberOf("education", tuple(e.lower() for e in filters.education)))
    if filters.owner_id:
        predicates.append(Equals("owner_id", filters.owner_id))

    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return All(tuple(predicates))


def _clamp(score: float) -> float:
    return min(max(score, 0.0), 1.0)


class SearchService:
    """Application service for semantic resume search."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_index: VectorIndexService,
        cache: Cache,
        *,
        ttl: int = _DEFAULT_TTL,
    ):
        self._embedding_service = embedding_service
        self._vector_index = vector_index
        self._cache = cache
        self._ttl = ttl

    async def search(
        self,
        query: str,
        filters: SearchFilters | Mapping[str, Any] | None = None,
        top_k: int = _DEFAULT_TOP_K,
    ) -> list[SearchResult]:
        """Return passages ranked by descending similarity.

        Raises:
            ValidationError: Blank query, bad filters or ``top_k < 1``.
            EmbeddingProviderError / IndexUnavailable: Propagated, never cached.
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty")
        if top_k < 1:
            raise ValidationError("top_k must be at least 1")
        search_filters = coerce_filters(filters)

        key = make_key(
            SEARCH_PREFIX,
            {"query": query.strip(), "filters": search_filters.to_dict(), "top_k": top_k},
        )
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for top_k=%d", top_k)
            return [SearchResult.from_dict(r) for r in json.loads(cached)]

        start = time.monotonic()
        vector = await self._embedding_service.embed(query)
        expression = build_filter_expression(search_filters)
        matches = await self._vector_index.query(vector, top_k, expression)
        results = self._to_results(matches)

        await self._cache.set(key, json.dumps([r.to_dict() for r in results]), self._ttl)
        logger.info(
            "Search returned %d results in %dms",
            len(results),
            int((time.monotonic() - start) * 1000),
        )
        return results

    async def clear_cache(self) -> int:
        """Drop every cached search result along with the raw index queries behind them."""
        removed = await self._cache.delete_prefix(SEARCH_PREFIX)
        removed += await self._cache.delete_prefix(QUERY_PREFIX)
        logger.info("Cleared %d cached searches", removed)
        return removed

    @staticmethod
    def _to_results(matches: list[VectorMatch]) -> list[SearchResult]:
        by_document: dict[str, list[ChunkMatch]] = defaultdict(list)
        results: list[SearchResult] = []

        for match in matches:
            metadata = dict(match.metadata)
            text = str(metadata.pop("text", ""))
            document_id = str(metadata.get("document_id", match.id))
            score = _clamp(match.score)
            by_document[document_id].append(ChunkMatch(text=text, score=score))
            results.append(
                SearchResult(text=text, document_id=document_id, score=score, metadata=metadata)
            )

        for result in results:
            result.matches = list(by_document[result.document_id])

        # Stable, so ties keep the index's native order
        results.sort(key=lambda r: r.score, reverse=True)
        return results
