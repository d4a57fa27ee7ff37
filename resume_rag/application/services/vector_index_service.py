"""Vector index service — namespace-scoped upsert/query/delete with query caching."""

import json
import logging

from resume_rag.application.interfaces.cache import Cache
from resume_rag.application.interfaces.vector_index import VectorIndex
from resume_rag.application.services.cache_keys import QUERY_PREFIX, make_key
from resume_rag.domain.entities import FilterExpression, IndexedVector, VectorMatch

logger = logging.getLogger(__name__)

_DEFAULT_TTL = 3600


class VectorIndexService:
    """Application service in front of the VectorIndex port.

    Query results are cached by (namespace, vector, top_k, filter). Errors
    from the index propagate and are never cached.
    """

    def __init__(self, index: VectorIndex, cache: Cache, *, ttl: int = _DEFAULT_TTL):
        self._index = index
        self._cache = cache
        self._ttl = ttl

    @property
    def namespace(self) -> str:
        return self._index.namespace

    async def upsert(self, vectors: list[IndexedVector]) -> list[str]:
        if not vectors:
            return []
        ids = await self._index.upsert(vectors)
        logger.info("Upserted %d vectors into namespace %r", len(ids), self.namespace)
        return ids

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter_expression: FilterExpression | None = None,
    ) -> list[VectorMatch]:
        key = make_key(
            QUERY_PREFIX,
            {
                "namespace": self.namespace,
                "vector": vector,
                "top_k": top_k,
                "filter": filter_expression.to_dict() if filter_expression else None,
            },
        )
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Vector query cache hit")
            return [VectorMatch.from_dict(m) for m in json.loads(cached)]

        matches = await self._index.query(vector, top_k, filter_expression)
        await self._cache.set(key, json.dumps([m.to_dict() for m in matches]), self._ttl)
        return matches

    async def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        await self._index.delete(ids)
        logger.info("Deleted %d vectors from namespace %r", len(ids), self.namespace)
