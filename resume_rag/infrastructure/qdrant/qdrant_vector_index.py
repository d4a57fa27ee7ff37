"""Qdrant-backed vector index — implements the VectorIndex port.

One collection holds every namespace; each point carries its namespace in
the payload and every query is filtered on it.
"""

import logging

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchAny,
    MatchValue,
    PointIdsList,
    PointStruct,
    Range,
    VectorParams,
)

from resume_rag.application.interfaces.vector_index import VectorIndex
from resume_rag.domain.entities import (
    All,
    Equals,
    FilterExpression,
    IndexedVector,
    MemberOf,
    RangeBounded,
    VectorMatch,
)
from resume_rag.domain.exceptions import IndexUnavailable

logger = logging.getLogger(__name__)

_UPSERT_BATCH = 100


def _to_condition(predicate: FilterExpression) -> FieldCondition:
    if isinstance(predicate, Equals):
        return FieldCondition(key=predicate.field, match=MatchValue(value=predicate.value))
    if isinstance(predicate, MemberOf):
        return FieldCondition(key=predicate.field, match=MatchAny(any=list(predicate.values)))
    if isinstance(predicate, RangeBounded):
        return FieldCondition(key=predicate.field, range=Range(gte=predicate.gte, lte=predicate.lte))
    raise TypeError(f"Unsupported filter predicate: {predicate!r}")


def to_qdrant_filter(expression: FilterExpression | None, namespace: str) -> Filter:
    """Translate a filter expression into Qdrant's grammar, scoped to ``namespace``."""
    must = [FieldCondition(key="namespace", match=MatchValue(value=namespace))]
    if expression is not None:
        leaves = expression.flatten() if isinstance(expression, All) else [expression]
        must.extend(_to_condition(p) for p in leaves)
    return Filter(must=must)


class QdrantVectorIndex(VectorIndex):
    """Infrastructure adapter over the async Qdrant client.

    Build it with :meth:`connect`, which ensures the collection exists before
    returning. Any client failure surfaces as IndexUnavailable.
    """

    def __init__(self, client: AsyncQdrantClient, collection: str, namespace: str):
        self._client = client
        self._collection = collection
        self._namespace = namespace

    @classmethod
    async def connect(
        cls,
        url: str,
        *,
        collection: str,
        namespace: str,
        dimensions: int,
        api_key: str | None = None,
    ) -> "QdrantVectorIndex":
        if url == ":memory:":
            client = AsyncQdrantClient(location=":memory:")
        else:
            client = AsyncQdrantClient(url=url, api_key=api_key or None)

        index = cls(client, collection, namespace)
        await index._ensure_collection(dimensions)
        return index

    @property
    def namespace(self) -> str:
        return self._namespace

    async def _ensure_collection(self, dimensions: int) -> None:
        try:
            if await self._client.collection_exists(self._collection):
                logger.debug("Collection '%s' already exists", self._collection)
                return
            await self._client.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(size=dimensions, distance=Distance.COSINE),
            )
            logger.info("Created collection '%s' (dim=%d)", self._collection, dimensions)
        except Exception as exc:
            raise IndexUnavailable(f"Failed to prepare Qdrant collection: {exc}") from exc

    async def upsert(self, vectors: list[IndexedVector]) -> list[str]:
        points = [
            PointStruct(
                id=v.id,
                vector=v.values,
                payload={**v.metadata, "document_id": v.document_id, "namespace": self._namespace},
            )
            for v in vectors
        ]
        try:
            for start in range(0, len(points), _UPSERT_BATCH):
                await self._client.upsert(
                    collection_name=self._collection,
                    points=points[start : start + _UPSERT_BATCH],
                    wait=True,
                )
        except Exception as exc:
            logger.error("Qdrant upsert failed: %s", exc)
            raise IndexUnavailable(f"Failed to upsert vectors: {exc}") from exc
        return [v.id for v in vectors]

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter_expression: FilterExpression | None = None,
    ) -> list[VectorMatch]:
        try:
            response = await self._client.query_points(
                collection_name=self._collection,
                query=vector,
                limit=top_k,
                query_filter=to_qdrant_filter(filter_expression, self._namespace),
                with_payload=True,
            )
        except Exception as exc:
            logger.error("Qdrant query failed: %s", exc)
            raise IndexUnavailable(f"Vector query failed: {exc}") from exc

        return [
            VectorMatch(id=str(point.id), score=point.score, metadata=dict(point.payload or {}))
            for point in response.points
        ]

    async def delete(self, ids: list[str]) -> None:
        if not ids:
            return
        try:
            await self._client.delete(
                collection_name=self._collection,
                points_selector=PointIdsList(points=list(ids)),
                wait=True,
            )
        except Exception as exc:
            logger.error("Qdrant delete failed: %s", exc)
            raise IndexUnavailable(f"Failed to delete vectors: {exc}") from exc

    async def close(self) -> None:
        await self._client.close()
