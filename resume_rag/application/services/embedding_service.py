"""Embedding service — cached text-to-vector mapping.

Wraps the EmbeddingProvider port with a read-through cache keyed by the
normalized input text. Provider failures propagate as EmbeddingProviderError;
nothing is retried here.
"""

import json
import logging
import re
import time

from resume_rag.application.interfaces.cache import Cache
from resume_rag.application.interfaces.embedding_provider import EmbeddingProvider
from resume_rag.application.services.cache_keys import EMBEDDING_PREFIX, make_key
from resume_rag.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)

_DEFAULT_TTL = 24 * 3600
_MAX_BATCH_SIZE = 50  # Max texts per embedding API call
_WHITESPACE = re.compile(r"\s+")


def normalize_for_embedding(text: str) -> str:
    """Canonical form used both as cache key and provider input."""
    return _WHITESPACE.sub(" ", text).strip()


class EmbeddingService:
    """Application service for generating embeddings with memoization."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        cache: Cache,
        *,
        ttl: int = _DEFAULT_TTL,
        batch_size: int = _MAX_BATCH_SIZE,
    ):
        self._embedding_provider = embedding_provider
        self._cache = cache
        self._ttl = ttl
        self._batch_size = batch_size

    @property
    def dimensions(self) -> int:
        return self._embedding_provider.dimensions

    async def embed(self, text: str) -> list[float]:
        """Embed a single text, served from cache when possible."""
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed a sequence of texts, calling the provider only for cache misses.

        Returns one vector per input, in input order. Duplicate inputs are
        sent to the provider once.
        """
        if not texts:
            return []

        start = time.monotonic()
        normalized = [normalize_for_embedding(t) for t in texts]
        resolved: dict[str, list[float]] = {}

        for text in dict.fromkeys(normalized):
            cached = await self._cache.get(make_key(EMBEDDING_PREFIX, text))
            if cached is not None:
                resolved[text] = json.loads(cached)

        misses = [t for t in dict.fromkeys(normalized) if t not in resolved]
        logger.debug("Embedding cache: %d hits, %d misses", len(resolved), len(misses))

        for batch_start in range(0, len(misses), self._batch_size):
            batch = misses[batch_start : batch_start + self._batch_size]
            vectors = await self._embedding_provider.generate_embeddings(batch)
            if len(vectors) != len(batch):
                raise EmbeddingProviderError(
                    f"Provider returned {len(vectors)} embeddings for {len(batch)} inputs"
                )
            for text, vector in zip(batch, vectors):
                resolved[text] = vector
                await self._cache.set(make_key(EMBEDDING_PREFIX, text), json.dumps(vector), self._ttl)

        if misses:
            logger.info(
                "Embedded %d texts (%d from provider) in %dms",
                len(texts),
                len(misses),
                int((time.monotonic() - start) * 1000),
            )
        return [resolved[t] for t in normalized]
