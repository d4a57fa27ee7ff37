"""Answer generation — retrieval-augmented, cited, confidence-scored answers.

Pipeline:
    1. Search for relevant passages
    2. Optimize them into a token-bounded context
    3. Ask the completion provider to answer from that context only
    4. Score confidence and attach citations
"""

import json
import logging
import time
from collections.abc import Mapping
from typing import Any

from resume_rag.application.interfaces.cache import Cache
from resume_rag.application.interfaces.chat_provider import ChatProvider
from resume_rag.application.services.cache_keys import RAG_PREFIX, make_key
from resume_rag.application.services.context_optimizer import ContextOptimizer
from resume_rag.application.services.search_service import SearchService, coerce_filters
from resume_rag.domain.entities import (
    ChatMessage,
    Citation,
    ContextResult,
    RAGResponse,
    SearchFilters,
)
from resume_rag.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional resume analysis assistant. Use the provided context "
    "to answer questions about resumes. Only make statements that are directly "
    "supported by the context. If you're not sure about something, say so. "
    "Always maintain professional tone and respect privacy."
)

_PROMPT_TEMPLATE = """Question: {query}

Context:
{context}

Please provide a concise and accurate answer based solely on the information \
provided in the context above. If the context doesn't contain enough information \
to fully answer the question, please indicate what information is missing or uncertain.

Answer:"""

FALLBACK_ANSWER = "Unable to generate answer"

_CITATION_LENGTH = 200
_MIN_ANSWER_LENGTH = 10
_MAX_ANSWER_LENGTH = 500
_CONTEXT_WEIGHT = 0.7
_LENGTH_WEIGHT = 0.3


def build_prompt(query: str, context: list[ContextResult]) -> str:
    return _PROMPT_TEMPLATE.format(
        query=query, context="\n\n".join(c.text for c in context)
    )


def calculate_confidence(answer: str, context: list[ContextResult]) -> float:
    """Blend mean retrieval score with answer length, clamped to [0, 1].

    An empty context contributes a mean score of 0.
    """
    mean_score = sum(c.score for c in context) / len(context) if context else 0.0
    length_score = (len(answer) - _MIN_ANSWER_LENGTH) / (_MAX_ANSWER_LENGTH - _MIN_ANSWER_LENGTH)
    length_score = min(max(length_score, 0.0), 1.0)
    confidence = _CONTEXT_WEIGHT * mean_score + _LENGTH_WEIGHT * length_score
    return min(max(confidence, 0.0), 1.0)


def truncate_citation(text: str, max_length: int = _CITATION_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


class RAGService:
    """Application service — answers questions over the indexed resumes.

    Provider-agnostic: receives a ChatProvider via dependency injection.
    """

    def __init__(
        self,
        search_service: SearchService,
        context_optimizer: ContextOptimizer,
        chat_provider: ChatProvider,
        cache: Cache,
        *,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 500,
        ttl: int = 3600,
    ):
        self._search = search_service
        self._optimizer = context_optimizer
        self._provider = chat_provider
        self._cache = cache
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._ttl = ttl

    async def answer(
        self,
        query: str,
        filters: SearchFilters | Mapping[str, Any] | None = None,
    ) -> RAGResponse:
        """Answer ``query`` from the passages matching ``filters``.

        Raises:
            ValidationError: Blank query or malformed filters.
            CompletionProviderError: Propagated; nothing is cached.
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty")
        search_filters = coerce_filters(filters)

        key = make_key(RAG_PREFIX, {"query": query.strip(), "filters": search_filters.to_dict()})
        cached = await self._cache.get(key)
        if cached is not None:
            logger.debug("Answer cache hit")
            return RAGResponse.from_dict(json.loads(cached))

        start = time.monotonic()
        results = await self._search.search(query, search_filters)
        context = self._optimizer.optimize([ContextResult.from_search_result(r) for r in results])

        completion = await self._provider.complete(
            messages=[
                ChatMessage(role="system", content=SYSTEM_PROMPT),
                ChatMessage(role="user", content=build_prompt(query, context)),
            ],
            model=self._model,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        answer_text = completion.content.strip() or FALLBACK_ANSWER

        response = RAGResponse(
            answer=answer_text,
            citations=[
                Citation(text=truncate_citation(c.text), document_id=c.document_id, score=c.score)
                for c in context
            ],
            confidence=calculate_confidence(answer_text, context),
        )
        await self._cache.set(key, json.dumps(response.to_dict()), self._ttl)

        logger.info(
            "Answered query with %d citations (confidence=%.2f, tokens=%d) in %dms",
            len(response.citations),
            response.confidence,
            completion.usage.total_tokens,
            int((time.monotonic() - start) * 1000),
        )
        return response

    async def clear_cache(self) -> int:
        """Drop every cached answer."""
        return await self._cache.delete_prefix(RAG_PREFIX)
