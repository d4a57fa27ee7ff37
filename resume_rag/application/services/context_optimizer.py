"""Context optimizer — ranks, deduplicates and budget-prunes retrieved passages.

Pipeline (order matters):
    1. Score every passage with a weighted relevance formula
    2. Drop passages below the minimum relevance
    3. Sort by relevance, highest first
    4. Drop near-duplicates of already-kept passages (word-set Jaccard)
    5. Pack passages into the token budget, truncating the last one if room allows
"""

import logging
import math
import re
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone

from resume_rag.application.services.token_counter import TokenCounter
from resume_rag.domain.entities import ContextResult

logger = logging.getLogger(__name__)

# ── Scoring constants ───────────────────────────────────────────────
SIMILARITY_WEIGHT = 0.4
LENGTH_WEIGHT = 0.3
RECENCY_WEIGHT = 0.1
UNIQUENESS_WEIGHT = 0.2

OPTIMAL_LENGTH = 200
LENGTH_SPREAD = 100
NEUTRAL_RECENCY = 0.5
_YEAR_SECONDS = 365 * 24 * 3600

DUPLICATE_THRESHOLD = 0.8
MIN_TRUNCATION_TOKENS = 100

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]")


def normalize_for_comparison(text: str) -> str:
    text = _WHITESPACE.sub(" ", text.lower())
    return _NON_WORD.sub("", text).strip()


def jaccard_similarity(a: str, b: str) -> float:
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 1.0
    return len(words_a & words_b) / len(union)


class ContextOptimizer:
    """Refines search results into the context handed to answer generation.

    ``uniqueness_score`` is a fixed contribution reserved for a future
    per-passage uniqueness measure.
    """

    def __init__(
        self,
        max_tokens: int = 3000,
        min_relevance: float = 0.6,
        *,
        uniqueness_score: float = 0.8,
        token_counter: TokenCounter | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._max_tokens = max_tokens
        self._min_relevance = min_relevance
        self._uniqueness_score = uniqueness_score
        self._tokens = token_counter or TokenCounter()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def optimize(
        self,
        results: list[ContextResult],
        max_tokens: int | None = None,
        min_relevance: float | None = None,
    ) -> list[ContextResult]:
        """Return new ContextResults; the inputs are never modified."""
        budget = self._max_tokens if max_tokens is None else max_tokens
        threshold = self._min_relevance if min_relevance is None else min_relevance

        scored = [replace(r, relevance=self.relevance(r)) for r in results]
        kept = [r for r in scored if r.relevance >= threshold]
        kept.sort(key=lambda r: r.relevance, reverse=True)
        unique = self._deduplicate(kept)
        packed = self._pack(unique, budget)

        logger.debug(
            "Context optimized: %d in, %d relevant, %d unique, %d packed",
            len(results),
            len(kept),
            len(unique),
            len(packed),
        )
        return packed

    def relevance(self, result: ContextResult) -> float:
        length_fit = math.exp(
            -((len(result.text) - OPTIMAL_LENGTH) ** 2) / (2 * LENGTH_SPREAD**2)
        )
        return (
            SIMILARITY_WEIGHT * result.score
            + LENGTH_WEIGHT * length_fit
            + RECENCY_WEIGHT * self._recency(result)
            + UNIQUENESS_WEIGHT * self._uniqueness_score
        )

    def _recency(self, result: ContextResult) -> float:
        value = result.metadata.get("date")
        if not value:
            return NEUTRAL_RECENCY
        try:
            date = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
        except ValueError:
            logger.debug("Ignoring unparseable date %r", value)
            return NEUTRAL_RECENCY
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        age = max((self._clock() - date).total_seconds(), 0.0)
        return math.exp(-age / _YEAR_SECONDS)

    @staticmethod
    def _deduplicate(results: list[ContextResult]) -> list[ContextResult]:
        kept: list[ContextResult] = []
        seen: list[str] = []
        for result in results:
            normalized = normalize_for_comparison(result.text)
            if any(jaccard_similarity(normalized, s) > DUPLICATE_THRESHOLD for s in seen):
                continue
            seen.append(normalized)
            kept.append(result)
        return kept

    def _pack(self, results: list[ContextResult], budget: int) -> list[ContextResult]:
        packed: list[ContextResult] = []
        used = 0
        for result in results:
            tokens = self._tokens.count(result.text)
            if used + tokens <= budget:
                packed.append(result)
                used += tokens
                continue

            remaining = budget - used
            if remaining >= MIN_TRUNCATION_TOKENS:
                packed.append(replace(result, text=self._tokens.truncate(result.text, remaining)))
            break
        return packed
