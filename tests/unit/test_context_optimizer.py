"""Unit tests for the ContextOptimizer."""

from datetime import datetime, timezone
from itertools import combinations

import pytest

from resume_rag.application.services.context_optimizer import (
    ContextOptimizer,
    jaccard_similarity,
    normalize_for_comparison,
)
from resume_rag.application.services.token_counter import ELLIPSIS, TokenCounter
from resume_rag.domain.entities import ContextResult

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


# ── Helpers ──


def _passage(prefix: str, words: int) -> str:
    return " ".join(f"{prefix}{i:03d}" for i in range(words))


def _result(text: str, score: float, document_id: str = "doc", **metadata) -> ContextResult:
    return ContextResult(text=text, document_id=document_id, score=score, metadata=metadata)


def _optimizer(**kwargs) -> ContextOptimizer:
    return ContextOptimizer(clock=lambda: NOW, **kwargs)


# ── Relevance ──


def test_relevance_favours_passages_near_optimal_length():
    optimizer = _optimizer()

    ideal = optimizer.relevance(_result("x" * 200, 0.5))
    short = optimizer.relevance(_result("x" * 20, 0.5))

    assert ideal == pytest.approx(0.4 * 0.5 + 0.3 + 0.1 * 0.5 + 0.2 * 0.8)
    assert short < ideal


def test_recent_dates_score_higher_than_undated():
    optimizer = _optimizer()

    dated = optimizer.relevance(_result("x" * 200, 0.5, date=NOW.isoformat()))
    undated = optimizer.relevance(_result("x" * 200, 0.5))
    garbage = optimizer.relevance(_result("x" * 200, 0.5, date="last spring"))

    assert dated == pytest.approx(undated + 0.05)
    assert garbage == pytest.approx(undated)


def test_uniqueness_weight_is_configurable():
    plain = _optimizer().relevance(_result("x" * 200, 0.5))
    boosted = _optimizer(uniqueness_score=1.0).relevance(_result("x" * 200, 0.5))

    assert boosted == pytest.approx(plain + 0.2 * 0.2)


# ── Pipeline ──


def test_near_duplicate_keeps_only_the_higher_scored_passage():
    original = "Experienced software engineer with 5 years of React development experience."
    duplicate = "Experienced software engineer with 5 years of solid React development experience."

    optimized = _optimizer().optimize([_result(duplicate, 0.85, "d2"), _result(original, 0.95, "d1")])

    react = [r for r in optimized if "React" in r.text]
    assert len(react) == 1
    assert react[0].text == original
    assert react[0].score == 0.95


def test_low_relevance_passages_are_dropped():
    optimized = _optimizer().optimize([_result("x", 0.1), _result(_passage("ab", 33), 0.9)])

    assert len(optimized) == 1
    assert optimized[0].relevance >= 0.6


def test_output_is_sorted_and_free_of_near_duplicates():
    results = [
        _result(_passage("ab", 33), 0.7),
        _result(_passage("cd", 33), 0.95),
        _result(_passage("ab", 33) + " extra", 0.8),
        _result(_passage("ef", 20), 0.9),
    ]

    optimized = _optimizer().optimize(results)

    relevances = [r.relevance for r in optimized]
    assert relevances == sorted(relevances, reverse=True)
    for a, b in combinations(optimized, 2):
        assert jaccard_similarity(
            normalize_for_comparison(a.text), normalize_for_comparison(b.text)
        ) <= 0.8


def test_packing_never_exceeds_the_token_budget():
    results = [
        _result(_passage("ab", 33), 0.9),
        _result(_passage("cd", 33), 0.85),
        _result(_passage("ef", 33), 0.8),
    ]

    optimized = _optimizer().optimize(results, max_tokens=140)

    counter = TokenCounter()
    assert len(optimized) == 2
    assert sum(counter.count(r.text) for r in optimized) <= 140


def test_overflowing_passage_is_truncated_when_enough_budget_remains():
    results = [
        _result(_passage("ab", 33), 0.9),
        _result(_passage("zz", 400), 1.0),
    ]

    optimized = _optimizer().optimize(results, max_tokens=200, min_relevance=0.0)

    counter = TokenCounter()
    assert len(optimized) == 2
    assert optimized[1].text.endswith(ELLIPSIS)
    assert sum(counter.count(r.text) for r in optimized) <= 200


def test_inputs_are_not_modified():
    results = [_result(_passage("ab", 33), 0.9)]

    _optimizer().optimize(results)

    assert results[0].relevance is None


def test_empty_input_yields_empty_context():
    assert _optimizer().optimize([]) == []
