"""Unit tests for the approximate TokenCounter."""

from resume_rag.application.services.token_counter import ELLIPSIS, TokenCounter


def test_count_sums_quarter_word_lengths():
    counter = TokenCounter()

    assert counter.count("hello world") == 4
    assert counter.count("a b c") == 3


def test_count_splits_on_punctuation():
    assert TokenCounter().count("Python, SQL.") == 3


def test_count_is_at_least_one():
    assert TokenCounter().count("") == 1
    assert TokenCounter().count("   ") == 1


def test_truncate_returns_fitting_text_unchanged():
    assert TokenCounter().truncate("short text", 100) == "short text"


def test_truncate_cuts_at_word_boundary_and_appends_ellipsis():
    truncated = TokenCounter().truncate("one two three four five", 3)

    assert truncated == "one two" + ELLIPSIS
