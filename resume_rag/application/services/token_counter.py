"""Approximate token counting — roughly one token per four characters of a word."""

import math
import re

_TOKEN_SPLIT = re.compile(r"\s+|[.,!?;:\"\-()\[\]{}]")
_WHITESPACE = re.compile(r"\s+")

ELLIPSIS = "..."


class TokenCounter:
    """Cheap tokenizer approximation used for context budgeting."""

    def count(self, text: str) -> int:
        """Count tokens in ``text``. Always at least 1."""
        total = sum(math.ceil(len(word) / 4) for word in _TOKEN_SPLIT.split(text) if word)
        return max(total, 1)

    def truncate(self, text: str, max_tokens: int) -> str:
        """Truncate word by word to ``max_tokens`` and append an ellipsis.

        Text that already fits is returned unchanged.
        """
        if self.count(text) <= max_tokens:
            return text

        kept: list[str] = []
        used = 0
        for word in _WHITESPACE.split(text.strip()):
            cost = self.count(word)
            if used + cost > max_tokens:
                break
            kept.append(word)
            used += cost
        return " ".join(kept) + ELLIPSIS
