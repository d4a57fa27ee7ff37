"""Cache key construction — namespaced SHA-256 digests of canonical JSON."""

import hashlib
import json
from typing import Any

EMBEDDING_PREFIX = "embedding:"
QUERY_PREFIX = "query:"
SEARCH_PREFIX = "search:"
RAG_PREFIX = "rag:"


def hash_str(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def canonical_json(payload: Any) -> str:
    """Serialize with sorted keys and no whitespace so equal inputs hash equally."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def make_key(prefix: str, payload: Any) -> str:
    if isinstance(payload, str):
        return f"{prefix}{hash_str(payload)}"
    return f"{prefix}{hash_str(canonical_json(payload))}"
