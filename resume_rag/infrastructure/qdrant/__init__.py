"""Qdrant infrastructure package."""

from .qdrant_vector_index import QdrantVectorIndex, to_qdrant_filter

__all__ = ["QdrantVectorIndex", "to_qdrant_filter"]
