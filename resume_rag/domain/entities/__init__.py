from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .document import Chunk, Document, DocumentStatus, EducationEntry, ResumeMetadata
from .filter_expression import All, Equals, FilterExpression, MemberOf, RangeBounded
from .ingestion_job import IngestionJob, JobStatus
from .search import (
    ChunkMatch,
    Citation,
    ContextResult,
    RAGResponse,
    SearchFilters,
    SearchResult,
)
from .vector import IndexedVector, VectorMatch

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Chunk",
    "Document",
    "DocumentStatus",
    "EducationEntry",
    "ResumeMetadata",
    "All",
    "Equals",
    "FilterExpression",
    "MemberOf",
    "RangeBounded",
    "IngestionJob",
    "JobStatus",
    "ChunkMatch",
    "Citation",
    "ContextResult",
    "RAGResponse",
    "SearchFilters",
    "SearchResult",
    "IndexedVector",
    "VectorMatch",
]
