from .background_processor import BackgroundProcessor
from .context_optimizer import ContextOptimizer
from .embedding_service import EmbeddingService
from .ingestion_service import IngestionService
from .pii_redactor import PIIRedactor, RedactionOptions, RedactionResult
from .rag_service import RAGService
from .resume_metadata_extractor import ResumeMetadataExtractor
from .search_service import SearchService
from .text_chunker import ChunkingOptions, TextChunker
from .token_counter import TokenCounter
from .vector_index_service import VectorIndexService

__all__ = [
    "BackgroundProcessor",
    "ChunkingOptions",
    "ContextOptimizer",
    "EmbeddingService",
    "IngestionService",
    "PIIRedactor",
    "RAGService",
    "RedactionOptions",
    "RedactionResult",
    "ResumeMetadataExtractor",
    "SearchService",
    "TextChunker",
    "TokenCounter",
    "VectorIndexService",
]
