from .cache import Cache
from .chat_provider import ChatProvider
from .document_repository import DocumentRepository
from .embedding_provider import EmbeddingProvider
from .ingestion_job_repository import IngestionJobRepository
from .object_storage import ObjectStorage, StagedFile
from .text_extractor import TextExtractor, TextExtractionResult
from .vector_index import VectorIndex

__all__ = [
    "Cache",
    "ChatProvider",
    "DocumentRepository",
    "EmbeddingProvider",
    "IngestionJobRepository",
    "ObjectStorage",
    "StagedFile",
    "TextExtractor",
    "TextExtractionResult",
    "VectorIndex",
]
