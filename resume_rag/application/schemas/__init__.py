from .resumes import (
    BulkUploadResponse,
    ChunkSchema,
    DeleteResponse,
    DocumentResponse,
    EducationSchema,
    ResumeMetadataSchema,
    UploadAcceptedResponse,
)
from .search import (
    AnswerRequest,
    AnswerResponse,
    ChunkMatchSchema,
    CitationSchema,
    SearchRequest,
    SearchResponse,
    SearchResultSchema,
)

__all__ = [
    "BulkUploadResponse",
    "ChunkSchema",
    "DeleteResponse",
    "DocumentResponse",
    "EducationSchema",
    "ResumeMetadataSchema",
    "UploadAcceptedResponse",
    "AnswerRequest",
    "AnswerResponse",
    "ChunkMatchSchema",
    "CitationSchema",
    "SearchRequest",
    "SearchResponse",
    "SearchResultSchema",
]
