from .document_repository import SQLAlchemyDocumentRepository
from .ingestion_job_repository import SQLAlchemyIngestionJobRepository

__all__ = [
    "SQLAlchemyDocumentRepository",
    "SQLAlchemyIngestionJobRepository",
]
