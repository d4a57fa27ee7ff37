from .resume_models import DocumentModel, IngestionJobModel

__all__ = [
    "DocumentModel",
    "IngestionJobModel",
]
