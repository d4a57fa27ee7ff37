from .base import Base
from .session import create_engine, create_session_factory, create_tables, get_async_url
from .models import DocumentModel, IngestionJobModel

__all__ = [
    "Base",
    "create_engine",
    "create_session_factory",
    "create_tables",
    "get_async_url",
    "DocumentModel",
    "IngestionJobModel",
]
