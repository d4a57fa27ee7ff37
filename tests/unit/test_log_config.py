"""Unit tests for per-category logging configuration."""

import logging

from resume_rag.config import Settings
from resume_rag.infrastructure.logging.log_config import setup_logging


def test_category_levels_are_applied():
    settings = Settings(
        _env_file=None,
        log_level="WARNING",
        log_level_sql="ERROR",
        log_level_pipeline="DEBUG",
        log_level_providers="bogus",
    )

    setup_logging(settings)

    assert logging.getLogger().level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
    assert logging.getLogger("IngestionPipeline").level == logging.DEBUG
    # Unknown level names fall back to INFO
    assert logging.getLogger("resume_rag.infrastructure.qdrant").level == logging.INFO
