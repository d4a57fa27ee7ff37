"""Translate pipeline errors into HTTP responses."""

from fastapi import HTTPException, status

from resume_rag.domain.exceptions import (
    CompletionProviderError,
    EmbeddingProviderError,
    EntityNotFoundError,
    IndexUnavailable,
    ResumeRagError,
    UnsupportedFormat,
    ValidationError,
)


def to_http_exception(exc: ResumeRagError) -> HTTPException:
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnsupportedFormat):
        return HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, CompletionProviderError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"[{exc.provider}] {exc.message}",
        )
    if isinstance(exc, (EmbeddingProviderError, IndexUnavailable)):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
