"""Domain-specific exceptions — framework-independent.

Every pipeline error derives from ResumeRagError. The ``retryable`` flag tells
the ingestion job processor whether another attempt could change the outcome.
"""


class ResumeRagError(Exception):
    """Base class for all errors raised by the ingestion and query pipeline."""

    retryable: bool = True


class EntityNotFoundError(ResumeRagError):
    """Raised when a requested entity does not exist."""

    retryable = False

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ValidationError(ResumeRagError):
    """Raised when caller input is malformed — before any side effect happens."""

    retryable = False


class UnsupportedFormat(ResumeRagError):
    """Raised when a document's format cannot be handled at all."""

    retryable = False

    def __init__(self, extension: str, hint: str = ""):
        self.extension = extension
        message = f"Unsupported file type: {extension or '<none>'}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class ExtractionFailed(ResumeRagError):
    """Raised when a nominally supported document cannot be parsed."""


class EmbeddingProviderError(ResumeRagError):
    """Raised when the embedding provider fails or times out."""


class IndexUnavailable(ResumeRagError):
    """Raised when the vector index cannot be reached or rejects a request."""


class CompletionProviderError(ResumeRagError):
    """Raised when a chat completion provider returns an error.

    Provider-agnostic — works for OpenRouter, Groq, OpenAI, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")
