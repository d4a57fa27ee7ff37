"""OpenRouter-based embedding provider — calls the /embeddings endpoint.

Uses the same httpx client pattern as the OpenRouterClient.
Default model: openai/text-embedding-3-small (1536 dimensions).
"""

import logging
from typing import Any

import httpx

from resume_rag.application.interfaces.embedding_provider import EmbeddingProvider
from resume_rag.domain.exceptions import EmbeddingProviderError

logger = logging.getLogger(__name__)


class OpenRouterEmbeddingProvider(EmbeddingProvider):
    """Infrastructure adapter — generates embeddings via OpenRouter /embeddings API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Resume RAG",
        model: str = "openai/text-embedding-3-small",
        model_dimensions: int = 1536,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._model = model
        self._dimensions = model_dimensions
        self._http_client = http_client
        self._timeout = timeout

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a batch of texts."""
        if not texts:
            return []

        url = f"{self._base_url}/embeddings"
        payload: dict[str, Any] = {
            "model": self._model,
            # Newlines degrade embedding quality for OpenAI-family models
            "input": [t.replace("\n", " ") for t in texts],
            "dimensions": self._dimensions,
        }

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.post(
                url, headers=self._get_headers(), json=payload
            )
        except httpx.TimeoutException as exc:
            raise EmbeddingProviderError(f"Embedding request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise EmbeddingProviderError(f"Embedding request failed: {exc}") from exc
        finally:
            if should_close:
                await client.aclose()

        if response.status_code != 200:
            error_text = response.text[:500]
            logger.error(
                "Embedding API error %d: %s", response.status_code, error_text
            )
            raise EmbeddingProviderError(
                f"Embedding API returned {response.status_code}: {error_text}"
            )

        embeddings_data = response.json().get("data", [])

        # Sort by index to ensure correct ordering
        embeddings_data.sort(key=lambda x: x.get("index", 0))
        result = [item["embedding"] for item in embeddings_data]
        if len(result) != len(texts):
            raise EmbeddingProviderError(
                f"Embedding API returned {len(result)} vectors for {len(texts)} inputs"
            )

        logger.info(
            "Generated %d embeddings (model=%s, dims=%d)",
            len(result),
            self._model,
            len(result[0]) if result else 0,
        )
        return result
