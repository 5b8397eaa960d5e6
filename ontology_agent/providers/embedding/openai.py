"""
OpenAI Embedding Provider (LangChain-based)

Implements EmbeddingProvider interface using LangChain's OpenAIEmbeddings.

Models:
    - text-embedding-3-small: 1536 dimensions (default)
    - text-embedding-3-large: 3072 dimensions

Example:
    >>> provider = OpenAIEmbeddingProvider()
    >>> vector = await provider.embed_single("Ada Lovelace wrote the first program")
    >>> len(vector)
    1536
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from ontology_agent.config.pricing import estimate_embedding_cost_usd
from ontology_agent.config.providers import MODEL_DIMENSIONS
from ontology_agent.providers.base import EmbeddingProvider
from ontology_agent.types.results import CostUsageRecord
from ontology_agent.utils.cost_telemetry import current_action, current_stage, record_usage
from ontology_agent.utils.token_count import count_text_tokens

if TYPE_CHECKING:
    from langchain_openai import OpenAIEmbeddings

DEFAULT_MODEL = "text-embedding-3-small"


def _get_openai_embeddings(
    api_key: str | None = None,
    model: str = DEFAULT_MODEL,
    dimensions: int | None = None,
) -> "OpenAIEmbeddings":
    """
    Get an OpenAIEmbeddings instance.

    Uses lazy import to avoid loading langchain-openai unless actually used.

    Args:
        api_key: Optional API key. If not provided, uses OPENAI_API_KEY env var.
        model: Model name to use.
        dimensions: Requested output length (text-embedding-3 models only).
    """
    from langchain_openai import OpenAIEmbeddings

    kwargs: dict[str, Any] = {"model": model}
    if dimensions is not None:
        kwargs["dimensions"] = dimensions
    if api_key:
        from pydantic import SecretStr

        kwargs["api_key"] = SecretStr(api_key)
    return OpenAIEmbeddings(**kwargs)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embedding provider implementation using LangChain.

    Args:
        api_key: OpenAI API key. If None, uses OPENAI_API_KEY environment variable.
        model: Model to use (default: "text-embedding-3-small")
        dimensions: Output length; defaults to the model's native length
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        dimensions: int | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        native = MODEL_DIMENSIONS.get(model)
        self._dimensions = dimensions or native or 1536
        # Only ask the API to shorten vectors when it differs from the native size
        self._requested_dimensions = (
            dimensions if dimensions is not None and dimensions != native else None
        )
        # Lazy initialization
        self._client: OpenAIEmbeddings | None = None

    def _get_client(self) -> "OpenAIEmbeddings":
        """Get or create the OpenAIEmbeddings client."""
        if self._client is None:
            self._client = _get_openai_embeddings(
                api_key=self._api_key,
                model=self._model,
                dimensions=self._requested_dimensions,
            )
        return self._client

    @property
    def dimensions(self) -> int:
        """Embedding dimensions for the current model."""
        return self._dimensions

    @property
    def model_name(self) -> str:
        """Current model name."""
        return self._model

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts.

        Returns:
            List of embedding vectors (same order as input)
        """
        if not texts:
            return []

        client = self._get_client()
        start = time.perf_counter_ns()

        # LangChain's embed_documents is synchronous, run in thread pool
        embeddings = await asyncio.to_thread(client.embed_documents, texts)
        self._record("embed", texts, start)
        return embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        client = self._get_client()
        start = time.perf_counter_ns()

        # LangChain's embed_query is synchronous, run in thread pool
        embedding = await asyncio.to_thread(client.embed_query, text)
        self._record("embed_single", [text], start)
        return embedding

    def _record(self, operation: str, texts: list[str], started_ns: int) -> None:
        # OpenAIEmbeddings does not surface usage, so tokens are always estimated
        input_tokens = sum(count_text_tokens(t, self._model) for t in texts)
        estimated_cost, pricing_found = estimate_embedding_cost_usd(
            self._model,
            input_tokens=input_tokens,
        )
        elapsed_ms = (time.perf_counter_ns() - started_ns) // 1_000_000
        record_usage(
            CostUsageRecord(
                provider="openai",
                model=self._model,
                operation=operation,
                stage=current_stage(),
                action=current_action(),
                input_tokens=input_tokens,
                total_tokens=input_tokens,
                estimated_cost_usd=estimated_cost,
                latency_ms=int(elapsed_ms),
                estimated=True,
                metadata={"texts": len(texts), "pricing_found": pricing_found},
            )
        )
