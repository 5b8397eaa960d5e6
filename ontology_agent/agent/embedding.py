"""
Prompt Embedding Stage

Turns the user prompt into a validated query vector.

Rejected (EmbeddingError):
    - empty or whitespace-only prompt
    - provider failure
    - wrong vector length
    - non-numeric or non-finite components (bools count as non-numeric)
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import TYPE_CHECKING

from ontology_agent.errors import EmbeddingError

if TYPE_CHECKING:
    from ontology_agent.providers.base import EmbeddingProvider

logger = logging.getLogger(__name__)


def validate_vector(vector: object, dimensions: int) -> list[float]:
    """Check length and values of an embedding; return it as floats."""
    if not isinstance(vector, (list, tuple)):
        raise EmbeddingError(f"Embedding must be a sequence, got {type(vector).__name__}")
    if len(vector) != dimensions:
        raise EmbeddingError(
            f"Embedding has {len(vector)} dimensions, expected {dimensions}"
        )
    for i, value in enumerate(vector):
        if isinstance(value, bool) or not isinstance(value, Real):
            raise EmbeddingError(f"Embedding component {i} is not a number: {value!r}")
        if not math.isfinite(value):
            raise EmbeddingError(f"Embedding component {i} is not finite: {value!r}")
    return [float(v) for v in vector]


class PromptEmbedder:
    """
    Embeds prompts with dimension and value checks.

    Args:
        provider: Embedding provider
        dimensions: Expected vector length (defaults to provider.dimensions)
    """

    def __init__(
        self,
        provider: "EmbeddingProvider",
        dimensions: int | None = None,
    ) -> None:
        self.provider = provider
        self.dimensions = dimensions or provider.dimensions

    async def embed(self, prompt: str) -> list[float]:
        if not prompt or not prompt.strip():
            raise EmbeddingError("Cannot embed an empty prompt")

        try:
            vector = await self.provider.embed_single(prompt)
        except Exception as e:
            raise EmbeddingError(f"Embedding provider failed: {e}") from e

        return validate_vector(vector, self.dimensions)
