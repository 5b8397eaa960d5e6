"""
Abstract Provider Interfaces

Base classes for LLM and embedding providers. The agent pipeline only talks
to these interfaces; concrete adapters live in providers/llm and
providers/embedding.
"""

from abc import ABC, abstractmethod
from typing import Any

from ontology_agent.types.execution import Completion


class LLMProvider(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> str:
        """Generate a completion."""
        ...

    @abstractmethod
    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.0,
    ) -> Completion:
        """
        Generate a completion that may request tool calls.

        Args:
            system: System message
            prompt: User message
            tools: OpenAI-style function schemas the model may call
            temperature: Sampling temperature

        Returns:
            Completion with free text and any tool calls, in emission order
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Current model name."""
        ...


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for texts."""
        ...

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate embedding for a single text."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Embedding dimensions."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Current model name."""
        ...
