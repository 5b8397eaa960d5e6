"""
LLM and Embedding Providers

Abstract interfaces plus the LangChain-backed OpenAI implementations.

Interfaces:
    - LLMProvider: generate(), complete() with tool calling
    - EmbeddingProvider: embed(), embed_single()

Implementations:
    - OpenAILLMProvider (providers.llm.openai)
    - OpenAIEmbeddingProvider (providers.embedding.openai)
"""

from ontology_agent.providers.base import EmbeddingProvider, LLMProvider

__all__ = ["LLMProvider", "EmbeddingProvider"]


def __getattr__(name: str):
    if name == "OpenAILLMProvider":
        from ontology_agent.providers.llm.openai import OpenAILLMProvider

        return OpenAILLMProvider
    if name == "OpenAIEmbeddingProvider":
        from ontology_agent.providers.embedding.openai import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
