"""
Context Retrieval Stage

Fetches the context items nearest to the prompt embedding. The resulting
list is an immutable snapshot for the rest of the run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ontology_agent.errors import RetrievalError
from ontology_agent.types.context import ContextItem, ContextKind

if TYPE_CHECKING:
    from ontology_agent.storage.base import ContextRetriever

logger = logging.getLogger(__name__)


class ContextLoader:
    """
    Wraps a ContextRetriever with ordering and error mapping.

    Args:
        retriever: Vector index
        top_k: Items per query
    """

    def __init__(self, retriever: "ContextRetriever", top_k: int = 25) -> None:
        if top_k < 1:
            raise ValueError(f"top_k must be positive, got {top_k}")
        self.retriever = retriever
        self.top_k = top_k

    async def load(
        self,
        vector: list[float],
        type_filter: list[ContextKind] | None = None,
    ) -> list[ContextItem]:
        """
        Query the index.

        Returns:
            Up to top_k items, highest score first

        Raises:
            RetrievalError: The retriever failed
        """
        try:
            items = await self.retriever.query(vector, self.top_k, type_filter)
        except Exception as e:
            raise RetrievalError(f"Context retrieval failed: {e}") from e

        ordered = sorted(items, key=lambda item: item.score, reverse=True)[: self.top_k]
        logger.debug(f"Retrieved {len(ordered)} context items")
        return ordered
