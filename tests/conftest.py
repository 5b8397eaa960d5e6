"""Shared fixtures for ontology agent tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import DIMENSIONS
from ontology_agent.types.context import ContextItem, ContextKind


@pytest.fixture
def context_items() -> list[ContextItem]:
    """Context snapshot with one department node and one note."""
    return [
        ContextItem(
            kind=ContextKind.NODE,
            id="dept-1",
            score=0.91,
            content="Engineering department",
            attributes={"name": "Engineering", "type": "Department"},
        ),
        ContextItem(
            kind=ContextKind.NOTE,
            id="note-1",
            score=0.42,
            content="Engineering is hiring",
            attributes={"author": "hr", "nodeId": "dept-1"},
        ),
    ]


@pytest.fixture
def mock_embeddings() -> MagicMock:
    """Mock embedding provider."""
    embeddings = MagicMock()
    embeddings.dimensions = DIMENSIONS
    embeddings.embed = AsyncMock(return_value=[[0.1] * DIMENSIONS])
    embeddings.embed_single = AsyncMock(return_value=[0.1] * DIMENSIONS)
    return embeddings


@pytest.fixture
def mock_retriever(context_items: list[ContextItem]) -> MagicMock:
    """Mock context retriever returning the context fixture."""
    retriever = MagicMock()
    retriever.query = AsyncMock(return_value=list(context_items))
    return retriever
