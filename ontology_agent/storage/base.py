"""
Storage Capability Interfaces

The agent pipeline consumes storage only through these narrow interfaces:

    - GraphStore: persists nodes and relationships
    - ContextRetriever: nearest-neighbor lookup of indexed context items
    - StepStore: durable (run_id, step_name) -> result records
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ontology_agent.types.context import ContextItem, ContextKind


class GraphStore(ABC):
    """Abstract interface for the ontology graph."""

    async def initialize(self) -> None:
        """Prepare the store. Default: nothing to do."""

    async def close(self) -> None:
        """Release resources. Default: nothing to do."""

    @abstractmethod
    async def create_node(self, type: str, name: str, description: str = "") -> str:
        """Create a node and return its persisted id."""
        ...

    @abstractmethod
    async def create_relationship(self, from_id: str, to_id: str, relation_type: str) -> str:
        """Create a relationship between two node ids and return its id."""
        ...

    @abstractmethod
    async def list_nodes(self) -> list[dict[str, Any]]:
        """All nodes as dicts (id, type, name, description)."""
        ...

    @abstractmethod
    async def list_relationships(self) -> list[dict[str, Any]]:
        """All relationships as dicts (id, from_id, to_id, relation_type)."""
        ...


class ContextRetriever(ABC):
    """Abstract interface for the vector index of context items."""

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        type_filter: list[ContextKind] | None = None,
    ) -> list[ContextItem]:
        """
        Return up to top_k items nearest to vector.

        Args:
            vector: Query embedding
            top_k: Maximum number of items
            type_filter: Restrict to these kinds (None = all kinds)
        """
        ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StepRecord:
    """A persisted step result."""

    run_id: str
    step_name: str
    value: Any
    created_at: datetime = field(default_factory=_utcnow)


class StepStore(ABC):
    """
    Durable step-result storage.

    save() is first-writer-wins: a second save of the same
    (run_id, step_name) leaves the stored value untouched.
    Values must be JSON-compatible.
    """

    async def initialize(self) -> None:
        """Prepare the store. Default: nothing to do."""

    async def close(self) -> None:
        """Release resources. Default: nothing to do."""

    @abstractmethod
    async def load(self, run_id: str, step_name: str) -> StepRecord | None:
        """Return the persisted record, or None if the step never completed."""
        ...

    @abstractmethod
    async def save(self, run_id: str, step_name: str, value: Any) -> bool:
        """Persist a result. Returns False if a result already existed."""
        ...

    @abstractmethod
    async def completed_steps(self, run_id: str) -> list[StepRecord]:
        """All persisted records of a run, in completion order."""
        ...

    @abstractmethod
    async def clear(self, run_id: str) -> int:
        """Delete all records of a run. Returns the number deleted."""
        ...
