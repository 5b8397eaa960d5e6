"""
Storage Layer

Interfaces:
    base: GraphStore, ContextRetriever, StepStore, StepRecord

Implementations:
    memory: InMemoryGraphStore, InMemoryStepStore
    duckdb: DuckDBGraphStore, DuckDBStepStore
    lancedb: LanceDBContextRetriever

The DuckDB and LanceDB adapters are imported lazily.
"""

from ontology_agent.storage.base import ContextRetriever, GraphStore, StepRecord, StepStore
from ontology_agent.storage.memory import InMemoryGraphStore, InMemoryStepStore

__all__ = [
    "GraphStore",
    "ContextRetriever",
    "StepStore",
    "StepRecord",
    "InMemoryGraphStore",
    "InMemoryStepStore",
]


def __getattr__(name: str):
    if name in ("DuckDBGraphStore", "DuckDBStepStore"):
        from ontology_agent.storage import duckdb

        return getattr(duckdb, name)
    if name == "LanceDBContextRetriever":
        from ontology_agent.storage.lancedb import LanceDBContextRetriever

        return LanceDBContextRetriever
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
