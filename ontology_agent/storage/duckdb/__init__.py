"""
DuckDB Storage

    - DuckDBStepStore: durable step results
    - DuckDBGraphStore: nodes and relationships
"""

from ontology_agent.storage.duckdb.graph import DuckDBGraphStore
from ontology_agent.storage.duckdb.steps import DuckDBStepStore

__all__ = ["DuckDBStepStore", "DuckDBGraphStore"]
