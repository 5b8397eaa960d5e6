"""
DuckDB Graph Store

Nodes and relationships of the ontology in two DuckDB tables.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from ontology_agent.storage.base import GraphStore
from ontology_agent.storage.duckdb.connection import DuckDBConnection

_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS nodes (
        id VARCHAR PRIMARY KEY,
        type VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        description VARCHAR,
        created_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS relationships (
        id VARCHAR PRIMARY KEY,
        from_id VARCHAR NOT NULL,
        to_id VARCHAR NOT NULL,
        relation_type VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
    """,
]


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DuckDBGraphStore(GraphStore):
    """
    File-backed graph store.

    Relationship endpoints are not checked against the nodes table: they
    may reference nodes that exist only in the external context index.
    """

    def __init__(self, path: Path | str) -> None:
        self._db = DuckDBConnection(path, _SCHEMA)

    async def initialize(self) -> None:
        await self._db.initialize()

    async def close(self) -> None:
        await self._db.close()

    async def create_node(self, type: str, name: str, description: str = "") -> str:
        node_id = str(uuid.uuid4())

        def _insert(cur: duckdb.DuckDBPyConnection) -> None:
            cur.execute(
                "INSERT INTO nodes VALUES (?, ?, ?, ?, ?)",
                [node_id, type, name, description, _now()],
            )

        await self._db.run(_insert)
        return node_id

    async def create_relationship(self, from_id: str, to_id: str, relation_type: str) -> str:
        rel_id = str(uuid.uuid4())

        def _insert(cur: duckdb.DuckDBPyConnection) -> None:
            cur.execute(
                "INSERT INTO relationships VALUES (?, ?, ?, ?, ?)",
                [rel_id, from_id, to_id, relation_type, _now()],
            )

        await self._db.run(_insert)
        return rel_id

    async def get_node(self, node_id: str) -> dict[str, Any] | None:
        """Get node by id."""
        def _query(cur: duckdb.DuckDBPyConnection) -> dict[str, Any] | None:
            row = cur.execute(
                "SELECT id, type, name, description FROM nodes WHERE id = ?",
                [node_id],
            ).fetchone()
            if not row:
                return None
            return {"id": row[0], "type": row[1], "name": row[2], "description": row[3] or ""}

        return await self._db.run(_query)

    async def list_nodes(self) -> list[dict[str, Any]]:
        def _query(cur: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
            rows = cur.execute(
                "SELECT id, type, name, description FROM nodes ORDER BY created_at, id"
            ).fetchall()
            return [
                {"id": r[0], "type": r[1], "name": r[2], "description": r[3] or ""}
                for r in rows
            ]

        return await self._db.run(_query)

    async def list_relationships(self) -> list[dict[str, Any]]:
        def _query(cur: duckdb.DuckDBPyConnection) -> list[dict[str, Any]]:
            rows = cur.execute(
                "SELECT id, from_id, to_id, relation_type FROM relationships "
                "ORDER BY created_at, id"
            ).fetchall()
            return [
                {"id": r[0], "from_id": r[1], "to_id": r[2], "relation_type": r[3]}
                for r in rows
            ]

        return await self._db.run(_query)
