"""
LanceDB Context Retriever

ContextRetriever backed by a single LanceDB table of nodes, relationships
and notes. Also used to index context items.

Table schema (default name "context"):
    id, kind, content, attributes (JSON text), vector
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any

import lancedb
import pyarrow as pa

from ontology_agent.storage.base import ContextRetriever
from ontology_agent.types.context import ContextItem, ContextKind

logger = logging.getLogger(__name__)


def _escape_sql_string(value: str) -> str:
    """Escape single quotes for SQL WHERE clauses."""
    return value.replace("'", "''")


def build_kind_filter(kinds: list[ContextKind] | None) -> str | None:
    """WHERE clause restricting rows to the given kinds (None = no filter)."""
    if not kinds:
        return None
    values = ", ".join(f"'{_escape_sql_string(ContextKind(k).value)}'" for k in kinds)
    return f"kind IN ({values})"


def context_schema(dimensions: int) -> pa.Schema:
    """Arrow schema of the context table for a given embedding size."""
    return pa.schema([
        ("id", pa.string()),
        ("kind", pa.string()),
        ("content", pa.string()),
        ("attributes", pa.string()),  # JSON-encoded dict
        ("vector", pa.list_(pa.float32(), dimensions)),
    ])


def row_to_item(row: dict[str, Any]) -> ContextItem:
    """
    Convert a search result row to a ContextItem.

    LanceDB returns cosine distance; similarity is 1 - distance, clamped
    into [0, 1].
    """
    similarity = 1.0 - float(row.get("_distance", 1.0))
    raw_attributes = row.get("attributes") or "{}"
    return ContextItem(
        kind=ContextKind(row["kind"]),
        id=str(row["id"]),
        score=min(1.0, max(0.0, similarity)),
        content=row.get("content") or "",
        attributes=json.loads(raw_attributes),
    )


class LanceDBContextRetriever(ContextRetriever):
    """
    Cosine-similarity search over indexed context items.

    Thread safety:
        Uses thread-local storage for connections since LanceDB connections
        may not be thread-safe and asyncio.to_thread() may use different threads.
    """

    def __init__(self, lancedb_path: Path, table_name: str = "context") -> None:
        self.path = Path(lancedb_path)
        self.table_name = table_name
        self._local = threading.local()
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize LanceDB (marks as ready, connections created per-thread)."""
        if self._initialized:
            return

        def _init() -> None:
            self.path.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(_init)
        self._initialized = True

    async def close(self) -> None:
        """Close LanceDB connections."""
        self._initialized = False
        if hasattr(self._local, "db"):
            self._local.db = None

    def _get_db(self) -> lancedb.DBConnection:
        """Get thread-local LanceDB connection, creating if needed."""
        if not self._initialized:
            raise RuntimeError("LanceDB not initialized. Call initialize() first.")

        db = getattr(self._local, "db", None)
        if db is None:
            db = lancedb.connect(str(self.path))
            self._local.db = db
        return db

    @staticmethod
    def _table_names(db: lancedb.DBConnection) -> set[str]:
        """
        Return table names across LanceDB API variants.

        Recent LanceDB returns a response object from list_tables() with a
        `tables` attribute, while older versions return a plain list.
        """
        listed = db.list_tables()
        tables = getattr(listed, "tables", listed)
        return {str(name) for name in tables}

    def _has_table(self, db: lancedb.DBConnection) -> bool:
        return self.table_name in self._table_names(db)

    async def add_items(
        self,
        items: list[ContextItem],
        embeddings: list[list[float]],
    ) -> None:
        """
        Index context items with their embeddings.

        Existing rows with the same id are replaced.
        """
        if not items or not embeddings:
            return
        if len(items) != len(embeddings):
            raise ValueError(
                f"Got {len(items)} items but {len(embeddings)} embeddings"
            )

        def _add() -> None:
            db = self._get_db()
            rows = [
                {
                    "id": item.id,
                    "kind": item.kind.value,
                    "content": item.content,
                    "attributes": json.dumps(item.attributes),
                    "vector": emb,
                }
                for item, emb in zip(items, embeddings)
            ]
            data = pa.Table.from_pylist(rows, schema=context_schema(len(embeddings[0])))

            if self._has_table(db):
                table = db.open_table(self.table_name)
                id_list = ", ".join(f"'{_escape_sql_string(item.id)}'" for item in items)
                table.delete(f"id IN ({id_list})")
                table.add(data)
            else:
                db.create_table(self.table_name, data)

        await asyncio.to_thread(_add)
        logger.debug(f"Indexed {len(items)} context items into {self.table_name}")

    async def query(
        self,
        vector: list[float],
        top_k: int,
        type_filter: list[ContextKind] | None = None,
    ) -> list[ContextItem]:
        """Return up to top_k items, most similar first."""
        where = build_kind_filter(type_filter)

        def _search() -> list[ContextItem]:
            db = self._get_db()
            if not self._has_table(db):
                return []

            table = db.open_table(self.table_name)
            search = table.search(vector).distance_type("cosine")
            if where:
                search = search.where(where, prefilter=True)
            rows = search.limit(top_k).to_arrow().to_pylist()
            return [row_to_item(row) for row in rows]

        items = await asyncio.to_thread(_search)
        return sorted(items, key=lambda item: item.score, reverse=True)

    async def count(self) -> int:
        """Number of indexed rows."""
        def _count() -> int:
            db = self._get_db()
            if not self._has_table(db):
                return 0
            return db.open_table(self.table_name).count_rows()

        return await asyncio.to_thread(_count)
