"""
DuckDB Connection Management

One database connection per file, with a thread-local cursor per worker
thread. DuckDB connections are not thread-safe and asyncio.to_thread() may
run consecutive calls on different threads; cursors created from the same
root connection share the database but not transaction state.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import duckdb

T = TypeVar("T")


class DuckDBConnection:
    """
    Owns one DuckDB database file.

    Args:
        path: Database file (created on first use), or ":memory:"
        schema: DDL statements executed once on initialize()
    """

    def __init__(self, path: Path | str, schema: list[str]) -> None:
        self.path = path
        self._schema = schema
        self._root: duckdb.DuckDBPyConnection | None = None
        self._local = threading.local()
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._root is not None

    async def initialize(self) -> None:
        """Open the database and create tables if needed."""
        if self._root is not None:
            return

        def _init() -> None:
            if isinstance(self.path, Path):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            root = duckdb.connect(str(self.path))
            for statement in self._schema:
                root.execute(statement)
            self._root = root

        await asyncio.to_thread(_init)

    async def close(self) -> None:
        """Close the root connection (and with it every cursor)."""
        if self._root is not None:
            self._root.close()
            self._root = None
        self._local = threading.local()

    def _cursor(self) -> duckdb.DuckDBPyConnection:
        """Get thread-local cursor, creating if needed."""
        if self._root is None:
            raise RuntimeError("DuckDB not initialized. Call initialize() first.")

        cursor = getattr(self._local, "cursor", None)
        if cursor is None:
            with self._lock:
                cursor = self._root.cursor()
            self._local.cursor = cursor
        return cursor

    async def run(self, fn: Callable[[duckdb.DuckDBPyConnection], T]) -> T:
        """Run fn(cursor) in a worker thread."""
        return await asyncio.to_thread(lambda: fn(self._cursor()))
