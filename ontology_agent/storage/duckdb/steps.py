"""
DuckDB Step Store

File-backed StepStore that survives process restarts. Reusing a run_id
against the same file resumes the run: completed steps replay from here.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import duckdb

from ontology_agent.storage.base import StepRecord, StepStore
from ontology_agent.storage.duckdb.connection import DuckDBConnection

logger = logging.getLogger(__name__)

_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS step_seq",
    """
    CREATE TABLE IF NOT EXISTS steps (
        run_id VARCHAR NOT NULL,
        step_name VARCHAR NOT NULL,
        value VARCHAR NOT NULL,
        created_at TIMESTAMP NOT NULL,
        seq BIGINT DEFAULT nextval('step_seq'),
        PRIMARY KEY (run_id, step_name)
    )
    """,
]


def _row_to_record(row: tuple[Any, ...]) -> StepRecord:
    run_id, step_name, value, created_at = row
    return StepRecord(
        run_id=run_id,
        step_name=step_name,
        value=json.loads(value),
        created_at=created_at.replace(tzinfo=timezone.utc),
    )


class DuckDBStepStore(StepStore):
    """
    Durable step results in a DuckDB table.

    Values are stored as JSON text. Writes use INSERT ... ON CONFLICT DO
    NOTHING, so when two writers race on one step the first committed
    result wins and both callers observe it on the next load.
    """

    def __init__(self, path: Path | str) -> None:
        self._db = DuckDBConnection(path, _SCHEMA)

    async def initialize(self) -> None:
        await self._db.initialize()

    async def close(self) -> None:
        await self._db.close()

    async def load(self, run_id: str, step_name: str) -> StepRecord | None:
        def _query(cur: duckdb.DuckDBPyConnection) -> StepRecord | None:
            row = cur.execute(
                "SELECT run_id, step_name, value, created_at FROM steps "
                "WHERE run_id = ? AND step_name = ?",
                [run_id, step_name],
            ).fetchone()
            return _row_to_record(row) if row else None

        return await self._db.run(_query)

    async def save(self, run_id: str, step_name: str, value: Any) -> bool:
        payload = json.dumps(value)
        created_at = datetime.now(timezone.utc).replace(tzinfo=None)

        def _insert(cur: duckdb.DuckDBPyConnection) -> bool:
            inserted = cur.execute(
                "INSERT INTO steps (run_id, step_name, value, created_at) "
                "VALUES (?, ?, ?, ?) ON CONFLICT DO NOTHING RETURNING step_name",
                [run_id, step_name, payload, created_at],
            ).fetchall()
            return bool(inserted)

        saved = await self._db.run(_insert)
        if not saved:
            logger.debug(f"Step {run_id}/{step_name} already persisted; keeping first result")
        return saved

    async def completed_steps(self, run_id: str) -> list[StepRecord]:
        def _query(cur: duckdb.DuckDBPyConnection) -> list[StepRecord]:
            rows = cur.execute(
                "SELECT run_id, step_name, value, created_at FROM steps "
                "WHERE run_id = ? ORDER BY seq",
                [run_id],
            ).fetchall()
            return [_row_to_record(row) for row in rows]

        return await self._db.run(_query)

    async def clear(self, run_id: str) -> int:
        def _delete(cur: duckdb.DuckDBPyConnection) -> int:
            deleted = cur.execute(
                "DELETE FROM steps WHERE run_id = ? RETURNING step_name",
                [run_id],
            ).fetchall()
            return len(deleted)

        return await self._db.run(_delete)
