"""
In-Memory Stores

Process-local GraphStore and StepStore implementations, used by tests and
for one-off runs where durability across restarts is not needed.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import replace
from typing import Any

from ontology_agent.storage.base import GraphStore, StepRecord, StepStore


class InMemoryGraphStore(GraphStore):
    """Dict-backed graph. Ids are random UUIDs."""

    def __init__(self) -> None:
        self.nodes: dict[str, dict[str, Any]] = {}
        self.relationships: dict[str, dict[str, Any]] = {}

    async def create_node(self, type: str, name: str, description: str = "") -> str:
        node_id = str(uuid.uuid4())
        self.nodes[node_id] = {
            "id": node_id,
            "type": type,
            "name": name,
            "description": description,
        }
        return node_id

    async def create_relationship(self, from_id: str, to_id: str, relation_type: str) -> str:
        rel_id = str(uuid.uuid4())
        self.relationships[rel_id] = {
            "id": rel_id,
            "from_id": from_id,
            "to_id": to_id,
            "relation_type": relation_type,
        }
        return rel_id

    async def list_nodes(self) -> list[dict[str, Any]]:
        return [dict(n) for n in self.nodes.values()]

    async def list_relationships(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self.relationships.values()]


class InMemoryStepStore(StepStore):
    """
    Dict-backed step store.

    Values are copied through JSON on save so later mutation of the caller's
    object cannot change what a replay returns.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], StepRecord] = {}

    async def load(self, run_id: str, step_name: str) -> StepRecord | None:
        record = self._records.get((run_id, step_name))
        if record is None:
            return None
        return replace(record, value=json.loads(json.dumps(record.value)))

    async def save(self, run_id: str, step_name: str, value: Any) -> bool:
        key = (run_id, step_name)
        if key in self._records:
            return False
        self._records[key] = StepRecord(
            run_id=run_id,
            step_name=step_name,
            value=json.loads(json.dumps(value)),
        )
        return True

    async def completed_steps(self, run_id: str) -> list[StepRecord]:
        return [r for (rid, _), r in self._records.items() if rid == run_id]

    async def clear(self, run_id: str) -> int:
        keys = [k for k in self._records if k[0] == run_id]
        for key in keys:
            del self._records[key]
        return len(keys)
