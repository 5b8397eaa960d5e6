"""Tests for graph stores and the LanceDB context index."""

import pytest

from ontology_agent.storage.duckdb import DuckDBGraphStore
from ontology_agent.storage.lancedb import LanceDBContextRetriever
from ontology_agent.storage.lancedb.retriever import (
    build_kind_filter,
    context_schema,
    row_to_item,
)
from ontology_agent.storage.memory import InMemoryGraphStore
from ontology_agent.types.context import ContextItem, ContextKind


class TestDuckDBGraphStore:
    """Tests for the DuckDB graph store."""

    @pytest.mark.asyncio
    async def test_nodes_and_relationships(self, tmp_path):
        store = DuckDBGraphStore(tmp_path / "graph.duckdb")
        await store.initialize()
        try:
            ada = await store.create_node("Person", "Ada", "Mathematician")
            engine = await store.create_node("Machine", "Analytical Engine")
            rel = await store.create_relationship(ada, engine, "designed_programs_for")

            node = await store.get_node(ada)
            assert node == {"id": ada, "type": "Person", "name": "Ada", "description": "Mathematician"}
            assert await store.get_node("missing") is None
            assert sorted(n["name"] for n in await store.list_nodes()) == ["Ada", "Analytical Engine"]
            assert await store.list_relationships() == [{
                "id": rel,
                "from_id": ada,
                "to_id": engine,
                "relation_type": "designed_programs_for",
            }]
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_relationship_to_external_node(self, tmp_path):
        """Endpoints may live only in the context index."""
        store = DuckDBGraphStore(tmp_path / "graph.duckdb")
        await store.initialize()
        try:
            ada = await store.create_node("Person", "Ada")
            await store.create_relationship(ada, "dept-1", "works_in")
            assert len(await store.list_relationships()) == 1
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_requires_initialize(self, tmp_path):
        store = DuckDBGraphStore(tmp_path / "graph.duckdb")
        with pytest.raises(RuntimeError, match="not initialized"):
            await store.list_nodes()


class TestInMemoryGraphStore:
    """Tests for the in-memory graph store."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        store = InMemoryGraphStore()
        a = await store.create_node("Person", "A")
        b = await store.create_node("Person", "B")
        await store.create_relationship(a, b, "knows")

        assert a != b
        assert len(await store.list_nodes()) == 2
        assert (await store.list_relationships())[0]["relation_type"] == "knows"


class TestLanceDBHelpers:
    """Tests for row conversion and filters."""

    def test_kind_filter(self):
        assert build_kind_filter(None) is None
        assert build_kind_filter([]) is None
        assert build_kind_filter([ContextKind.NODE, ContextKind.NOTE]) == "kind IN ('NODE', 'NOTE')"

    def test_row_to_item(self):
        item = row_to_item({
            "id": "n1",
            "kind": "NODE",
            "content": "Acme",
            "attributes": '{"name": "Acme", "type": "Company"}',
            "_distance": 0.25,
        })
        assert item.score == 0.75
        assert item.name == "Acme"

    def test_row_score_is_clamped(self):
        item = row_to_item({"id": "n1", "kind": "NOTE", "_distance": 1.6})
        assert item.score == 0.0
        assert item.attributes == {}

    def test_context_schema_fixes_vector_size(self):
        schema = context_schema(8)
        assert schema.names == ["id", "kind", "content", "attributes", "vector"]
        assert schema.field("vector").type.list_size == 8


class TestLanceDBContextRetriever:
    """Tests against a real LanceDB directory."""

    @pytest.mark.asyncio
    async def test_index_and_query(self, tmp_path):
        retriever = LanceDBContextRetriever(tmp_path / "lancedb")
        await retriever.initialize()
        try:
            assert await retriever.query([1.0, 0.0, 0.0], 5) == []

            items = [
                ContextItem(
                    kind=ContextKind.NODE,
                    id="n1",
                    score=1.0,
                    content="Acme",
                    attributes={"name": "Acme", "type": "Company"},
                ),
                ContextItem(kind=ContextKind.NOTE, id="note-1", score=1.0, content="Acme is big"),
            ]
            await retriever.add_items(items, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
            assert await retriever.count() == 2

            results = await retriever.query([1.0, 0.1, 0.0], 5)
            assert [r.id for r in results] == ["n1", "note-1"]
            assert results[0].score > results[1].score

            notes = await retriever.query([1.0, 0.0, 0.0], 5, [ContextKind.NOTE])
            assert [r.id for r in notes] == ["note-1"]

            # Re-indexing an id replaces the row
            await retriever.add_items(items[:1], [[0.0, 0.0, 1.0]])
            assert await retriever.count() == 2
        finally:
            await retriever.close()

    @pytest.mark.asyncio
    async def test_length_mismatch(self, tmp_path):
        retriever = LanceDBContextRetriever(tmp_path / "lancedb")
        await retriever.initialize()
        item = ContextItem(kind=ContextKind.NOTE, id="x", score=1.0)
        with pytest.raises(ValueError):
            await retriever.add_items([item, item], [[1.0]])
