"""
Tests for the OntologyAgent facade and the CLI.

Tests cover:
- Instantiation and lazy initialization
- Provider factory
- Runs against real DuckDB/LanceDB workspaces with fake providers
- Graph indexing
- CLI commands
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from fakes import DIMENSIONS, node_call, plan_text, relationship_call, scripted_llm
from ontology_agent.api.agent import (
    OntologyAgent,
    node_to_context_item,
    relationship_to_context_item,
)
from ontology_agent.cli import app
from ontology_agent.config import AgentConfig
from ontology_agent.types.context import ContextKind
from ontology_agent.types.execution import ActionStatus, Completion


def _config(**kwargs) -> AgentConfig:
    return AgentConfig(embedding_dimensions=DIMENSIONS, **kwargs)


def _fake_embeddings() -> MagicMock:
    embeddings = MagicMock()
    embeddings.dimensions = DIMENSIONS
    embeddings.embed_single = AsyncMock(return_value=[1.0] + [0.0] * (DIMENSIONS - 1))

    async def _embed(texts):
        return [[1.0] + [0.0] * (DIMENSIONS - 1) for _ in texts]

    embeddings.embed = AsyncMock(side_effect=_embed)
    return embeddings


def _llm():
    return scripted_llm(
        plan_text(["Create Ada", "Ada works in Engineering"]),
        [
            Completion(tool_calls=[node_call("Person", "Ada")]),
            Completion(tool_calls=[relationship_call("Ada", "Engineering", "works_in")]),
        ],
    )


class TestOntologyAgentInstantiation:
    """Tests for OntologyAgent instantiation."""

    def test_path_is_resolved(self):
        agent = OntologyAgent("./test_workspace")
        assert agent.path == Path("./test_workspace").resolve()
        assert agent.is_initialized is False

    def test_custom_config(self):
        config = AgentConfig(llm_model="gpt-4o-mini")
        assert OntologyAgent("./test_workspace", config=config).config.llm_model == "gpt-4o-mini"

    def test_instantiation_does_not_initialize(self):
        agent = OntologyAgent("./test_workspace")
        assert agent._graph is None
        assert agent._llm is None
        assert agent._orchestrator is None

    def test_unknown_llm_provider(self, tmp_path):
        agent = OntologyAgent(tmp_path, config=AgentConfig(llm_provider="nope"))
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            agent._create_llm_provider("gpt-4o")

    def test_unknown_embedding_provider(self, tmp_path):
        agent = OntologyAgent(tmp_path, config=AgentConfig(embedding_provider="nope"))
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            agent._create_embedding_provider()

    @pytest.mark.asyncio
    async def test_missing_workspace_without_create(self, tmp_path):
        agent = OntologyAgent(tmp_path / "missing", create=False)
        with pytest.raises(FileNotFoundError):
            await agent.stats()


class TestOntologyAgentLifecycle:
    """Tests for lazy initialization and cleanup."""

    @pytest.mark.asyncio
    async def test_initializes_workspace(self, tmp_path):
        workspace = tmp_path / "ws"
        async with OntologyAgent(workspace, config=_config()) as agent:
            assert agent.is_initialized
            assert await agent.stats() == {"nodes": 0, "relationships": 0, "context_items": 0}

        assert (workspace / "graph.duckdb").exists()
        assert (workspace / "steps.duckdb").exists()
        assert agent.is_initialized is False

    @pytest.mark.asyncio
    async def test_http_channel_from_config(self, tmp_path):
        agent = OntologyAgent(tmp_path, config=_config(notification_url="http://ui.local"))
        dispatcher = agent._create_notification_dispatcher()

        assert dispatcher is not None
        assert dispatcher.channel.base_url == "http://ui.local"
        await agent.close()

    def test_no_channel_no_dispatcher(self, tmp_path):
        agent = OntologyAgent(tmp_path, config=_config())
        assert agent._create_notification_dispatcher() is None


class TestOntologyAgentRun:
    """End-to-end runs with fake providers."""

    @pytest.mark.asyncio
    async def test_run_index_and_replay(self, tmp_path):
        config = _config()
        embeddings = _fake_embeddings()

        with patch.object(OntologyAgent, "_create_embedding_provider", return_value=embeddings):
            # Seed the graph with a department and index it
            async with OntologyAgent(tmp_path, config=config) as agent:
                await agent._graph.create_node("Department", "Engineering")
                assert await agent.index_graph() == 1

            llm = _llm()
            with patch.object(OntologyAgent, "_create_llm_provider", return_value=llm):
                async with OntologyAgent(tmp_path, config=config) as agent:
                    result = await agent.run("Add Ada to Engineering", ["Person"], run_id="run-1")
                    stats = await agent.stats()
                    steps = await agent.steps("run-1")

            assert [r.status for r in result.execution_records] == [ActionStatus.SUCCEEDED] * 2
            assert stats["nodes"] == 2
            assert stats["relationships"] == 1
            assert [s.step_name for s in steps][:4] == [
                "generate-embedding",
                "query-context",
                "generate-action-plan",
                "validate-planning-response",
            ]

            # A fresh process resumes from the step store without calling the model
            replay_llm = _llm()
            with patch.object(OntologyAgent, "_create_llm_provider", return_value=replay_llm):
                async with OntologyAgent(tmp_path, config=config) as agent:
                    replayed = await agent.run("Add Ada to Engineering", ["Person"], run_id="run-1")
                    assert (await agent.stats())["nodes"] == 2
                    assert await agent.clear_run("run-1") == len(steps)

            replay_llm.generate.assert_not_called()
            assert replayed.summary == result.summary


class TestContextItemConversion:
    """Tests for graph -> context conversion."""

    def test_node_item(self):
        item = node_to_context_item(
            {"id": "n1", "type": "Person", "name": "Ada", "description": ""}
        )
        assert item.kind is ContextKind.NODE
        assert item.name == "Ada"
        assert item.entity_type == "Person"

    def test_relationship_item(self):
        nodes = {"n1": {"id": "n1", "name": "Ada", "type": "Person"}}
        item = relationship_to_context_item(
            {"id": "r1", "from_id": "n1", "to_id": "ext", "relation_type": "knows"},
            nodes,
        )
        assert item.content == "Ada knows ext"
        assert item.attributes["fromName"] == "Ada"
        assert "toName" not in item.attributes


class TestCLI:
    """Tests for CLI commands."""

    def test_cli_help(self):
        runner = CliRunner()
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("run", "steps", "index", "info", "init-config"):
            assert command in result.stdout

    def test_cli_run_help(self):
        runner = CliRunner()
        result = runner.invoke(app, ["run", "--help"])

        assert result.exit_code == 0
        assert "--type" in result.stdout
        assert "--run-id" in result.stdout

    def test_cli_init_config(self, tmp_path):
        path = tmp_path / "agent.toml"
        runner = CliRunner()

        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 0
        assert AgentConfig.from_file(path).notification_max_attempts == 5

        result = runner.invoke(app, ["init-config", str(path)])
        assert result.exit_code == 1

    def test_cli_steps_empty(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(app, ["steps", "run-x", "--workspace", str(tmp_path)])

        assert result.exit_code == 0
        assert "No persisted steps" in result.stdout

    def test_cli_info(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(app, ["info", "--workspace", str(tmp_path)])

        assert result.exit_code == 0
        assert "Nodes" in result.stdout

    def test_cli_rejects_bad_filter(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            app,
            ["run", "Add Ada", "--type", "Person", "--filter", "EDGE", "--workspace", str(tmp_path)],
        )
        assert result.exit_code != 0

    def test_cli_run(self, tmp_path):
        with patch.object(
            OntologyAgent, "_create_embedding_provider", return_value=_fake_embeddings()
        ), patch.object(OntologyAgent, "_create_llm_provider", return_value=_llm()), patch(
            "ontology_agent.config.AgentConfig",
            return_value=_config(),
        ):
            runner = CliRunner()
            result = runner.invoke(
                app,
                ["run", "Add Ada", "--type", "Person", "--workspace", str(tmp_path)],
            )

        assert result.exit_code == 0, result.stdout
        assert "Create Ada" in result.stdout
        assert "Execution report" in result.stdout
