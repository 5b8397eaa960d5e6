"""Tests for per-action tool dispatch."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from fakes import node_call, plan_text, relationship_call
from ontology_agent.agent.dispatcher import ToolDispatcher, parse_arguments
from ontology_agent.agent.steps import StepExecutor
from ontology_agent.agent.validator import validate_plan
from ontology_agent.errors import ErrorKind
from ontology_agent.storage.memory import InMemoryGraphStore, InMemoryStepStore
from ontology_agent.types.execution import (
    ActionAnalysis,
    ActionStatus,
    OutcomeStatus,
    ToolCall,
)
from ontology_agent.types.results import CostUsageRecord
from ontology_agent.utils.cost_telemetry import (
    CostCollector,
    current_action,
    record_usage,
    telemetry_collector,
)


def _planner(*analyses: ActionAnalysis | Exception) -> MagicMock:
    planner = MagicMock()
    planner.analyze_action = AsyncMock(side_effect=list(analyses))
    planner.summarize = AsyncMock(return_value="Model summary.")
    return planner


def _analysis(*calls: ToolCall, text: str = "Doing it.") -> ActionAnalysis:
    return ActionAnalysis(analysis=text, tool_calls=list(calls))


def _dispatcher(planner, graph=None, store=None, run_id="run-1") -> ToolDispatcher:
    return ToolDispatcher(
        graph or InMemoryGraphStore(),
        planner,
        StepExecutor(store or InMemoryStepStore(), run_id),
        entity_types=["Person", "Department"],
    )


class TestParseArguments:
    """Tests for argument decoding."""

    def test_dict_passthrough(self):
        assert parse_arguments(ToolCall(name="create_node", arguments={"a": 1})) == {"a": 1}

    def test_json_string(self):
        assert parse_arguments(ToolCall(name="create_node", arguments='{"a": 1}')) == {"a": 1}

    def test_empty_string(self):
        assert parse_arguments(ToolCall(name="create_node", arguments="")) == {}

    @pytest.mark.parametrize("raw", ['{"a": ', "[1, 2]", '"text"'])
    def test_rejected(self, raw):
        with pytest.raises(ValueError):
            parse_arguments(ToolCall(name="create_node", arguments=raw))


class TestCreateNode:
    """Tests for create_node dispatch."""

    @pytest.mark.asyncio
    async def test_creates_and_registers(self, context_items):
        graph = InMemoryGraphStore()
        dispatcher = _dispatcher(_planner(_analysis(node_call("Person", "Ada", "Engineer"))), graph)
        plan = validate_plan(plan_text(["Create Ada"]))

        records = await dispatcher.execute_plan("Add Ada", plan, context_items)

        assert len(records) == 1
        record = records[0]
        assert record.status is ActionStatus.SUCCEEDED
        assert record.analysis_output == "Doing it."
        assert record.dispatch_result.name == "Ada"
        assert list(graph.nodes.values())[0]["description"] == "Engineer"
        assert [e.reference_name for e in record.created_entities_snapshot] == ["Ada"]
        assert len(dispatcher.registry) == 1

    @pytest.mark.asyncio
    async def test_invalid_entity_type(self, context_items):
        graph = InMemoryGraphStore()
        dispatcher = _dispatcher(_planner(_analysis(node_call("Planet", "Mars"))), graph)
        plan = validate_plan(plan_text(["Create Mars"]))

        [record] = await dispatcher.execute_plan("Add Mars", plan, context_items)

        assert record.status is ActionStatus.FAILED
        [(kind, reason)] = record.failure_reasons()
        assert kind is ErrorKind.INVALID_ENTITY_TYPE
        assert "Planet" in reason
        assert "Person, Department" in reason
        assert graph.nodes == {}

    @pytest.mark.asyncio
    async def test_missing_argument(self, context_items):
        call = ToolCall(name="create_node", arguments={"type": "Person"})
        dispatcher = _dispatcher(_planner(_analysis(call)))
        plan = validate_plan(plan_text(["Create someone"]))

        [record] = await dispatcher.execute_plan("Add", plan, context_items)

        outcome = record.tool_call_outcome
        assert outcome.error_kind is ErrorKind.INVALID_TOOL_ARGUMENTS
        assert "name" in outcome.error

    @pytest.mark.asyncio
    async def test_unparseable_arguments(self, context_items):
        call = ToolCall(name="create_node", arguments="{type: Person")
        dispatcher = _dispatcher(_planner(_analysis(call)))
        plan = validate_plan(plan_text(["Create someone"]))

        [record] = await dispatcher.execute_plan("Add", plan, context_items)

        assert record.tool_call_outcome.error_kind is ErrorKind.INVALID_TOOL_ARGUMENTS
        assert record.tool_call_outcome.params == {}

    @pytest.mark.asyncio
    async def test_graph_write_failure(self, context_items):
        graph = InMemoryGraphStore()
        graph.create_node = AsyncMock(side_effect=RuntimeError("disk full"))
        dispatcher = _dispatcher(_planner(_analysis(node_call("Person", "Ada"))), graph)
        plan = validate_plan(plan_text(["Create Ada"]))

        [record] = await dispatcher.execute_plan("Add Ada", plan, context_items)

        assert record.tool_call_outcome.error_kind is ErrorKind.GRAPH_WRITE_FAILED
        assert "disk full" in record.tool_call_outcome.error
        assert len(dispatcher.registry) == 0


class TestCreateRelationship:
    """Tests for create_relationship dispatch."""

    @pytest.mark.asyncio
    async def test_resolves_created_name_and_context_id(self, context_items):
        graph = InMemoryGraphStore()
        planner = _planner(
            _analysis(node_call("Person", "Ada")),
            _analysis(relationship_call("ada", "dept-1", "works_in")),
        )
        dispatcher = _dispatcher(planner, graph)
        plan = validate_plan(plan_text(["Create Ada", "Ada works in Engineering"]))

        records = await dispatcher.execute_plan("Add Ada", plan, context_items)

        assert [r.status for r in records] == [ActionStatus.SUCCEEDED] * 2
        [rel] = graph.relationships.values()
        assert rel["from_id"] == records[0].dispatch_result.id
        assert rel["to_id"] == "dept-1"
        assert rel["relation_type"] == "works_in"

    @pytest.mark.asyncio
    async def test_context_name_resolves(self, context_items):
        graph = InMemoryGraphStore()
        planner = _planner(_analysis(relationship_call("Engineering", "dept-1", "part_of")))
        dispatcher = _dispatcher(planner, graph)
        plan = validate_plan(plan_text(["Link"]))

        [record] = await dispatcher.execute_plan("Link", plan, context_items)

        assert record.status is ActionStatus.SUCCEEDED
        [rel] = graph.relationships.values()
        assert rel["from_id"] == rel["to_id"] == "dept-1"

    @pytest.mark.asyncio
    async def test_unresolved_endpoints_are_named(self, context_items):
        graph = InMemoryGraphStore()
        planner = _planner(_analysis(relationship_call("Ada", "Babbage", "knows")))
        dispatcher = _dispatcher(planner, graph)
        plan = validate_plan(plan_text(["Ada knows Babbage"]))

        [record] = await dispatcher.execute_plan("Link", plan, context_items)

        [(kind, reason)] = record.failure_reasons()
        assert kind is ErrorKind.UNRESOLVED_ENTITY_REFERENCE
        assert "fromNodeId 'Ada'" in reason
        assert "toNodeId 'Babbage'" in reason
        assert graph.relationships == {}


class TestActionHandling:
    """Tests for non-create tool calls and analysis failures."""

    @pytest.mark.asyncio
    async def test_unknown_tool_is_ignored(self, context_items):
        planner = _planner(_analysis(ToolCall(name="drop_database", arguments={})))
        dispatcher = _dispatcher(planner)
        plan = validate_plan(plan_text(["Do something odd"]))

        [record] = await dispatcher.execute_plan("Odd", plan, context_items)

        assert record.outcomes == []
        assert record.status is ActionStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_known_tool_without_handler_is_pending(self, context_items):
        call = ToolCall(name="update_node", arguments={"id": "dept-1", "name": "Eng"})
        dispatcher = _dispatcher(_planner(_analysis(call)))
        plan = validate_plan(plan_text(["Rename"]))

        [record] = await dispatcher.execute_plan("Rename", plan, context_items)

        assert record.outcomes[0].status is OutcomeStatus.PENDING
        assert record.outcomes[0].params["name"] == "Eng"
        assert record.failure_reasons() == []

    @pytest.mark.asyncio
    async def test_analysis_failure_is_recorded(self, context_items):
        graph = InMemoryGraphStore()
        planner = _planner(RuntimeError("rate limited"), _analysis(node_call("Person", "Ada")))
        dispatcher = _dispatcher(planner, graph)
        plan = validate_plan(plan_text(["First", "Second"]))

        records = await dispatcher.execute_plan("Go", plan, context_items)

        assert records[0].error_kind is ErrorKind.ACTION_ANALYSIS_FAILED
        assert "rate limited" in records[0].error
        assert records[1].status is ActionStatus.SUCCEEDED
        assert len(graph.nodes) == 1

    @pytest.mark.asyncio
    async def test_previous_records_reach_the_planner(self, context_items):
        planner = _planner(_analysis(node_call("Person", "Ada")), _analysis())
        dispatcher = _dispatcher(planner)
        plan = validate_plan(plan_text(["First", "Second"]))

        await dispatcher.execute_plan("Go", plan, context_items)

        second = planner.analyze_action.call_args_list[1].kwargs
        assert [r.step_number for r in second["previous_records"]] == [1]
        assert [e.reference_name for e in second["created_entities"]] == ["Ada"]
        assert second["action"] == "Second"


class TestReplay:
    """Tests for resuming a run."""

    @pytest.mark.asyncio
    async def test_replay_does_not_write_twice(self, context_items):
        graph = InMemoryGraphStore()
        store = InMemoryStepStore()
        plan = validate_plan(plan_text(["Create Ada", "Ada works in Engineering"]))

        first = _dispatcher(
            _planner(
                _analysis(node_call("Person", "Ada")),
                _analysis(relationship_call("Ada", "dept-1", "works_in")),
            ),
            graph,
            store,
        )
        original = await first.execute_plan("Add Ada", plan, context_items)

        replay_planner = _planner()
        second = _dispatcher(replay_planner, graph, store)
        replayed = await second.execute_plan("Add Ada", plan, context_items)

        replay_planner.analyze_action.assert_not_called()
        assert len(graph.nodes) == 1
        assert len(graph.relationships) == 1
        assert replayed == original
        assert second.registry.snapshot() == first.registry.snapshot()


class TestSummary:
    """Tests for the summary step."""

    @pytest.mark.asyncio
    async def test_summary_includes_report(self, context_items):
        planner = _planner(_analysis(node_call("Planet", "Mars")))
        dispatcher = _dispatcher(planner)
        plan = validate_plan(plan_text(["Create Mars"]))
        records = await dispatcher.execute_plan("Add Mars", plan, context_items)

        summary = await dispatcher.summarize(plan, records)

        assert summary.startswith("Model summary.")
        assert "InvalidEntityType" in summary

    @pytest.mark.asyncio
    async def test_summary_falls_back_to_report(self, context_items):
        planner = _planner(_analysis(node_call("Person", "Ada")))
        planner.summarize = AsyncMock(side_effect=TimeoutError("slow"))
        dispatcher = _dispatcher(planner)
        plan = validate_plan(plan_text(["Create Ada"]))
        records = await dispatcher.execute_plan("Add Ada", plan, context_items)

        summary = await dispatcher.summarize(plan, records)

        assert summary.startswith("Execution report:")
        assert "Ada" in summary


class TestCostAttribution:
    """Tests for per-action cost telemetry."""

    @pytest.mark.asyncio
    async def test_analysis_usage_is_attributed_to_its_action(self, context_items):
        async def _analyze(**kwargs) -> ActionAnalysis:
            record_usage(
                CostUsageRecord(
                    provider="openai",
                    model="gpt-4o",
                    operation="complete",
                    action=current_action(),
                    total_tokens=50,
                    estimated_cost_usd=0.01,
                )
            )
            return _analysis()

        planner = _planner()
        planner.analyze_action = AsyncMock(side_effect=_analyze)
        dispatcher = _dispatcher(planner)
        plan = validate_plan(plan_text(["First", "Second"]))
        collector = CostCollector()

        with telemetry_collector(collector):
            await dispatcher.execute_plan("Go", plan, context_items)

        by_action = collector.summary().breakdown.by_action
        assert [(a.action, a.calls, a.total_tokens) for a in by_action] == [(1, 1, 50), (2, 1, 50)]
        assert current_action() is None
