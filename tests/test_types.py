"""Tests for plan, context and execution types."""

import pytest
from pydantic import TypeAdapter, ValidationError

from ontology_agent.errors import ErrorKind, PlanValidationError
from ontology_agent.types.context import ContextItem, ContextKind
from ontology_agent.types.execution import (
    ActionStatus,
    CreateNodeArgs,
    CreateRelationshipArgs,
    ExecutionRecord,
    OutcomeStatus,
    ToolArguments,
    ToolCallOutcome,
)
from ontology_agent.types.plan import Plan


class TestPlan:
    """Tests for Plan type."""

    def test_plan_is_frozen(self):
        plan = Plan(
            intent="QUERY",
            analysis="a",
            contextObservations="c",
            proposedActions=["x"],
            requiredTools=["vector_search"],
        )
        with pytest.raises(ValidationError):
            plan.analysis = "changed"

    def test_plan_rejects_unknown_tool(self):
        with pytest.raises(ValidationError):
            Plan(
                intent="QUERY",
                analysis="a",
                contextObservations="c",
                proposedActions=[],
                requiredTools=["delete_everything"],
            )


class TestContextItem:
    """Tests for ContextItem type."""

    def test_from_node_metadata(self):
        item = ContextItem.from_metadata(
            {"type": "node", "id": "n1", "content": "Acme", "name": "Acme", "nodeType": "Company"},
            score=1.3,
        )
        assert item.kind is ContextKind.NODE
        assert item.score == 1.0
        assert item.name == "Acme"
        assert item.entity_type == "Company"

    def test_from_relationship_metadata(self):
        item = ContextItem.from_metadata(
            {
                "type": "RELATIONSHIP",
                "id": "r1",
                "fromNodeId": "n1",
                "toNodeId": "n2",
                "relationType": "owns",
                "fromNodeName": None,
            },
            score=0.4,
        )
        assert item.attributes == {"fromId": "n1", "toId": "n2", "relationType": "owns"}
        assert item.name is None

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            ContextItem(kind=ContextKind.NOTE, id="x", score=1.5)

    def test_prompt_dict(self):
        item = ContextItem(
            kind=ContextKind.NODE,
            id="n1",
            score=0.123456,
            content="Acme",
            attributes={"name": "Acme", "type": "Company"},
        )
        assert item.to_prompt_dict() == {
            "type": "NODE",
            "id": "n1",
            "score": 0.1235,
            "content": "Acme",
            "name": "Acme",
            "nodeType": "Company",
        }


class TestToolArguments:
    """Tests for the tagged union of tool arguments."""

    adapter = TypeAdapter(ToolArguments)

    def test_node_args(self):
        args = self.adapter.validate_python({"tool": "create_node", "type": "Person", "name": "Ada"})
        assert isinstance(args, CreateNodeArgs)
        assert args.description == ""

    def test_relationship_args_by_alias(self):
        args = self.adapter.validate_python({
            "tool": "create_relationship",
            "fromNodeId": "a",
            "toNodeId": "b",
            "relationType": "knows",
        })
        assert isinstance(args, CreateRelationshipArgs)
        assert args.from_node_id == "a"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            self.adapter.validate_python({"tool": "create_node", "type": "Person", "name": ""})


class TestExecutionRecord:
    """Tests for derived record status."""

    def test_failure_reasons_cover_outcomes(self):
        record = ExecutionRecord(
            step_number=1,
            action="Link",
            outcomes=[
                ToolCallOutcome(
                    tool="create_relationship",
                    status=OutcomeStatus.FAILED,
                    error_kind=ErrorKind.UNRESOLVED_ENTITY_REFERENCE,
                    error="Could not resolve toNodeId 'B'",
                ),
            ],
        )
        assert record.status is ActionStatus.FAILED
        assert record.failure_reasons() == [
            (ErrorKind.UNRESOLVED_ENTITY_REFERENCE, "Could not resolve toNodeId 'B'")
        ]
        assert record.dispatch_result is None

    def test_no_outcomes_is_skipped(self):
        assert ExecutionRecord(step_number=1, action="Think").status is ActionStatus.SKIPPED


class TestErrors:
    """Tests for error types."""

    def test_plan_validation_error_kind_checked(self):
        with pytest.raises(ValueError):
            PlanValidationError(ErrorKind.GRAPH_WRITE_FAILED, "x", "raw")

    def test_raw_text_untruncated(self):
        raw = "x" * 10_000
        error = PlanValidationError(ErrorKind.MALFORMED_PLAN, "bad", raw)
        assert str(error).endswith(raw)
