"""
Tool Dispatcher (Execution Stage)

Executes a validated plan one proposed action at a time.

Per action n (in plan order):
    1. Step "analyze-action-{n}": the model analyzes the action and may
       emit tool calls (create_node, create_relationship)
    2. For each tool call j:
        - unknown tool name                -> ignored
        - known tool without a handler     -> PENDING outcome
        - arguments not a valid object     -> InvalidToolArguments
        - create_node with disallowed type -> InvalidEntityType
        - create_relationship endpoint not
          resolvable                       -> UnresolvedEntityReference
        - otherwise the graph write runs as step "execute-action-{n}-call-{j}";
          a store exception                -> GraphWriteFailed
    3. An ExecutionRecord is appended whatever happened

A failed action never aborts the loop. Replaying a run replays the same
steps in the same order, so the created-entity registry is rebuilt
identically from the persisted graph-write results.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from ontology_agent.agent.reporting import compose_summary
from ontology_agent.agent.resolver import CreatedEntityRegistry, EntityResolver
from ontology_agent.errors import ErrorKind, RunCancelledError
from ontology_agent.types.execution import (
    ActionAnalysis,
    CreatedEntity,
    CreateNodeArgs,
    CreateRelationshipArgs,
    DispatchResult,
    ExecutionRecord,
    OutcomeStatus,
    ToolArguments,
    ToolCall,
    ToolCallOutcome,
)
from ontology_agent.types.notifications import NotificationType
from ontology_agent.types.plan import DISPATCHABLE_TOOLS, TOOL_VOCABULARY, ToolName
from ontology_agent.utils.cost_telemetry import telemetry_action

if TYPE_CHECKING:
    from ontology_agent.agent.notifications import RunNotifier
    from ontology_agent.agent.planner import PlanGenerator
    from ontology_agent.agent.steps import StepExecutor
    from ontology_agent.storage.base import GraphStore
    from ontology_agent.types.context import ContextItem
    from ontology_agent.types.plan import Plan

logger = logging.getLogger(__name__)

_TOOL_ARGUMENTS: TypeAdapter[ToolArguments] = TypeAdapter(ToolArguments)

_DISPATCHABLE_NAMES = frozenset(tool.value for tool in DISPATCHABLE_TOOLS)


def parse_arguments(call: ToolCall) -> dict[str, Any]:
    """
    Decode tool-call arguments into a mapping.

    Raises:
        ValueError: Not JSON, or not a JSON object
    """
    arguments = call.arguments
    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ValueError(f"arguments are not valid JSON: {e}") from e
    if not isinstance(arguments, dict):
        raise ValueError(f"arguments must be an object, got {type(arguments).__name__}")
    return arguments


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"] if p not in _DISPATCHABLE_NAMES)
        parts.append(f"{location or 'arguments'}: {err['msg']}")
    return "; ".join(parts)


def _failed(
    tool: str,
    params: dict[str, Any],
    kind: ErrorKind,
    message: str,
) -> ToolCallOutcome:
    return ToolCallOutcome(
        tool=tool,
        status=OutcomeStatus.FAILED,
        params=params,
        error_kind=kind,
        error=message,
    )


class ToolDispatcher:
    """
    Runs the proposed actions of a plan against a GraphStore.

    Args:
        graph_store: Where nodes and relationships are written
        planner: Supplies per-action analysis and the summary
        steps: The run's step executor
        entity_types: Allowed node types
        notifier: Optional per-run notifier
    """

    def __init__(
        self,
        graph_store: "GraphStore",
        planner: "PlanGenerator",
        steps: "StepExecutor",
        *,
        entity_types: list[str],
        notifier: "RunNotifier | None" = None,
    ) -> None:
        self.graph_store = graph_store
        self.planner = planner
        self.steps = steps
        self.entity_types = list(entity_types)
        self.notifier = notifier
        self.registry = CreatedEntityRegistry()

    async def execute_plan(
        self,
        prompt: str,
        plan: "Plan",
        context: list["ContextItem"],
    ) -> list[ExecutionRecord]:
        """Execute every proposed action in order. Never raises for per-action failures."""
        resolver = EntityResolver(self.registry, context)
        records: list[ExecutionRecord] = []

        for step_number, action in enumerate(plan.proposed_actions, start=1):
            record = await self.execute_action(
                step_number,
                action,
                prompt=prompt,
                plan=plan,
                context=context,
                resolver=resolver,
                previous_records=records,
            )
            records.append(record)
            if record.failure_reasons():
                kinds = ", ".join(kind.value for kind, _ in record.failure_reasons())
                logger.warning(f"Action {step_number} failed ({kinds}): {action}")

        return records

    async def execute_action(
        self,
        step_number: int,
        action: str,
        *,
        prompt: str,
        plan: "Plan",
        context: list["ContextItem"],
        resolver: EntityResolver,
        previous_records: list[ExecutionRecord],
    ) -> ExecutionRecord:
        """Analyze one action and dispatch its tool calls."""

        async def _analyze() -> ActionAnalysis:
            return await self.planner.analyze_action(
                prompt=prompt,
                plan=plan,
                action=action,
                context=context,
                entity_types=self.entity_types,
                previous_records=list(previous_records),
                created_entities=self.registry.snapshot(),
            )

        try:
            with telemetry_action(step_number):
                analysis = await self.steps.run(
                    f"analyze-action-{step_number}", _analyze, result_type=ActionAnalysis
                )
        except RunCancelledError:
            raise
        except Exception as e:
            message = f"Action analysis failed: {e}"
            await self._notify_failure(f"action-{step_number}", message)
            return ExecutionRecord(
                step_number=step_number,
                action=action,
                error_kind=ErrorKind.ACTION_ANALYSIS_FAILED,
                error=message,
                created_entities_snapshot=self.registry.snapshot(),
            )

        outcomes: list[ToolCallOutcome] = []
        for call_number, call in enumerate(analysis.tool_calls, start=1):
            outcome = await self._dispatch(step_number, call_number, call, resolver)
            if outcome is not None:
                outcomes.append(outcome)

        return ExecutionRecord(
            step_number=step_number,
            action=action,
            analysis_output=analysis.analysis,
            outcomes=outcomes,
            created_entities_snapshot=self.registry.snapshot(),
        )

    async def _dispatch(
        self,
        step_number: int,
        call_number: int,
        call: ToolCall,
        resolver: EntityResolver,
    ) -> ToolCallOutcome | None:
        tool = call.name
        if tool not in TOOL_VOCABULARY:
            logger.debug(f"Ignoring unknown tool call {tool!r} in action {step_number}")
            return None

        try:
            params = parse_arguments(call)
        except ValueError as e:
            outcome = _failed(tool, {}, ErrorKind.INVALID_TOOL_ARGUMENTS, f"{tool}: {e}")
            await self._notify_outcome(step_number, call_number, outcome)
            return outcome

        if tool not in _DISPATCHABLE_NAMES:
            logger.debug(f"Tool {tool} in action {step_number} is pending future implementation")
            return ToolCallOutcome(tool=tool, status=OutcomeStatus.PENDING, params=params)

        try:
            arguments = _TOOL_ARGUMENTS.validate_python({**params, "tool": tool})
        except ValidationError as e:
            outcome = _failed(
                tool,
                params,
                ErrorKind.INVALID_TOOL_ARGUMENTS,
                f"{tool}: {_format_validation_error(e)}",
            )
            await self._notify_outcome(step_number, call_number, outcome)
            return outcome

        step_name = f"execute-action-{step_number}-call-{call_number}"
        if isinstance(arguments, CreateNodeArgs):
            outcome = await self._create_node(step_name, arguments, params)
        else:
            outcome = await self._create_relationship(step_name, arguments, params, resolver)

        await self._notify_outcome(step_number, call_number, outcome)
        return outcome

    async def _create_node(
        self,
        step_name: str,
        args: CreateNodeArgs,
        params: dict[str, Any],
    ) -> ToolCallOutcome:
        tool = ToolName.CREATE_NODE.value
        if args.type not in self.entity_types:
            return _failed(
                tool,
                params,
                ErrorKind.INVALID_ENTITY_TYPE,
                f'Invalid node type "{args.type}". Allowed types are: '
                f"{', '.join(self.entity_types)}",
            )

        async def _write() -> DispatchResult:
            node_id = await self.graph_store.create_node(args.type, args.name, args.description)
            return DispatchResult(
                tool=tool, id=node_id, name=args.name, entity_type=args.type
            )

        try:
            result = await self.steps.run(step_name, _write, result_type=DispatchResult)
        except RunCancelledError:
            raise
        except Exception as e:
            return _failed(tool, params, ErrorKind.GRAPH_WRITE_FAILED, f"Failed to create node: {e}")

        self.registry.add(
            CreatedEntity(reference_name=args.name, id=result.id, entity_type=args.type)
        )
        return ToolCallOutcome(
            tool=tool, status=OutcomeStatus.SUCCEEDED, params=params, result=result
        )

    async def _create_relationship(
        self,
        step_name: str,
        args: CreateRelationshipArgs,
        params: dict[str, Any],
        resolver: EntityResolver,
    ) -> ToolCallOutcome:
        tool = ToolName.CREATE_RELATIONSHIP.value
        source = resolver.resolve(args.from_node_id)
        target = resolver.resolve(args.to_node_id)

        unresolved = []
        if source is None:
            unresolved.append(f"fromNodeId {args.from_node_id!r}")
        if target is None:
            unresolved.append(f"toNodeId {args.to_node_id!r}")
        if source is None or target is None:
            return _failed(
                tool,
                params,
                ErrorKind.UNRESOLVED_ENTITY_REFERENCE,
                f"Could not resolve {' and '.join(unresolved)}",
            )

        async def _write() -> DispatchResult:
            rel_id = await self.graph_store.create_relationship(
                source.id, target.id, args.relation_type
            )
            return DispatchResult(
                tool=tool,
                id=rel_id,
                from_id=source.id,
                to_id=target.id,
                relation_type=args.relation_type,
            )

        try:
            result = await self.steps.run(step_name, _write, result_type=DispatchResult)
        except RunCancelledError:
            raise
        except Exception as e:
            return _failed(
                tool, params, ErrorKind.GRAPH_WRITE_FAILED, f"Failed to create relationship: {e}"
            )

        return ToolCallOutcome(
            tool=tool, status=OutcomeStatus.SUCCEEDED, params=params, result=result
        )

    async def summarize(self, plan: "Plan", records: list[ExecutionRecord]) -> str:
        """
        Step "generate-summary": model summary plus the execution report.

        Falls back to the report alone when the model call fails.
        """

        async def _summarize() -> str:
            try:
                text = await self.planner.summarize(plan, records)
            except Exception as e:
                logger.warning(f"Summary generation failed, using execution report only: {e}")
                text = ""
            return compose_summary(text, records)

        return await self.steps.run("generate-summary", _summarize, result_type=str)

    async def _notify_outcome(
        self,
        step_number: int,
        call_number: int,
        outcome: ToolCallOutcome,
    ) -> None:
        if self.notifier is None:
            return
        suffix = f"action-{step_number}-call-{call_number}"
        if outcome.status is OutcomeStatus.SUCCEEDED and outcome.result is not None:
            result = outcome.result
            if result.tool == ToolName.CREATE_NODE.value:
                message = f'Created new {result.entity_type} node: "{result.name}"'
            else:
                message = f'Created new relationship: "{result.relation_type}" between nodes'
            await self.notifier.notify(
                suffix,
                NotificationType.PROGRESS,
                message,
                data=result.model_dump(exclude_none=True),
            )
        elif outcome.status is OutcomeStatus.FAILED:
            await self._notify_failure(suffix, f"{outcome.error_kind.value}: {outcome.error}")

    async def _notify_failure(self, suffix: str, message: str) -> None:
        if self.notifier is None:
            return
        await self.notifier.notify(suffix, NotificationType.ERROR, message)
