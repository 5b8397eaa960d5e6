"""
Agent Orchestrator

Runs the complete agent pipeline for one request:
    1. Embedding:   prompt -> query vector              (step "generate-embedding")
    2. Retrieval:   vector -> context snapshot          (step "query-context")
    3. Planning:    prompt + context -> raw plan text   (step "generate-action-plan")
    4. Validation:  raw text -> Plan                    (step "validate-planning-response")
    5. Execution:   one record per proposed action      (steps "analyze-action-{n}", ...)
    6. Summary:     model summary + execution report    (step "generate-summary")

Every stage is a durable step: re-running with the same run_id against the
same step store resumes after the last completed step without repeating
side effects.

Fatal to the run (raised):
    EmbeddingError, RetrievalError, PlanValidationError, RunCancelledError
Recorded per action (never raised):
    InvalidEntityType, UnresolvedEntityReference, InvalidToolArguments,
    GraphWriteFailed, ActionAnalysisFailed
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import TYPE_CHECKING

from ontology_agent.agent.dispatcher import ToolDispatcher
from ontology_agent.agent.embedding import PromptEmbedder
from ontology_agent.agent.notifications import NotificationDispatcher, RunNotifier
from ontology_agent.agent.planner import PlanGenerator
from ontology_agent.agent.retrieval import ContextLoader
from ontology_agent.agent.steps import StepExecutor
from ontology_agent.agent.validator import PlanValidator
from ontology_agent.errors import EmbeddingError, PlanValidationError, RetrievalError
from ontology_agent.storage.memory import InMemoryStepStore
from ontology_agent.types.context import ContextItem, ContextKind
from ontology_agent.types.execution import ExecutionRecord
from ontology_agent.types.notifications import NotificationType
from ontology_agent.types.plan import Plan
from ontology_agent.types.results import AgentRunResult
from ontology_agent.utils.cost_telemetry import (
    STAGE_ACTION_ANALYSIS,
    STAGE_EMBEDDING,
    STAGE_PLANNING,
    STAGE_RETRIEVAL,
    STAGE_SUMMARY,
    CostCollector,
    telemetry_collector,
    telemetry_stage,
)

if TYPE_CHECKING:
    from ontology_agent.config.settings import AgentConfig
    from ontology_agent.providers.base import EmbeddingProvider, LLMProvider
    from ontology_agent.storage.base import ContextRetriever, GraphStore, StepStore

logger = logging.getLogger(__name__)


class AgentOrchestrator:
    """
    Agent pipeline over injected capabilities.

    Runs are reentrant: every run gets its own step executor, registry,
    notifier and cost collector. Nothing mutable is shared between runs.

    Args:
        embeddings: Prompt embedding provider
        retriever: Vector index of context items
        llm: Provider for planning and the summary
        graph_store: Where created nodes and relationships go
        step_store: Durable step results (in-memory by default)
        action_llm: Provider for per-action analysis (defaults to llm)
        notifications: Delivery policy (None disables notifications)
        config: Tuning knobs (top_k, temperatures, dimensions, cost threshold)
    """

    def __init__(
        self,
        *,
        embeddings: "EmbeddingProvider",
        retriever: "ContextRetriever",
        llm: "LLMProvider",
        graph_store: "GraphStore",
        step_store: "StepStore | None" = None,
        action_llm: "LLMProvider | None" = None,
        notifications: NotificationDispatcher | None = None,
        config: "AgentConfig | None" = None,
    ) -> None:
        self.graph_store = graph_store
        self.step_store = step_store or InMemoryStepStore()
        self.notifications = notifications
        self._config = config

        self.embedder = PromptEmbedder(
            embeddings,
            dimensions=config.embedding_dimensions if config else None,
        )
        self.context_loader = ContextLoader(
            retriever,
            top_k=config.context_top_k if config else 25,
        )
        self.planner = PlanGenerator(llm, action_llm=action_llm, config=config)
        self.validator = PlanValidator()

    async def run(
        self,
        prompt: str,
        allowed_entity_types: list[str],
        context_filter: list[ContextKind] | None = None,
        *,
        run_id: str | None = None,
        consumer_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
        cost_debug: bool = False,
    ) -> AgentRunResult:
        """
        Execute the pipeline.

        Args:
            prompt: Natural-language request
            allowed_entity_types: Node types create_node may use
            context_filter: Restrict retrieval to these kinds (None = all)
            run_id: Reuse to resume a run; a new id is generated if None
            consumer_id: UI consumer for notifications (None = silent)
            cancel_event: Set to stop the run before its next step
            cost_debug: Attach a cost report to the result

        Returns:
            AgentRunResult with plan, execution records, summary and timing

        Raises:
            EmbeddingError, RetrievalError: Transient; the run may be retried
            PlanValidationError: The model produced an invalid plan
            RunCancelledError: cancel_event was set
        """
        run_id = run_id or str(uuid.uuid4())
        collector: CostCollector | None = None
        if cost_debug:
            threshold = self._config.cost_debug_warn_threshold_usd if self._config else None
            collector = CostCollector(warn_threshold_usd=threshold)

        steps = StepExecutor(self.step_store, run_id, cancel_event=cancel_event)
        notifier = RunNotifier(self.notifications, steps, consumer_id)
        logger.info(f"[{run_id}] Starting agent run")

        with telemetry_collector(collector):
            try:
                result = await self._run(
                    run_id,
                    prompt,
                    list(allowed_entity_types),
                    context_filter,
                    steps,
                    notifier,
                )
            finally:
                await steps.drain()

        if collector is not None:
            result.cost = collector.summary()
        logger.info(
            f"[{run_id}] Finished: {len(result.execution_records)} actions, "
            f"{len(result.failed_records)} failed, {result.total_time_ms}ms"
        )
        return result

    async def _run(
        self,
        run_id: str,
        prompt: str,
        entity_types: list[str],
        context_filter: list[ContextKind] | None,
        steps: StepExecutor,
        notifier: RunNotifier,
    ) -> AgentRunResult:
        timing: dict[str, int] = {}

        # Phase 1: Embedding
        start = time.perf_counter_ns()
        with telemetry_stage(STAGE_EMBEDDING):
            try:
                vector = await steps.run(
                    "generate-embedding",
                    lambda: self.embedder.embed(prompt),
                    result_type=list[float],
                )
            except EmbeddingError as e:
                await self._notify_fatal("embedding-failed", e, notifier)
                raise
        timing["embedding"] = (time.perf_counter_ns() - start) // 1_000_000

        # Phase 2: Retrieval
        start = time.perf_counter_ns()
        with telemetry_stage(STAGE_RETRIEVAL):
            try:
                context = await steps.run(
                    "query-context",
                    lambda: self.context_loader.load(vector, context_filter),
                    result_type=list[ContextItem],
                )
            except RetrievalError as e:
                await self._notify_fatal("retrieval-failed", e, notifier)
                raise
        timing["retrieval"] = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(f"[{run_id}] Retrieval: {len(context)} context items, {timing['retrieval']}ms")

        # Phase 3: Planning
        start = time.perf_counter_ns()
        with telemetry_stage(STAGE_PLANNING):
            raw_plan = await steps.run(
                "generate-action-plan",
                lambda: self.planner.generate_plan(prompt, context, entity_types),
                result_type=str,
            )
            plan = await self._validate(raw_plan, steps, notifier)
        timing["planning"] = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(
            f"[{run_id}] Planning: {plan.intent.value}, "
            f"{len(plan.proposed_actions)} actions, {timing['planning']}ms"
        )

        # Phase 4: Execution
        dispatcher = ToolDispatcher(
            self.graph_store,
            self.planner,
            steps,
            entity_types=entity_types,
            notifier=notifier,
        )
        start = time.perf_counter_ns()
        with telemetry_stage(STAGE_ACTION_ANALYSIS):
            records = await dispatcher.execute_plan(prompt, plan, context)
        timing["execution"] = (time.perf_counter_ns() - start) // 1_000_000
        logger.info(f"[{run_id}] Execution: {len(records)} actions, {timing['execution']}ms")

        # Phase 5: Summary
        start = time.perf_counter_ns()
        with telemetry_stage(STAGE_SUMMARY):
            summary = await dispatcher.summarize(plan, records)
            await notifier.notify(
                "summary",
                NotificationType.COMPLETE,
                summary,
                data=self._summary_data(records),
            )
        timing["summary"] = (time.perf_counter_ns() - start) // 1_000_000

        return AgentRunResult(
            run_id=run_id,
            prompt=prompt,
            plan=plan,
            execution_records=records,
            summary=summary,
            notifications=list(notifier.outcomes),
            timing=timing,
        )

    async def _validate(
        self,
        raw_plan: str,
        steps: StepExecutor,
        notifier: RunNotifier,
    ) -> Plan:
        async def _check() -> Plan:
            return self.validator.validate(raw_plan)

        try:
            return await steps.run("validate-planning-response", _check, result_type=Plan)
        except PlanValidationError as e:
            await notifier.notify(
                "invalid-plan",
                NotificationType.ERROR,
                f"Invalid planning response format: {e.kind.value}: {e.detail}",
            )
            raise

    @staticmethod
    async def _notify_fatal(
        suffix: str,
        error: EmbeddingError | RetrievalError,
        notifier: RunNotifier,
    ) -> None:
        await notifier.notify(
            suffix,
            NotificationType.ERROR,
            f"Agent run failed: {error.kind.value}: {error}",
        )

    @staticmethod
    def _summary_data(records: list[ExecutionRecord]) -> dict[str, int]:
        return {
            "actions": len(records),
            "failed": sum(1 for r in records if r.failure_reasons()),
            "created": len(records[-1].created_entities_snapshot) if records else 0,
        }
