"""
Run-scoped cost telemetry.

A CostCollector is bound to the running context with telemetry_collector().
Providers stamp each usage record with the current stage label and, inside
the execution stage, the number of the plan action being worked on. The
collector keeps running totals so a report can be taken at any point.

Usage:
    with telemetry_collector(collector):
        with telemetry_stage(STAGE_ACTION_ANALYSIS), telemetry_action(2):
            await llm.complete(...)   # record lands under stage and action 2
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar

from ontology_agent.config.pricing import PRICING_VERSION
from ontology_agent.types.results import (
    ActionCostBreakdown,
    CostBreakdown,
    CostDebugReport,
    CostUsageRecord,
    StageCostBreakdown,
)

STAGE_EMBEDDING = "embedding"
STAGE_RETRIEVAL = "retrieval"
STAGE_PLANNING = "planning"
STAGE_ACTION_ANALYSIS = "action_analysis"
STAGE_SUMMARY = "summary"

_collector: ContextVar[CostCollector | None] = ContextVar("ontology_agent_collector", default=None)
_stage: ContextVar[str] = ContextVar("ontology_agent_stage", default="unknown")
_action: ContextVar[int | None] = ContextVar("ontology_agent_action", default=None)


class CostCollector:
    """Running usage totals for one agent run, by stage and by plan action."""

    def __init__(self, *, warn_threshold_usd: float | None = None) -> None:
        self._warn_threshold_usd = warn_threshold_usd
        self._records: list[CostUsageRecord] = []
        self._totals = CostBreakdown()
        self._stages: dict[str, StageCostBreakdown] = {}
        self._actions: dict[int, ActionCostBreakdown] = {}
        self._unpriced: set[tuple[str, str]] = set()

    def add(self, record: CostUsageRecord) -> None:
        self._records.append(record)

        totals = self._totals
        totals.total_calls += 1
        totals.total_input_tokens += record.input_tokens
        totals.total_output_tokens += record.output_tokens
        totals.total_tokens += record.total_tokens
        totals.total_estimated_cost_usd += record.estimated_cost_usd
        totals.total_latency_ms += record.latency_ms

        stage = self._stages.get(record.stage)
        if stage is None:
            stage = self._stages[record.stage] = StageCostBreakdown(stage=record.stage)
        stage.calls += 1
        stage.input_tokens += record.input_tokens
        stage.output_tokens += record.output_tokens
        stage.total_tokens += record.total_tokens
        stage.estimated_cost_usd += record.estimated_cost_usd
        stage.total_latency_ms += record.latency_ms

        if record.action is not None:
            action = self._actions.get(record.action)
            if action is None:
                action = self._actions[record.action] = ActionCostBreakdown(action=record.action)
            action.calls += 1
            action.total_tokens += record.total_tokens
            action.estimated_cost_usd += record.estimated_cost_usd

        if record.metadata.get("pricing_found") is False:
            self._unpriced.add((record.model, record.stage))

    @property
    def records(self) -> list[CostUsageRecord]:
        return list(self._records)

    def summary(self) -> CostDebugReport:
        """Report of everything recorded so far."""
        warnings = [
            f"Missing pricing for model '{model}' in stage '{stage}'. "
            "Cost shown as 0.0 for those calls."
            for model, stage in sorted(self._unpriced)
        ]
        total_cost = self._totals.total_estimated_cost_usd
        if self._warn_threshold_usd is not None and total_cost >= self._warn_threshold_usd:
            warnings.append(
                f"Estimated run cost ${total_cost:.6f} exceeded threshold "
                f"${self._warn_threshold_usd:.6f}."
            )

        breakdown = self._totals.model_copy(
            update={
                "by_stage": sorted(
                    (s.model_copy() for s in self._stages.values()),
                    key=lambda s: s.estimated_cost_usd,
                    reverse=True,
                ),
                "by_action": [self._actions[n].model_copy() for n in sorted(self._actions)],
            }
        )
        return CostDebugReport(
            enabled=True,
            pricing_version=PRICING_VERSION,
            breakdown=breakdown,
            warnings=warnings,
        )


@contextmanager
def telemetry_collector(collector: CostCollector | None):
    """Bind the collector that provider calls report to."""
    token = _collector.set(collector)
    try:
        yield
    finally:
        _collector.reset(token)


@contextmanager
def telemetry_stage(stage: str):
    """Label provider calls with a pipeline stage."""
    token = _stage.set(stage)
    try:
        yield
    finally:
        _stage.reset(token)


@contextmanager
def telemetry_action(step_number: int):
    """Attribute provider calls to one plan action."""
    token = _action.set(step_number)
    try:
        yield
    finally:
        _action.reset(token)


def current_stage() -> str:
    return _stage.get()


def current_action() -> int | None:
    return _action.get()


def record_usage(record: CostUsageRecord) -> None:
    """Hand a record to the bound collector; no-op when telemetry is off."""
    collector = _collector.get()
    if collector is not None:
        collector.add(record)
