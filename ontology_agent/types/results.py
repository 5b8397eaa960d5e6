"""
Result Types

Run Result:
    - AgentRunResult: Full audit trail of one pipeline run

Cost Telemetry Models:
    - CostUsageRecord: One provider call
    - StageCostBreakdown: Aggregate per pipeline stage
    - ActionCostBreakdown: Aggregate per plan action
    - CostBreakdown: Aggregate per run
    - CostDebugReport: Report attached to AgentRunResult
"""

from typing import Any

from pydantic import BaseModel, Field

from ontology_agent.types.execution import ActionStatus, CreatedEntity, ExecutionRecord
from ontology_agent.types.notifications import DeliveryOutcome
from ontology_agent.types.plan import Plan

# -----------------------------------------------------------------------------
# Cost Telemetry Models
# -----------------------------------------------------------------------------


class CostUsageRecord(BaseModel):
    """Usage and estimated cost of a single provider call."""

    provider: str
    model: str
    operation: str
    stage: str = "unknown"
    action: int | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0
    latency_ms: int = 0
    estimated: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)


class StageCostBreakdown(BaseModel):
    """Aggregated usage for one pipeline stage."""

    stage: str
    calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0
    total_latency_ms: int = 0


class ActionCostBreakdown(BaseModel):
    """Aggregated usage for one plan action (1-based step number)."""

    action: int
    calls: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0


class CostBreakdown(BaseModel):
    """Aggregated usage for a run."""

    total_calls: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_tokens: int = 0
    total_estimated_cost_usd: float = 0.0
    total_latency_ms: int = 0
    by_stage: list[StageCostBreakdown] = Field(default_factory=list)
    by_action: list[ActionCostBreakdown] = Field(default_factory=list)


class CostDebugReport(BaseModel):
    """Cost report for one run."""

    enabled: bool = False
    pricing_version: str | None = None
    breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    warnings: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Run Result
# -----------------------------------------------------------------------------


class AgentRunResult(BaseModel):
    """
    Result of AgentOrchestrator.run().

    Attributes:
        run_id: Durable run identifier (reuse it to resume)
        prompt: Original request
        plan: Validated plan
        execution_records: One record per proposed action, in plan order
        summary: Final summary, always ending with the execution report
        notifications: Outcomes of notifications sent during the run
        timing: Per-stage wall time in milliseconds
        cost: Provider usage report
    """

    run_id: str
    prompt: str
    plan: Plan
    execution_records: list[ExecutionRecord] = Field(default_factory=list)
    summary: str = ""
    notifications: list[DeliveryOutcome] = Field(default_factory=list)
    timing: dict[str, int] = Field(default_factory=dict)
    cost: CostDebugReport | None = None

    @property
    def created_entities(self) -> list[CreatedEntity]:
        """Registry state after the last action."""
        if not self.execution_records:
            return []
        return list(self.execution_records[-1].created_entities_snapshot)

    @property
    def failed_records(self) -> list[ExecutionRecord]:
        return [r for r in self.execution_records if r.status is ActionStatus.FAILED]

    @property
    def total_time_ms(self) -> int:
        """Total run time in milliseconds."""
        return sum(self.timing.values())
