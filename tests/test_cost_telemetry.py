"""Tests for run-scoped cost telemetry aggregation."""

from ontology_agent.config.pricing import estimate_embedding_cost_usd, estimate_llm_cost_usd
from ontology_agent.types.results import CostUsageRecord
from ontology_agent.utils.cost_telemetry import (
    STAGE_PLANNING,
    CostCollector,
    current_action,
    current_stage,
    record_usage,
    telemetry_action,
    telemetry_collector,
    telemetry_stage,
)


def _record(stage: str, cost: float, **kwargs) -> CostUsageRecord:
    return CostUsageRecord(
        provider="openai",
        model=kwargs.pop("model", "gpt-4o"),
        operation="generate",
        stage=stage,
        input_tokens=100,
        output_tokens=20,
        total_tokens=120,
        estimated_cost_usd=cost,
        latency_ms=15,
        **kwargs,
    )


def test_cost_collector_aggregates_by_stage() -> None:
    """Collector should aggregate totals and per-stage metrics."""
    collector = CostCollector()
    collector.add(_record("planning", 0.002))
    collector.add(_record("action_analysis", 0.001))
    collector.add(_record("action_analysis", 0.001))

    report = collector.summary()
    assert report.enabled is True
    assert report.breakdown.total_calls == 3
    assert report.breakdown.total_tokens == 360
    assert report.breakdown.total_input_tokens == 300
    assert len(report.breakdown.by_stage) == 2
    assert report.breakdown.by_stage[0].stage == "planning"
    assert report.breakdown.by_stage[1].calls == 2


def test_cost_collector_warns_on_threshold() -> None:
    """Collector should include warning when threshold is exceeded."""
    collector = CostCollector(warn_threshold_usd=0.0005)
    collector.add(_record("summary", 0.001))

    report = collector.summary()
    assert report.warnings
    assert "exceeded threshold" in report.warnings[0]


def test_cost_collector_warns_on_missing_pricing() -> None:
    """Unpriced models are reported once."""
    collector = CostCollector()
    for _ in range(2):
        collector.add(_record("planning", 0.0, model="mystery", metadata={"pricing_found": False}))

    assert len(collector.summary().warnings) == 1


def test_record_usage_requires_active_collector() -> None:
    """Records go to the collector bound in the current context only."""
    collector = CostCollector()
    record_usage(_record("planning", 0.001))

    with telemetry_collector(collector):
        with telemetry_stage(STAGE_PLANNING):
            assert current_stage() == "planning"
            record_usage(_record(current_stage(), 0.001))
        assert current_stage() == "unknown"

    record_usage(_record("planning", 0.001))
    assert len(collector.records) == 1


def test_cost_collector_aggregates_by_action() -> None:
    """Records stamped with a plan action are totalled per action, in plan order."""
    collector = CostCollector()
    collector.add(_record("action_analysis", 0.003, action=2))
    collector.add(_record("action_analysis", 0.001, action=1))
    collector.add(_record("action_analysis", 0.002, action=2))
    collector.add(_record("summary", 0.004))

    breakdown = collector.summary().breakdown
    assert [a.action for a in breakdown.by_action] == [1, 2]
    assert breakdown.by_action[1].calls == 2
    assert breakdown.by_action[1].total_tokens == 240
    assert abs(breakdown.by_action[1].estimated_cost_usd - 0.005) < 1e-12
    assert breakdown.total_calls == 4


def test_summary_is_a_snapshot() -> None:
    """Later records do not change an earlier report."""
    collector = CostCollector()
    collector.add(_record("planning", 0.001, action=1))
    report = collector.summary()
    collector.add(_record("planning", 0.001, action=1))

    assert report.breakdown.total_calls == 1
    assert report.breakdown.by_stage[0].calls == 1
    assert report.breakdown.by_action[0].calls == 1


def test_telemetry_action_scope() -> None:
    """The action label is set only inside its block."""
    assert current_action() is None
    with telemetry_action(3):
        assert current_action() == 3
        with telemetry_action(4):
            assert current_action() == 4
        assert current_action() == 3
    assert current_action() is None


def test_pricing_estimates() -> None:
    """Known models are priced; unknown ones report pricing_found=False."""
    cost, found = estimate_llm_cost_usd("gpt-4o", input_tokens=1_000_000, output_tokens=0)
    assert found is True
    assert cost > 0

    cost, found = estimate_llm_cost_usd("mystery", input_tokens=10, output_tokens=10)
    assert (cost, found) == (0.0, False)

    cost, found = estimate_embedding_cost_usd("text-embedding-3-small", input_tokens=1000)
    assert found is True
