"""
Execution Report

Deterministic, model-independent account of a run's actions. Appended to
every summary so failures are always enumerated with their reasons.

Example:
    Execution report:
    Completed:
    - [1] Create a Person node for Ada Lovelace (create_node: Ada Lovelace)
    Failed:
    - [2] Connect Ada to Babbage: UnresolvedEntityReference: Could not resolve toNodeId 'Babbage'
    Pending future implementation:
    - [3] Search for related work (vector_search)
    Not executed:
    - none
"""

from __future__ import annotations

from ontology_agent.types.execution import (
    ActionStatus,
    DispatchResult,
    ExecutionRecord,
    OutcomeStatus,
)

REPORT_HEADER = "Execution report:"


def _describe_result(result: DispatchResult) -> str:
    if result.name is not None:
        return f"{result.tool}: {result.name}"
    return f"{result.tool}: {result.from_id} -[{result.relation_type}]-> {result.to_id}"


def build_execution_report(records: list[ExecutionRecord]) -> str:
    """Render completed, failed, pending and not-executed actions."""
    completed: list[str] = []
    failed: list[str] = []
    pending: list[str] = []
    not_executed: list[str] = []

    for record in records:
        label = f"[{record.step_number}] {record.action}"
        status = record.status

        # Writes that landed are reported even when a sibling call failed
        done = ", ".join(
            _describe_result(o.result) for o in record.outcomes if o.result is not None
        )
        if done:
            completed.append(f"{label} ({done})")
        if status is ActionStatus.FAILED:
            reasons = "; ".join(
                f"{kind.value}: {reason}" for kind, reason in record.failure_reasons()
            )
            failed.append(f"{label}: {reasons}")

        pending_tools = [o.tool for o in record.outcomes if o.status is OutcomeStatus.PENDING]
        if pending_tools:
            pending.append(f"{label} ({', '.join(pending_tools)})")
        elif status is ActionStatus.SKIPPED:
            not_executed.append(label)

    lines = [REPORT_HEADER]
    for title, entries in (
        ("Completed:", completed),
        ("Failed:", failed),
        ("Pending future implementation:", pending),
        ("Not executed:", not_executed),
    ):
        lines.append(title)
        lines.extend(f"- {entry}" for entry in entries or ["none"])
    return "\n".join(lines)


def compose_summary(model_text: str, records: list[ExecutionRecord]) -> str:
    """Model summary (if any) followed by the execution report."""
    report = build_execution_report(records)
    text = (model_text or "").strip()
    return f"{text}\n\n{report}" if text else report
