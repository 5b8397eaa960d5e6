"""
Type Definitions

Pydantic models for all data structures.

Plan Models:
    - Plan, Intent, ToolName - Validated planning output

Context Models:
    - ContextItem, ContextKind - Snapshots retrieved from the vector index

Execution Models:
    - ToolCall, Completion, ActionAnalysis - Language model output
    - CreateNodeArgs, CreateRelationshipArgs, ToolArguments - Tagged tool arguments
    - CreatedEntity, EntityRef - Entity identity
    - ToolCallOutcome, ExecutionRecord, DispatchResult - Append-only execution log

Notification Models:
    - NotificationEvent, NotificationType, PublishAck, DeliveryOutcome

Result Models:
    - AgentRunResult, CostUsageRecord, CostDebugReport
"""

from ontology_agent.types.context import ContextItem, ContextKind
from ontology_agent.types.execution import (
    ActionAnalysis,
    ActionStatus,
    Completion,
    CreatedEntity,
    CreateNodeArgs,
    CreateRelationshipArgs,
    DispatchResult,
    EntityRef,
    ExecutionRecord,
    OutcomeStatus,
    ToolArguments,
    ToolCall,
    ToolCallOutcome,
)
from ontology_agent.types.notifications import (
    DeliveryOutcome,
    NotificationEvent,
    NotificationType,
    PublishAck,
)
from ontology_agent.types.plan import (
    DISPATCHABLE_TOOLS,
    TOOL_VOCABULARY,
    Intent,
    Plan,
    ToolName,
)
from ontology_agent.types.results import (
    ActionCostBreakdown,
    AgentRunResult,
    CostBreakdown,
    CostDebugReport,
    CostUsageRecord,
    StageCostBreakdown,
)

__all__ = [
    # Plan
    "Plan",
    "Intent",
    "ToolName",
    "TOOL_VOCABULARY",
    "DISPATCHABLE_TOOLS",
    # Context
    "ContextItem",
    "ContextKind",
    # Execution
    "ToolCall",
    "Completion",
    "ActionAnalysis",
    "CreateNodeArgs",
    "CreateRelationshipArgs",
    "ToolArguments",
    "CreatedEntity",
    "EntityRef",
    "OutcomeStatus",
    "ActionStatus",
    "DispatchResult",
    "ToolCallOutcome",
    "ExecutionRecord",
    # Notifications
    "NotificationEvent",
    "NotificationType",
    "PublishAck",
    "DeliveryOutcome",
    # Results
    "AgentRunResult",
    "CostUsageRecord",
    "StageCostBreakdown",
    "ActionCostBreakdown",
    "CostBreakdown",
    "CostDebugReport",
]
