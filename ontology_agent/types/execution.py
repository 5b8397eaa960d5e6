"""
Execution Types

Tool calls emitted by the language model, the tagged union of their validated
arguments, the created-entity registry entries, and the append-only
ExecutionRecord log.

Tool Arguments:
    The model emits duck-typed argument blobs. They are validated at dispatch
    time (not at the LLM boundary) into ToolArguments, discriminated on `tool`:
        - CreateNodeArgs: type, name, description
        - CreateRelationshipArgs: fromNodeId, toNodeId, relationType
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ontology_agent.errors import ErrorKind

# -----------------------------------------------------------------------------
# LLM Output
# -----------------------------------------------------------------------------


class ToolCall(BaseModel):
    """
    A structured tool request from the language model.

    `arguments` is either already decoded or the raw JSON string the model
    produced (kept verbatim when it could not be parsed upstream).
    """

    name: str
    arguments: dict[str, Any] | str = Field(default_factory=dict)
    id: str | None = None


class Completion(BaseModel):
    """One chat completion: free text plus any tool calls."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ActionAnalysis(BaseModel):
    """Result of analyzing one proposed action."""

    analysis: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Tool Arguments (tagged union)
# -----------------------------------------------------------------------------


class CreateNodeArgs(BaseModel):
    """Arguments of create_node."""

    model_config = ConfigDict(frozen=True)

    tool: Literal["create_node"] = "create_node"
    type: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""


class CreateRelationshipArgs(BaseModel):
    """Arguments of create_relationship. Endpoints may be names or ids."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tool: Literal["create_relationship"] = "create_relationship"
    from_node_id: str = Field(alias="fromNodeId", min_length=1)
    to_node_id: str = Field(alias="toNodeId", min_length=1)
    relation_type: str = Field(alias="relationType", min_length=1)


ToolArguments = Annotated[
    Union[CreateNodeArgs, CreateRelationshipArgs],
    Field(discriminator="tool"),
]

# -----------------------------------------------------------------------------
# Entity Identity
# -----------------------------------------------------------------------------


class CreatedEntity(BaseModel):
    """
    An entity this run created.

    Attributes:
        reference_name: Name used at creation time (case-insensitive key)
        id: Persisted identity
        entity_type: Node type
    """

    model_config = ConfigDict(frozen=True)

    reference_name: str
    id: str
    entity_type: str


class EntityRef(BaseModel):
    """A resolved entity reference."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    entity_type: str | None = None
    source: Literal["created", "context"]


# -----------------------------------------------------------------------------
# Execution Log
# -----------------------------------------------------------------------------


class OutcomeStatus(str, Enum):
    """Result of a single tool call."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PENDING = "pending"  # accepted tool without a handler


class ActionStatus(str, Enum):
    """Aggregate result of one proposed action."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class DispatchResult(BaseModel):
    """What the graph store returned for an executed tool call."""

    tool: str
    id: str
    name: str | None = None
    entity_type: str | None = None
    from_id: str | None = None
    to_id: str | None = None
    relation_type: str | None = None


class ToolCallOutcome(BaseModel):
    """
    Outcome of one tool call within an action.

    Attributes:
        tool: Tool name as emitted by the model
        status: succeeded / failed / pending
        params: Parsed arguments (empty if they could not be parsed)
        error_kind: Failure category (failed only)
        error: Human-readable failure reason (failed only)
        result: Graph store result (succeeded only)
    """

    tool: str
    status: OutcomeStatus
    params: dict[str, Any] = Field(default_factory=dict)
    error_kind: ErrorKind | None = None
    error: str | None = None
    result: DispatchResult | None = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED


class ExecutionRecord(BaseModel):
    """
    One entry per proposed action, in plan order.

    A failed action is a recorded failure, not a pipeline abort.
    """

    step_number: int
    action: str
    analysis_output: str = ""
    outcomes: list[ToolCallOutcome] = Field(default_factory=list)
    error_kind: ErrorKind | None = None
    error: str | None = None
    created_entities_snapshot: list[CreatedEntity] = Field(default_factory=list)

    @property
    def status(self) -> ActionStatus:
        if self.error_kind is not None:
            return ActionStatus.FAILED
        if any(o.status is OutcomeStatus.FAILED for o in self.outcomes):
            return ActionStatus.FAILED
        if any(o.success for o in self.outcomes):
            return ActionStatus.SUCCEEDED
        return ActionStatus.SKIPPED

    @property
    def tool_call_outcome(self) -> ToolCallOutcome | None:
        """First failed outcome, else the first outcome."""
        for outcome in self.outcomes:
            if outcome.status is OutcomeStatus.FAILED:
                return outcome
        return self.outcomes[0] if self.outcomes else None

    @property
    def dispatch_result(self) -> DispatchResult | None:
        """First graph store result of this action."""
        for outcome in self.outcomes:
            if outcome.result is not None:
                return outcome.result
        return None

    def failure_reasons(self) -> list[tuple[ErrorKind, str]]:
        """All (kind, reason) pairs that made this action fail."""
        reasons: list[tuple[ErrorKind, str]] = []
        if self.error_kind is not None:
            reasons.append((self.error_kind, self.error or ""))
        for outcome in self.outcomes:
            if outcome.status is OutcomeStatus.FAILED and outcome.error_kind is not None:
                reasons.append((outcome.error_kind, outcome.error or ""))
        return reasons
