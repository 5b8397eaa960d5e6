"""
Error Taxonomy

Every failure the agent pipeline can produce is named by an ErrorKind.

Fatal to a run (propagate out of AgentOrchestrator.run):
    - EmbeddingError, RetrievalError: transient, the caller may retry the run
    - MalformedPlan, InvalidIntent, MissingField, InvalidToolFormat, UnknownTool:
      plan validation failures, always carry the raw LLM text

Recorded per action (never abort the run):
    - InvalidEntityType, UnresolvedEntityReference, InvalidToolArguments,
      GraphWriteFailed, ActionAnalysisFailed

Logged only:
    - NotificationUndeliverable
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Named failure categories."""

    EMBEDDING_ERROR = "EmbeddingError"
    RETRIEVAL_ERROR = "RetrievalError"

    MALFORMED_PLAN = "MalformedPlan"
    INVALID_INTENT = "InvalidIntent"
    MISSING_FIELD = "MissingField"
    INVALID_TOOL_FORMAT = "InvalidToolFormat"
    UNKNOWN_TOOL = "UnknownTool"

    INVALID_ENTITY_TYPE = "InvalidEntityType"
    UNRESOLVED_ENTITY_REFERENCE = "UnresolvedEntityReference"
    INVALID_TOOL_ARGUMENTS = "InvalidToolArguments"
    GRAPH_WRITE_FAILED = "GraphWriteFailed"
    ACTION_ANALYSIS_FAILED = "ActionAnalysisFailed"

    NOTIFICATION_UNDELIVERABLE = "NotificationUndeliverable"

    RUN_CANCELLED = "RunCancelled"


PLAN_VALIDATION_KINDS = frozenset({
    ErrorKind.MALFORMED_PLAN,
    ErrorKind.INVALID_INTENT,
    ErrorKind.MISSING_FIELD,
    ErrorKind.INVALID_TOOL_FORMAT,
    ErrorKind.UNKNOWN_TOOL,
})


class AgentError(Exception):
    """Base class for all agent pipeline errors."""

    kind: ErrorKind

    def __init__(self, message: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class EmbeddingError(AgentError):
    """Prompt embedding failed or produced an invalid vector."""

    kind = ErrorKind.EMBEDDING_ERROR


class RetrievalError(AgentError):
    """Context retrieval from the vector index failed."""

    kind = ErrorKind.RETRIEVAL_ERROR


class PlanValidationError(AgentError):
    """
    Raw plan text could not be turned into a Plan.

    The message always ends with the complete raw text, untruncated,
    because it is the only audit trail of what the model produced.
    """

    def __init__(self, kind: ErrorKind, detail: str, raw_text: str) -> None:
        if kind not in PLAN_VALIDATION_KINDS:
            raise ValueError(f"{kind} is not a plan validation error kind")
        self.detail = detail
        self.raw_text = raw_text
        super().__init__(
            f"{kind.value}: {detail}\n\nRaw plan text:\n{raw_text}",
            kind=kind,
        )


class ActionError(AgentError):
    """A single proposed action could not be executed. Recorded, not raised out of a run."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message, kind=kind)


class NotificationUndeliverableError(AgentError):
    """Notification delivery exhausted its retry budget."""

    kind = ErrorKind.NOTIFICATION_UNDELIVERABLE

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RunCancelledError(AgentError):
    """A cancelled run tried to start another step."""

    kind = ErrorKind.RUN_CANCELLED
