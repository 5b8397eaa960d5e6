"""
Plan Types

The validated output of the planning stage.

Wire format (what the language model is asked to emit):
    {
      "intent": "QUERY | MODIFICATION",
      "analysis": "...",
      "contextObservations": "...",
      "proposedActions": ["...", "..."],
      "requiredTools": ["create_node", ...]
    }
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Intent(str, Enum):
    """What the user wants from the ontology."""

    QUERY = "QUERY"  # insights from existing data
    MODIFICATION = "MODIFICATION"  # change the ontology structure


class ToolName(str, Enum):
    """Fixed tool vocabulary a plan may name."""

    VECTOR_SEARCH = "vector_search"
    CREATE_NODE = "create_node"
    UPDATE_NODE = "update_node"
    CREATE_RELATIONSHIP = "create_relationship"
    UPDATE_RELATIONSHIP = "update_relationship"
    DELETE_NODE_WITH_STRATEGY = "delete_node_with_strategy"
    ASK_FOR_MORE_INFORMATION = "ask_for_more_information"
    GENERATE_SUMMARY = "generate_summary"
    PROVIDE_INSIGHTS = "provide_insights"


TOOL_VOCABULARY: frozenset[str] = frozenset(tool.value for tool in ToolName)

# Tools with a concrete execution handler; the rest are accepted but pending.
DISPATCHABLE_TOOLS: frozenset[ToolName] = frozenset({
    ToolName.CREATE_NODE,
    ToolName.CREATE_RELATIONSHIP,
})


class Plan(BaseModel):
    """
    A validated action plan.

    Immutable once built. Field order of proposed_actions is execution order.

    Attributes:
        intent: QUERY or MODIFICATION
        analysis: Free-text interpretation of the request
        context_observations: What was (and was not) found in retrieved context
        proposed_actions: Ordered free-text action descriptions
        required_tools: Tools the plan expects to use
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    intent: Intent
    analysis: str
    context_observations: str = Field(alias="contextObservations")
    proposed_actions: tuple[str, ...] = Field(alias="proposedActions")
    required_tools: tuple[ToolName, ...] = Field(alias="requiredTools")

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the wire format."""
        return self.model_dump(mode="json", by_alias=True)
