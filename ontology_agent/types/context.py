"""
Context Types

A ContextItem is one fact retrieved from the vector index: a node, a
relationship, or a note. Items are snapshots taken once at run start.

Attribute keys by kind:
    NODE:         name, type
    RELATIONSHIP: fromId, fromName, fromType, toId, toName, toType, relationType
    NOTE:         author, nodeId
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContextKind(str, Enum):
    """Kind of indexed record."""

    NODE = "NODE"
    RELATIONSHIP = "RELATIONSHIP"
    NOTE = "NOTE"


# Index metadata key -> ContextItem attribute key
_METADATA_KEYS: dict[ContextKind, dict[str, str]] = {
    ContextKind.NODE: {
        "name": "name",
        "nodeType": "type",
    },
    ContextKind.RELATIONSHIP: {
        "fromNodeId": "fromId",
        "fromNodeName": "fromName",
        "fromNodeType": "fromType",
        "toNodeId": "toId",
        "toNodeName": "toName",
        "toNodeType": "toType",
        "relationType": "relationType",
    },
    ContextKind.NOTE: {
        "author": "author",
        "nodeId": "nodeId",
    },
}


class ContextItem(BaseModel):
    """
    A single retrieved fact.

    Attributes:
        kind: NODE, RELATIONSHIP or NOTE
        id: Stable identifier of the underlying entity
        score: Similarity in [0, 1]; informational, never an identity tie-breaker
        content: Indexed text
        attributes: Kind-specific fields (see module docstring)
    """

    model_config = ConfigDict(frozen=True)

    kind: ContextKind
    id: str
    score: float = Field(ge=0.0, le=1.0)
    content: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str | None:
        """Node name (NODE items only)."""
        if self.kind is not ContextKind.NODE:
            return None
        value = self.attributes.get("name")
        return str(value) if value is not None else None

    @property
    def entity_type(self) -> str | None:
        """Node type (NODE items only)."""
        if self.kind is not ContextKind.NODE:
            return None
        value = self.attributes.get("type")
        return str(value) if value is not None else None

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any], score: float) -> "ContextItem":
        """
        Build an item from a vector-index metadata record.

        Metadata records carry `type`, `id`, `content` plus kind-specific keys
        (`nodeType`, `fromNodeId`, ...). Scores are clamped into [0, 1].
        """
        kind = ContextKind(str(metadata["type"]).upper())
        attributes = {
            target: metadata[source]
            for source, target in _METADATA_KEYS[kind].items()
            if metadata.get(source) is not None
        }
        return cls(
            kind=kind,
            id=str(metadata["id"]),
            score=min(1.0, max(0.0, float(score))),
            content=str(metadata.get("content") or ""),
            attributes=attributes,
        )

    def to_prompt_dict(self) -> dict[str, Any]:
        """Compact representation embedded in LLM prompts (node type as nodeType)."""
        attributes = {
            ("nodeType" if key == "type" else key): value
            for key, value in self.attributes.items()
        }
        return {
            "type": self.kind.value,
            "id": self.id,
            "score": round(self.score, 4),
            "content": self.content,
            **attributes,
        }
