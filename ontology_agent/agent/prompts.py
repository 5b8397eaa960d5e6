"""
Agent Prompts

System/user prompt builders and tool schemas for the three LLM calls of a
run: plan generation, per-action analysis and the final summary.
"""

from __future__ import annotations

import json
from typing import Any

from ontology_agent.types.context import ContextItem

# -----------------------------------------------------------------------------
# Tool Schemas (OpenAI function format)
# -----------------------------------------------------------------------------

CREATE_NODE_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "create_node",
        "description": "Create a new node in the ontology",
        "parameters": {
            "type": "object",
            "properties": {
                "type": {
                    "type": "string",
                    "description": "Node type; must be one of the allowed node types",
                },
                "name": {
                    "type": "string",
                    "description": "Clear, descriptive node name",
                },
                "description": {
                    "type": "string",
                    "description": "What the node represents and why it exists",
                },
            },
            "required": ["type", "name", "description"],
            "additionalProperties": False,
        },
    },
}

CREATE_RELATIONSHIP_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "create_relationship",
        "description": "Connect two nodes with a typed relationship",
        "parameters": {
            "type": "object",
            "properties": {
                "fromNodeId": {
                    "type": "string",
                    "description": "Source node: a NODE id from context, or the name of a node created in this run",
                },
                "toNodeId": {
                    "type": "string",
                    "description": "Target node: a NODE id from context, or the name of a node created in this run",
                },
                "relationType": {
                    "type": "string",
                    "description": "Relationship type, e.g. owns, manages",
                },
            },
            "required": ["fromNodeId", "toNodeId", "relationType"],
            "additionalProperties": False,
        },
    },
}

ACTION_TOOLS: list[dict[str, Any]] = [CREATE_NODE_TOOL, CREATE_RELATIONSHIP_TOOL]

# -----------------------------------------------------------------------------
# Plan Generation
# -----------------------------------------------------------------------------

PLAN_SYSTEM_PROMPT = """You plan operations on an ontology-based knowledge system.

SYSTEM ARCHITECTURE:
- Ontologies: the knowledge structures being edited
- Nodes: entities in the ontology; every node has one of the allowed types
- Relationships: typed connections between two nodes
- Notes: free text attached to a node

ALLOWED NODE TYPES:
{entity_types}

CONTEXT DATA:
Each context item has a "type" of NODE, RELATIONSHIP or NOTE, an "id", a
relevance "score" and its "content".
- NODE items also carry "name" and "nodeType". Use the NODE "id"
  when an action refers to an existing node.
- RELATIONSHIP items carry fromId/fromName/fromType, toId/toName/toType and
  relationType.
- NOTE items carry author and nodeId.

Observe what the context contains AND what it lacks. Never assume a node or
relationship exists unless it appears in the context data.

AVAILABLE TOOLS:
- vector_search: look up more nodes, relationships and notes
- create_node: add a node (arguments: type, name, description)
- update_node: change a node (arguments: id, name, description)
- create_relationship: connect two nodes (arguments: fromNodeId, toNodeId, relationType)
- update_relationship: change a relationship (arguments: id, fromNodeId, toNodeId, relationType)
- delete_node_with_strategy: remove a node (arguments: id, strategy of orphan, cascade or reconnect)
- ask_for_more_information: ask the user to clarify
- generate_summary: summarize findings
- provide_insights: answer a question from existing data

Respond with JSON only:
{{
  "intent": "QUERY | MODIFICATION",
  "analysis": "Brief interpretation of the request",
  "contextObservations": "What the context data contains, what is missing, and how it relates to the request",
  "proposedActions": ["Ordered list of concrete operations"],
  "requiredTools": ["Only names from the AVAILABLE TOOLS list"]
}}

Only use the allowed node types. If the request needs a type that is not
allowed, say so in the analysis and adjust the plan. When a relationship needs
a node that does not exist yet, propose creating the node first."""


def build_plan_system_prompt(entity_types: list[str]) -> str:
    """System prompt for plan generation with the entity-type vocabulary."""
    return PLAN_SYSTEM_PROMPT.format(entity_types="\n".join(entity_types))


def format_context(context: list[ContextItem]) -> str:
    """JSON rendering of context items for prompts."""
    return json.dumps([item.to_prompt_dict() for item in context], indent=2)


def build_plan_user_prompt(prompt: str, context: list[ContextItem]) -> str:
    return f"User Prompt: {prompt}\n\nContext Data: {format_context(context)}"


# -----------------------------------------------------------------------------
# Action Analysis
# -----------------------------------------------------------------------------

ACTION_SYSTEM_PROMPT = """You execute one planned operation at a time on an ontology.

ORIGINAL USER REQUEST:
{prompt}

CONTEXT OBSERVATIONS:
{context_observations}

PLAN ANALYSIS:
{analysis}

CAPABILITIES:
- create_node creates a node
- create_relationship connects two nodes
Every other operation is not supported yet: acknowledge it, do not call a
tool, and say it is pending future implementation.

ALLOWED NODE TYPES:
{entity_types}

RELATIONSHIP GUIDELINES:
- For fromNodeId and toNodeId use either the "id" of a NODE context item or
  the exact name of a node created earlier in this run
- Never use the id of a RELATIONSHIP or NOTE item
- Check existing RELATIONSHIP items to avoid duplicates
- If an endpoint node does not exist yet, it must be created first

NODE GUIDELINES:
- Only use the allowed node types
- Give every node a clear name and a description of its purpose"""


def build_action_system_prompt(
    prompt: str,
    analysis: str,
    context_observations: str,
    entity_types: list[str],
) -> str:
    return ACTION_SYSTEM_PROMPT.format(
        prompt=prompt,
        analysis=analysis,
        context_observations=context_observations,
        entity_types=", ".join(entity_types),
    )


def build_action_user_prompt(
    action: str,
    context: list[ContextItem],
    previous_results: list[dict[str, Any]],
    created_entities: list[dict[str, Any]],
) -> str:
    return f"""Current Action: {action}

Available Context:
{format_context(context)}

Previous Results:
{json.dumps(previous_results, indent=2)}

Nodes Created In This Run (refer to them by name or id):
{json.dumps(created_entities, indent=2)}

If this is a node creation, call create_node.
If this is a relationship creation, call create_relationship with node ids
from the context or names of nodes created in this run.
Otherwise explain why the action cannot be executed."""


# -----------------------------------------------------------------------------
# Summary
# -----------------------------------------------------------------------------

SUMMARY_SYSTEM_PROMPT = """You report on an executed ontology plan.

Be concise. Say what was completed, what failed and why, and what remains
pending future implementation. Do not invent results that are not in the
execution records."""


def build_summary_user_prompt(
    plan: dict[str, Any],
    execution_results: list[dict[str, Any]],
) -> str:
    return f"""Provide a final summary of the execution.

Original Plan:
{json.dumps(plan, indent=2)}

Execution Results:
{json.dumps(execution_results, indent=2)}

Summarize what was completed and what remains to be implemented."""
