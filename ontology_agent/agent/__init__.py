"""
Agent Pipeline

Modules:
    orchestrator: AgentOrchestrator - runs the full pipeline
    steps: StepExecutor - at-most-once named steps
    embedding: PromptEmbedder - validated prompt vectors
    retrieval: ContextLoader - ordered context snapshot
    planner: PlanGenerator - plan, per-action analysis and summary LLM calls
    prompts: Prompt builders and tool schemas
    validator: PlanValidator - untrusted plan text -> Plan
    resolver: EntityResolver, CreatedEntityRegistry
    dispatcher: ToolDispatcher - executes proposed actions
    notifications: NotificationDispatcher, RunNotifier
    reporting: Deterministic execution report
"""

from ontology_agent.agent.dispatcher import ToolDispatcher
from ontology_agent.agent.embedding import PromptEmbedder
from ontology_agent.agent.notifications import NotificationDispatcher, RunNotifier
from ontology_agent.agent.orchestrator import AgentOrchestrator
from ontology_agent.agent.planner import PlanGenerator
from ontology_agent.agent.resolver import CreatedEntityRegistry, EntityResolver
from ontology_agent.agent.retrieval import ContextLoader
from ontology_agent.agent.steps import StepExecutor
from ontology_agent.agent.validator import PlanValidator, validate_plan

__all__ = [
    "AgentOrchestrator",
    "StepExecutor",
    "PromptEmbedder",
    "ContextLoader",
    "PlanGenerator",
    "PlanValidator",
    "validate_plan",
    "EntityResolver",
    "CreatedEntityRegistry",
    "ToolDispatcher",
    "NotificationDispatcher",
    "RunNotifier",
]
