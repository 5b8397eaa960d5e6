"""
Ontology Agent - Autonomous Ontology Editing

Turns a natural-language request into an auditable sequence of knowledge
graph edits: embed the prompt, retrieve context, plan with an LLM,
validate the plan, execute each action with tool calls, and summarize.
Every stage is a durable step, so a crashed run resumes without repeating
side effects.

Example:
    >>> from ontology_agent import OntologyAgent
    >>> agent = OntologyAgent("./workspace")
    >>> result = await agent.run("Add Ada Lovelace as a Person", ["Person"])
    >>> print(result.summary)

Main Classes:
    OntologyAgent: Workspace-bound entry point
    AgentOrchestrator: Pipeline over injected capabilities
    AgentConfig: Configuration management
"""

__version__ = "0.1.0"

# Public API - lazy imports to avoid loading optional dependencies
def __getattr__(name: str):
    """Lazy import public API components."""

    if name == "OntologyAgent":
        from ontology_agent.api.agent import OntologyAgent
        return OntologyAgent

    if name == "AgentOrchestrator":
        from ontology_agent.agent.orchestrator import AgentOrchestrator
        return AgentOrchestrator

    if name == "AgentConfig":
        from ontology_agent.config.settings import AgentConfig
        return AgentConfig

    # Errors
    if name in ("AgentError", "ErrorKind", "PlanValidationError"):
        from ontology_agent import errors
        return getattr(errors, name)

    # Types
    if name in ("Plan", "ContextItem", "ExecutionRecord", "AgentRunResult"):
        from ontology_agent import types
        return getattr(types, name)

    raise AttributeError(f"module 'ontology_agent' has no attribute {name!r}")


__all__ = [
    # Main classes
    "OntologyAgent",
    "AgentOrchestrator",
    "AgentConfig",

    # Errors
    "AgentError",
    "ErrorKind",
    "PlanValidationError",

    # Types
    "Plan",
    "ContextItem",
    "ExecutionRecord",
    "AgentRunResult",

    # Version
    "__version__",
]
