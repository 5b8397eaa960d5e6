"""
Public API Layer

Modules:
    agent: OntologyAgent class - main entry point

Design Principles:
    - Single entry point (OntologyAgent) bound to a workspace directory
    - Async-first with sync wrappers (_sync suffix)
    - Lazy initialization - don't connect until needed
    - Context manager support for resource cleanup
"""

from ontology_agent.api.agent import OntologyAgent

__all__ = ["OntologyAgent"]
