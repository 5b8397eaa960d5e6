"""
Configuration System

Manages configuration for the ontology agent with a layered approach.

Configuration Priority (highest to lowest):
    1. Programmatic (passed to AgentConfig())
    2. Environment variables (ONTOLOGY_AGENT_* prefix)
    3. Config file (AgentConfig.from_file)
    4. Built-in defaults

Modules:
    settings: AgentConfig class
    providers: Provider-specific model defaults
    pricing: Model pricing for cost telemetry
"""

from ontology_agent.config.settings import AgentConfig

__all__ = ["AgentConfig"]
