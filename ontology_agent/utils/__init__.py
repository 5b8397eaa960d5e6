"""
Utility Functions

Helpers used throughout the package.

Modules:
    cost_telemetry: contextvars-scoped cost collection per run
    token_count: tiktoken-based token estimates for usage fallbacks
"""

from ontology_agent.utils.cost_telemetry import (
    CostCollector,
    current_stage,
    record_usage,
    telemetry_collector,
    telemetry_stage,
)
from ontology_agent.utils.token_count import count_chat_tokens, count_text_tokens

__all__ = [
    "CostCollector",
    "telemetry_collector",
    "telemetry_stage",
    "current_stage",
    "record_usage",
    "count_text_tokens",
    "count_chat_tokens",
]
