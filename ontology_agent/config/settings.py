"""
AgentConfig - Configuration Management

Sensible defaults with full override capability.

Example:
    >>> # Use defaults (reads from environment)
    >>> agent = OntologyAgent("./workspace")

    >>> # Explicit configuration
    >>> config = AgentConfig(
    ...     llm_model="gpt-4o",
    ...     notification_url="http://localhost:3000",
    ... )
    >>> agent = OntologyAgent("./workspace", config=config)

    >>> # From config file
    >>> config = AgentConfig.from_file("./agent.toml")

Environment Variables:
    ONTOLOGY_AGENT_LLM_PROVIDER - LLM provider name
    ONTOLOGY_AGENT_LLM_MODEL - Model for planning and summaries
    ONTOLOGY_AGENT_LLM_MODEL_FAST - Model for per-action analysis
    ONTOLOGY_AGENT_EMBEDDING_PROVIDER - Embedding provider name
    ONTOLOGY_AGENT_EMBEDDING_MODEL - Embedding model name
    ONTOLOGY_AGENT_EMBEDDING_DIMENSIONS - Expected embedding length
    ONTOLOGY_AGENT_CONTEXT_TOP_K - Context items retrieved per run
    ONTOLOGY_AGENT_NOTIFICATION_URL - Base URL of the UI update endpoint
    ONTOLOGY_AGENT_NOTIFICATION_MAX_ATTEMPTS - Delivery attempts per event
    ONTOLOGY_AGENT_NOTIFICATION_RETRY_DELAY - Seconds between attempts
    ONTOLOGY_AGENT_NOTIFICATION_FAIL_ON_UNDELIVERABLE - Raise after exhaustion
    ONTOLOGY_AGENT_COST_DEBUG_WARN_THRESHOLD_USD - Per-run cost warning
    OPENAI_API_KEY - OpenAI API key (standard name)
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

ENV_PREFIX = "ONTOLOGY_AGENT_"

_TRUTHY = {"1", "true", "yes", "on"}


class AgentConfig:
    """Configuration for the ontology agent."""

    # === LLM Configuration ===

    llm_provider: str = "openai"
    """LLM provider: "openai" """

    llm_model: str = "gpt-4o"
    """Model for plan generation and the final summary"""

    llm_model_fast: str = "gpt-4o-mini"
    """Model for per-action analysis (tool calling)"""

    plan_temperature: float = 0.7
    """Sampling temperature for plan generation"""

    action_temperature: float = 0.2
    """Sampling temperature for per-action analysis"""

    summary_temperature: float = 0.2
    """Sampling temperature for the final summary"""

    # === Embedding Configuration ===

    embedding_provider: str = "openai"
    """Embedding provider: "openai" """

    embedding_model: str = "text-embedding-3-small"
    """Embedding model name"""

    embedding_dimensions: int = 1536
    """Expected embedding vector length; other lengths are rejected"""

    # === API Keys ===

    openai_api_key: str | None = None

    # === Retrieval Configuration ===

    context_top_k: int = 25
    """Context items retrieved per run"""

    context_table: str = "context"
    """LanceDB table holding indexed nodes, relationships and notes"""

    # === Notification Configuration ===

    notification_url: str | None = None
    """Base URL of the UI update endpoint (None disables HTTP notifications)"""

    notification_max_attempts: int = 5
    """Delivery attempts per event"""

    notification_retry_delay: float = 1.0
    """Fixed delay between delivery attempts (seconds)"""

    notification_timeout: float = 10.0
    """Per-attempt HTTP timeout (seconds)"""

    notification_fail_on_undeliverable: bool = False
    """Raise NotificationUndeliverableError instead of logging after exhaustion"""

    # === Cost Telemetry Configuration ===

    cost_debug_warn_threshold_usd: float | None = None
    """Optional warning threshold for per-run estimated cost"""

    def __init__(self, **kwargs: Any) -> None:
        """
        Initialize configuration.

        Args:
            **kwargs: Override any configuration option
        """
        # Load from environment first
        self._load_from_env()

        # Apply explicit overrides
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith("_"):
                setattr(self, key, value)
            else:
                raise ValueError(f"Unknown configuration option: {key}")

    def _load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        string_options = (
            "llm_provider",
            "llm_model",
            "llm_model_fast",
            "embedding_provider",
            "embedding_model",
            "notification_url",
        )
        for option in string_options:
            if value := os.getenv(f"{ENV_PREFIX}{option.upper()}"):
                setattr(self, option, value)

        if dimensions := os.getenv(f"{ENV_PREFIX}EMBEDDING_DIMENSIONS"):
            self.embedding_dimensions = int(dimensions)
        if top_k := os.getenv(f"{ENV_PREFIX}CONTEXT_TOP_K"):
            self.context_top_k = int(top_k)
        if attempts := os.getenv(f"{ENV_PREFIX}NOTIFICATION_MAX_ATTEMPTS"):
            self.notification_max_attempts = int(attempts)
        if delay := os.getenv(f"{ENV_PREFIX}NOTIFICATION_RETRY_DELAY"):
            self.notification_retry_delay = float(delay)
        if fail := os.getenv(f"{ENV_PREFIX}NOTIFICATION_FAIL_ON_UNDELIVERABLE"):
            self.notification_fail_on_undeliverable = fail.strip().lower() in _TRUTHY
        if threshold := os.getenv(f"{ENV_PREFIX}COST_DEBUG_WARN_THRESHOLD_USD"):
            self.cost_debug_warn_threshold_usd = float(threshold)

    @classmethod
    def from_file(cls, path: str | Path) -> "AgentConfig":
        """
        Load configuration from TOML file.

        The TOML file can contain any configuration option as a key.
        Nested sections are flattened with underscores.

        Example TOML:
            [llm]
            model = "gpt-4o"
            model_fast = "gpt-4o-mini"

            [embedding]
            model = "text-embedding-3-small"
            dimensions = 1536

            [notification]
            url = "http://localhost:3000"
            max_attempts = 5

        Args:
            path: Path to TOML configuration file

        Returns:
            AgentConfig instance with values from file

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)

        flat_config: dict[str, Any] = {}

        # Map section names to config key prefixes
        section_mapping = {
            "llm": "llm_",
            "embedding": "embedding_",
            "api_keys": "",  # api_keys.openai -> openai_api_key
            "temperature": "",  # temperature.plan -> plan_temperature
            "context": "context_",
            "notification": "notification_",
            "cost_telemetry": "cost_debug_",
        }

        for section, prefix in section_mapping.items():
            if section in data:
                for key, value in data[section].items():
                    if section == "api_keys":
                        flat_config[f"{key}_api_key"] = value
                    elif section == "temperature":
                        flat_config[f"{key}_temperature"] = value
                    else:
                        flat_config[f"{prefix}{key}"] = value

        # Also support flat top-level keys
        for key, value in data.items():
            if key not in section_mapping and not isinstance(value, dict):
                flat_config[key] = value

        return cls(**flat_config)

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Load configuration from environment variables only."""
        return cls()

    def to_file(self, path: str | Path) -> None:
        """
        Save configuration to TOML file.

        API keys are never written; set them via environment variables.

        Args:
            path: Path to write TOML configuration file
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        sections: dict[str, dict[str, str | int | float | bool | None]] = {
            "llm": {
                "provider": self.llm_provider,
                "model": self.llm_model,
                "model_fast": self.llm_model_fast,
            },
            "temperature": {
                "plan": self.plan_temperature,
                "action": self.action_temperature,
                "summary": self.summary_temperature,
            },
            "embedding": {
                "provider": self.embedding_provider,
                "model": self.embedding_model,
                "dimensions": self.embedding_dimensions,
            },
            "context": {
                "top_k": self.context_top_k,
                "table": self.context_table,
            },
            "notification": {
                "url": self.notification_url,
                "max_attempts": self.notification_max_attempts,
                "retry_delay": self.notification_retry_delay,
                "timeout": self.notification_timeout,
                "fail_on_undeliverable": self.notification_fail_on_undeliverable,
            },
            "cost_telemetry": {
                "warn_threshold_usd": self.cost_debug_warn_threshold_usd,
            },
        }

        # Build TOML string manually; None values are omitted
        lines = ["# Ontology Agent Configuration", ""]

        for section_name, section_values in sections.items():
            lines.append(f"[{section_name}]")
            for key, value in section_values.items():
                if isinstance(value, str):
                    lines.append(f'{key} = "{value}"')
                elif isinstance(value, bool):
                    lines.append(f"{key} = {str(value).lower()}")
                elif isinstance(value, (int, float)):
                    lines.append(f"{key} = {value}")
            lines.append("")

        lines.extend([
            "# API keys should be set via environment variables:",
            "# OPENAI_API_KEY",
            "",
        ])

        path.write_text("\n".join(lines))

    def with_overrides(self, **kwargs: Any) -> "AgentConfig":
        """Return new config with specified overrides."""
        new_config = AgentConfig.__new__(AgentConfig)
        for key in dir(self):
            if not key.startswith("_") and not callable(getattr(self, key)):
                setattr(new_config, key, getattr(self, key))
        for key, value in kwargs.items():
            if not hasattr(new_config, key):
                raise ValueError(f"Unknown configuration option: {key}")
            setattr(new_config, key, value)
        return new_config
