"""
Provider Configurations

Default model configurations for each LLM/embedding provider.

    >>> defaults = PROVIDER_DEFAULTS["openai"]
    >>> config = AgentConfig(**defaults)
"""

# Provider default models
PROVIDER_DEFAULTS = {
    "openai": {
        "llm_model": "gpt-4o",
        "llm_model_fast": "gpt-4o-mini",
    },
}

# Embedding provider defaults
EMBEDDING_DEFAULTS = {
    "openai": {
        "embedding_model": "text-embedding-3-small",
        "embedding_dimensions": 1536,
    },
}

# Embedding lengths of known models, used to validate configuration
MODEL_DIMENSIONS = {
    "text-embedding-3-large": 3072,
    "text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
}
