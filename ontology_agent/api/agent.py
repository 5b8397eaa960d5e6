"""
OntologyAgent - Primary Entry Point

The OntologyAgent class manages a workspace directory and runs the agent
pipeline against it.

A workspace is a self-contained directory containing:
    - graph.duckdb: Nodes and relationships written by the agent
    - steps.duckdb: Durable step results, keyed by run id
    - lancedb/: Vector index of context items

Example:
    >>> agent = OntologyAgent("./workspace")
    >>> await agent.index_graph()
    >>> result = await agent.run(
    ...     "Add Ada Lovelace and connect her to the Analytical Engine",
    ...     ["Person", "Machine"],
    ... )
    >>> print(result.summary)

    # Or with sync API
    >>> agent = OntologyAgent("./workspace")
    >>> result = agent.run_sync("Add Ada Lovelace", ["Person"])

    # Resume a crashed run: completed steps are not repeated
    >>> result = await agent.run("Add Ada Lovelace", ["Person"], run_id="run-42")
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ontology_agent.types.context import ContextItem, ContextKind

if TYPE_CHECKING:
    from ontology_agent.agent.notifications import NotificationDispatcher
    from ontology_agent.agent.orchestrator import AgentOrchestrator
    from ontology_agent.channels.base import NotificationChannel
    from ontology_agent.config.settings import AgentConfig
    from ontology_agent.providers.base import EmbeddingProvider, LLMProvider
    from ontology_agent.storage.base import StepRecord
    from ontology_agent.storage.duckdb import DuckDBGraphStore, DuckDBStepStore
    from ontology_agent.storage.lancedb import LanceDBContextRetriever
    from ontology_agent.types.results import AgentRunResult

logger = logging.getLogger(__name__)

GRAPH_DB = "graph.duckdb"
STEPS_DB = "steps.duckdb"
LANCEDB_DIR = "lancedb"


def node_to_context_item(node: dict[str, Any]) -> ContextItem:
    """Index record for a graph node; content is the node as JSON."""
    return ContextItem(
        kind=ContextKind.NODE,
        id=node["id"],
        score=1.0,
        content=json.dumps(node, indent=2),
        attributes={"name": node["name"], "type": node["type"]},
    )


def relationship_to_context_item(
    relationship: dict[str, Any],
    nodes: dict[str, dict[str, Any]],
) -> ContextItem:
    """Index record for a relationship, denormalized with endpoint names and types."""
    source = nodes.get(relationship["from_id"], {})
    target = nodes.get(relationship["to_id"], {})
    attributes = {
        "fromId": relationship["from_id"],
        "fromName": source.get("name"),
        "fromType": source.get("type"),
        "toId": relationship["to_id"],
        "toName": target.get("name"),
        "toType": target.get("type"),
        "relationType": relationship["relation_type"],
    }
    return ContextItem(
        kind=ContextKind.RELATIONSHIP,
        id=relationship["id"],
        score=1.0,
        content=(
            f"{source.get('name', relationship['from_id'])} "
            f"{relationship['relation_type']} "
            f"{target.get('name', relationship['to_id'])}"
        ),
        attributes={k: v for k, v in attributes.items() if v is not None},
    )


class OntologyAgent:
    """
    An ontology-editing agent bound to a workspace directory.

    Args:
        path: Workspace directory. Created if doesn't exist.
        config: Optional configuration. Uses defaults if not provided.
        create: If True, create directory if missing. Default True.
        channel: Notification channel. Defaults to an HTTP channel when
            config.notification_url is set, otherwise notifications are off.
    """

    def __init__(
        self,
        path: str | Path,
        config: "AgentConfig | None" = None,
        create: bool = True,
        *,
        channel: "NotificationChannel | None" = None,
    ) -> None:
        """Initialize the agent at the specified workspace path."""
        self._path = Path(path).resolve()
        self._create = create

        # Lazy import to avoid circular imports
        if config is None:
            from ontology_agent.config import AgentConfig
            config = AgentConfig()
        self._config = config
        self._channel = channel

        # Lazy-initialized components
        self._graph: "DuckDBGraphStore | None" = None
        self._steps: "DuckDBStepStore | None" = None
        self._index: "LanceDBContextRetriever | None" = None
        self._llm: "LLMProvider | None" = None
        self._embeddings: "EmbeddingProvider | None" = None
        self._orchestrator: "AgentOrchestrator | None" = None
        self._initialized = False

    async def _ensure_initialized(self) -> None:
        """Lazy initialization of storage and providers on first use."""
        if self._initialized:
            return

        # Create directory if needed
        if self._create:
            self._path.mkdir(parents=True, exist_ok=True)
        elif not self._path.exists():
            raise FileNotFoundError(f"Workspace not found: {self._path}")

        from ontology_agent.agent.orchestrator import AgentOrchestrator
        from ontology_agent.storage.duckdb import DuckDBGraphStore, DuckDBStepStore
        from ontology_agent.storage.lancedb import LanceDBContextRetriever

        self._graph = DuckDBGraphStore(self._path / GRAPH_DB)
        await self._graph.initialize()
        self._steps = DuckDBStepStore(self._path / STEPS_DB)
        await self._steps.initialize()
        self._index = LanceDBContextRetriever(
            self._path / LANCEDB_DIR,
            table_name=self._config.context_table,
        )
        await self._index.initialize()

        # Initialize providers
        self._llm = self._create_llm_provider(self._config.llm_model)
        self._embeddings = self._create_embedding_provider()

        self._orchestrator = AgentOrchestrator(
            embeddings=self._embeddings,
            retriever=self._index,
            llm=self._llm,
            action_llm=self._create_llm_provider(self._config.llm_model_fast),
            graph_store=self._graph,
            step_store=self._steps,
            notifications=self._create_notification_dispatcher(),
            config=self._config,
        )

        self._initialized = True

    def _create_llm_provider(self, model: str) -> "LLMProvider":
        """Create LLM provider based on config."""
        provider = self._config.llm_provider.lower()

        if provider == "openai":
            from ontology_agent.providers.llm.openai import OpenAILLMProvider
            return OpenAILLMProvider(
                api_key=self._config.openai_api_key,
                model=model,
            )
        else:
            raise ValueError(f"Unknown LLM provider: {provider}")

    def _create_embedding_provider(self) -> "EmbeddingProvider":
        """Create embedding provider based on config."""
        provider = self._config.embedding_provider.lower()

        if provider == "openai":
            from ontology_agent.providers.embedding.openai import OpenAIEmbeddingProvider
            return OpenAIEmbeddingProvider(
                api_key=self._config.openai_api_key,
                model=self._config.embedding_model,
                dimensions=self._config.embedding_dimensions,
            )
        else:
            raise ValueError(f"Unknown embedding provider: {provider}")

    def _create_notification_dispatcher(self) -> "NotificationDispatcher | None":
        """Create the notification policy for the configured channel, if any."""
        from ontology_agent.agent.notifications import NotificationDispatcher

        channel = self._channel
        if channel is None and self._config.notification_url:
            from ontology_agent.channels.http import HttpNotificationChannel
            channel = HttpNotificationChannel(
                self._config.notification_url,
                timeout=self._config.notification_timeout,
            )
            self._channel = channel
        if channel is None:
            return None
        return NotificationDispatcher.from_config(channel, self._config)

    # === Lifecycle ===

    def __enter__(self) -> "OntologyAgent":
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit with resource cleanup."""
        self.close_sync()

    async def __aenter__(self) -> "OntologyAgent":
        """Async context manager entry."""
        await self._ensure_initialized()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Release all resources (async)."""
        if self._graph is not None:
            await self._graph.close()
            self._graph = None
        if self._steps is not None:
            await self._steps.close()
            self._steps = None
        if self._index is not None:
            await self._index.close()
            self._index = None
        if self._channel is not None:
            await self._channel.close()
        self._llm = None
        self._embeddings = None
        self._orchestrator = None
        self._initialized = False

    def close_sync(self) -> None:
        """Release all resources (sync)."""
        if self._initialized:
            asyncio.run(self.close())

    # === Properties ===

    @property
    def path(self) -> Path:
        """Path to the workspace directory."""
        return self._path

    @property
    def config(self) -> "AgentConfig":
        """Current configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Whether the agent has been initialized."""
        return self._initialized

    # === Runs ===

    async def run(
        self,
        prompt: str,
        entity_types: list[str],
        context_filter: list[ContextKind] | None = None,
        *,
        run_id: str | None = None,
        consumer_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
        cost_debug: bool = False,
    ) -> "AgentRunResult":
        """
        Run the agent pipeline.

        Args:
            prompt: Natural-language request
            entity_types: Allowed node types
            context_filter: Restrict retrieval to these kinds
            run_id: Reuse an id to resume that run
            consumer_id: UI consumer for progress notifications
            cancel_event: Set to stop before the next step
            cost_debug: Attach a cost report to the result

        Returns:
            AgentRunResult
        """
        await self._ensure_initialized()
        assert self._orchestrator is not None

        return await self._orchestrator.run(
            prompt,
            entity_types,
            context_filter,
            run_id=run_id,
            consumer_id=consumer_id,
            cancel_event=cancel_event,
            cost_debug=cost_debug,
        )

    def run_sync(self, prompt: str, entity_types: list[str], **kwargs: Any) -> "AgentRunResult":
        """Synchronous version of run()."""
        return asyncio.run(self.run(prompt, entity_types, **kwargs))

    async def steps(self, run_id: str) -> list["StepRecord"]:
        """Persisted steps of a run, in completion order."""
        await self._ensure_initialized()
        assert self._steps is not None
        return await self._steps.completed_steps(run_id)

    def steps_sync(self, run_id: str) -> list["StepRecord"]:
        """Synchronous version of steps()."""
        return asyncio.run(self.steps(run_id))

    async def clear_run(self, run_id: str) -> int:
        """Forget a run's persisted steps so it can be re-executed from scratch."""
        await self._ensure_initialized()
        assert self._steps is not None
        return await self._steps.clear(run_id)

    # === Context Index ===

    async def index_context(self, items: list[ContextItem]) -> int:
        """
        Embed and index context items (replacing items with the same id).

        Returns:
            Number of items indexed
        """
        await self._ensure_initialized()
        assert self._embeddings is not None and self._index is not None
        if not items:
            return 0

        embeddings = await self._embeddings.embed([item.content for item in items])
        await self._index.add_items(items, embeddings)
        logger.info(f"Indexed {len(items)} context items")
        return len(items)

    async def index_graph(self) -> int:
        """
        Index every node and relationship of the workspace graph.

        Lets later runs see what earlier runs created.
        """
        await self._ensure_initialized()
        assert self._graph is not None

        nodes = await self._graph.list_nodes()
        relationships = await self._graph.list_relationships()
        by_id = {node["id"]: node for node in nodes}

        items = [node_to_context_item(node) for node in nodes]
        items.extend(relationship_to_context_item(rel, by_id) for rel in relationships)
        return await self.index_context(items)

    def index_graph_sync(self) -> int:
        """Synchronous version of index_graph()."""
        return asyncio.run(self.index_graph())

    # === Inspection ===

    async def stats(self) -> dict[str, int]:
        """Counts of graph records, indexed context items."""
        await self._ensure_initialized()
        assert self._graph is not None and self._index is not None

        nodes = await self._graph.list_nodes()
        relationships = await self._graph.list_relationships()
        return {
            "nodes": len(nodes),
            "relationships": len(relationships),
            "context_items": await self._index.count(),
        }

    def stats_sync(self) -> dict[str, int]:
        """Synchronous version of stats()."""
        return asyncio.run(self.stats())
