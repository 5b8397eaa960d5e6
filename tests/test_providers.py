"""Tests for the OpenAI providers with LangChain clients patched out."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ontology_agent.agent.prompts import ACTION_TOOLS
from ontology_agent.providers.embedding.openai import OpenAIEmbeddingProvider
from ontology_agent.providers.llm.openai import (
    OpenAILLMProvider,
    _extract_token_usage,
    _extract_tool_calls,
)
from ontology_agent.utils.cost_telemetry import CostCollector, telemetry_collector, telemetry_stage

USAGE = {"input_tokens": 120, "output_tokens": 30, "total_tokens": 150}


def _tool_message() -> AIMessage:
    return AIMessage(
        content="Creating the node first.",
        tool_calls=[
            {"name": "create_node", "args": {"type": "Person", "name": "Ada"}, "id": "call-1"},
        ],
        invalid_tool_calls=[
            {"name": "create_relationship", "args": '{"fromNodeId": ', "id": "call-2", "error": None},
        ],
        usage_metadata=USAGE,
    )


class TestResponseParsing:
    """Tests for LangChain response helpers."""

    def test_tool_calls_in_order_with_invalid_kept_raw(self):
        calls = _extract_tool_calls(_tool_message())

        assert [c.name for c in calls] == ["create_node", "create_relationship"]
        assert calls[0].arguments == {"type": "Person", "name": "Ada"}
        assert calls[1].arguments == '{"fromNodeId": '

    def test_usage_metadata(self):
        assert _extract_token_usage(_tool_message()) == (120, 30, 150)

    def test_usage_from_response_metadata(self):
        response = MagicMock(spec=["response_metadata"])
        response.response_metadata = {
            "token_usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}
        }
        assert _extract_token_usage(response) == (5, 2, 7)

    def test_no_usage(self):
        assert _extract_token_usage(None) == (None, None, None)


class TestOpenAILLMProvider:
    """Tests for OpenAILLMProvider."""

    @pytest.mark.asyncio
    async def test_complete_binds_tools(self):
        chat = MagicMock()
        bound = MagicMock()
        bound.ainvoke = AsyncMock(return_value=_tool_message())
        chat.bind_tools.return_value = bound
        collector = CostCollector()

        with patch(
            "ontology_agent.providers.llm.openai._get_chat_openai", return_value=chat
        ) as factory:
            provider = OpenAILLMProvider(api_key="sk-test", model="gpt-4o-mini")
            with telemetry_collector(collector), telemetry_stage("action_analysis"):
                completion = await provider.complete(
                    "You execute actions.", "Create Ada", tools=ACTION_TOOLS, temperature=0.2
                )

        factory.assert_called_once_with(api_key="sk-test", model="gpt-4o-mini", temperature=0.2)
        chat.bind_tools.assert_called_once_with(ACTION_TOOLS, tool_choice="auto")
        messages = bound.ainvoke.await_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)

        assert completion.text == "Creating the node first."
        assert len(completion.tool_calls) == 2

        [record] = collector.records
        assert record.stage == "action_analysis"
        assert record.operation == "complete"
        assert record.total_tokens == 150
        assert record.estimated is False
        assert record.metadata["tools"] == ["create_node", "create_relationship"]

    @pytest.mark.asyncio
    async def test_generate(self):
        chat = MagicMock()
        bound = MagicMock()
        bound.ainvoke = AsyncMock(
            return_value=AIMessage(content='{"intent": "QUERY"}', usage_metadata=USAGE)
        )
        chat.bind.return_value = bound

        with patch("ontology_agent.providers.llm.openai._get_chat_openai", return_value=chat):
            provider = OpenAILLMProvider()
            text = await provider.generate("Plan this", system="You plan.", temperature=0.7)

        assert text == '{"intent": "QUERY"}'
        chat.bind.assert_called_once_with(max_tokens=4096)
        assert provider.model_name == "gpt-4o"


class TestOpenAIEmbeddingProvider:
    """Tests for OpenAIEmbeddingProvider."""

    def test_dimensions(self):
        assert OpenAIEmbeddingProvider().dimensions == 1536
        assert OpenAIEmbeddingProvider(model="text-embedding-3-large").dimensions == 3072
        assert OpenAIEmbeddingProvider(dimensions=256).dimensions == 256

    @pytest.mark.asyncio
    async def test_embed_single_records_usage(self):
        client = MagicMock()
        client.embed_query.return_value = [0.1, 0.2]
        collector = CostCollector()

        with patch(
            "ontology_agent.providers.embedding.openai._get_openai_embeddings",
            return_value=client,
        ) as factory, patch(
            "ontology_agent.providers.embedding.openai.count_text_tokens", return_value=4
        ):
            provider = OpenAIEmbeddingProvider(api_key="sk-test", dimensions=512)
            with telemetry_collector(collector), telemetry_stage("embedding"):
                vector = await provider.embed_single("Add Ada")

        assert vector == [0.1, 0.2]
        factory.assert_called_once_with(
            api_key="sk-test", model="text-embedding-3-small", dimensions=512
        )
        [record] = collector.records
        assert record.stage == "embedding"
        assert record.input_tokens == 4
        assert record.estimated is True

    @pytest.mark.asyncio
    async def test_native_dimensions_not_requested(self):
        client = MagicMock()
        client.embed_documents.return_value = [[0.1], [0.2]]

        with patch(
            "ontology_agent.providers.embedding.openai._get_openai_embeddings",
            return_value=client,
        ) as factory, patch(
            "ontology_agent.providers.embedding.openai.count_text_tokens", return_value=1
        ):
            provider = OpenAIEmbeddingProvider(dimensions=1536)
            assert await provider.embed(["a", "b"]) == [[0.1], [0.2]]
            assert await provider.embed([]) == []

        assert factory.call_args.kwargs["dimensions"] is None
