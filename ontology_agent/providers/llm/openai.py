"""
OpenAI LLM Provider (LangChain-based)

Implements LLMProvider interface using LangChain's ChatOpenAI.

Supports:
    - Text generation (generate)
    - Tool calling with OpenAI function schemas (complete)

Models:
    - gpt-4o: Plan generation and summaries
    - gpt-4o-mini: Fast per-action analysis

Example:
    >>> provider = OpenAILLMProvider(api_key="sk-...", model="gpt-4o")
    >>> text = await provider.generate("Summarize the plan.")

    >>> completion = await provider.complete(
    ...     "You execute graph actions.",
    ...     "Create a Person node for Ada Lovelace",
    ...     tools=[CREATE_NODE_TOOL],
    ... )
    >>> completion.tool_calls[0].name
    'create_node'
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from ontology_agent.config.pricing import estimate_llm_cost_usd
from ontology_agent.providers.base import LLMProvider
from ontology_agent.types.execution import Completion, ToolCall
from ontology_agent.types.results import CostUsageRecord
from ontology_agent.utils.cost_telemetry import current_action, current_stage, record_usage
from ontology_agent.utils.token_count import count_chat_tokens, count_text_tokens

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage
    from langchain_openai import ChatOpenAI

DEFAULT_MODEL = "gpt-4o"


def _as_int(value: Any) -> int | None:
    """Best-effort int coercion."""
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _extract_token_usage(response: Any) -> tuple[int | None, int | None, int | None]:
    """
    Extract token usage from LangChain response metadata.

    Returns:
        (input_tokens, output_tokens, total_tokens)
    """
    if response is None:
        return None, None, None

    usage = getattr(response, "usage_metadata", None)
    if isinstance(usage, dict):
        input_tokens = _as_int(usage.get("input_tokens") or usage.get("prompt_tokens"))
        output_tokens = _as_int(usage.get("output_tokens") or usage.get("completion_tokens"))
        total_tokens = _as_int(usage.get("total_tokens"))
        if any(v is not None for v in (input_tokens, output_tokens, total_tokens)):
            return input_tokens, output_tokens, total_tokens

    response_metadata = getattr(response, "response_metadata", None)
    if isinstance(response_metadata, dict):
        token_usage = response_metadata.get("token_usage") or response_metadata.get("usage")
        if isinstance(token_usage, dict):
            input_tokens = _as_int(
                token_usage.get("input_tokens") or token_usage.get("prompt_tokens")
            )
            output_tokens = _as_int(
                token_usage.get("output_tokens") or token_usage.get("completion_tokens")
            )
            total_tokens = _as_int(token_usage.get("total_tokens"))
            if any(v is not None for v in (input_tokens, output_tokens, total_tokens)):
                return input_tokens, output_tokens, total_tokens

    return None, None, None


def _extract_tool_calls(response: Any) -> list[ToolCall]:
    """
    Map LangChain tool calls to ToolCall models, in emission order.

    Calls whose arguments LangChain could not parse are kept with their raw
    argument string so the dispatcher can report them.
    """
    calls: list[ToolCall] = []
    for call in getattr(response, "tool_calls", None) or []:
        calls.append(
            ToolCall(
                name=call.get("name") or "",
                arguments=call.get("args") or {},
                id=call.get("id"),
            )
        )
    for call in getattr(response, "invalid_tool_calls", None) or []:
        calls.append(
            ToolCall(
                name=call.get("name") or "",
                arguments=call.get("args") or "",
                id=call.get("id"),
            )
        )
    return calls


def _get_chat_openai(
    api_key: str | None = None,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.0,
) -> "ChatOpenAI":
    """
    Get a ChatOpenAI instance.

    Uses lazy import to avoid loading langchain-openai unless actually used.

    Args:
        api_key: Optional API key. If not provided, uses OPENAI_API_KEY env var.
        model: Model name to use.
        temperature: Sampling temperature.

    Returns:
        ChatOpenAI instance
    """
    from langchain_openai import ChatOpenAI

    kwargs: dict[str, Any] = {"model": model, "temperature": temperature}
    if api_key:
        kwargs["api_key"] = api_key

    return ChatOpenAI(**kwargs)


def _build_messages(prompt: str, system: str | None) -> list["BaseMessage"]:
    from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

    messages: list[BaseMessage] = []
    if system:
        messages.append(SystemMessage(content=system))
    messages.append(HumanMessage(content=prompt))
    return messages


class OpenAILLMProvider(LLMProvider):
    """
    OpenAI LLM provider implementation using LangChain.

    Args:
        api_key: OpenAI API key. If None, uses OPENAI_API_KEY environment variable.
        model: Model to use (default: "gpt-4o")
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
    ) -> None:
        self._api_key = api_key
        self._model = model

    @property
    def model_name(self) -> str:
        """Current model name."""
        return self._model

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
    ) -> str:
        """
        Generate a text completion.

        Args:
            prompt: User prompt
            system: Optional system message for context
            temperature: Sampling temperature (0.0 = deterministic)
            max_tokens: Maximum tokens in response

        Returns:
            Generated text response
        """
        start = time.perf_counter_ns()

        client = _get_chat_openai(
            api_key=self._api_key,
            model=self._model,
            temperature=temperature,
        ).bind(max_tokens=max_tokens)

        response = await client.ainvoke(_build_messages(prompt, system))
        output_text = str(response.content)

        self._record(
            "generate",
            response,
            prompt=prompt,
            system=system,
            output_text=output_text,
            started_ns=start,
            metadata={"temperature": temperature, "max_tokens": max_tokens},
        )
        return output_text

    async def complete(
        self,
        system: str,
        prompt: str,
        *,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.0,
    ) -> Completion:
        """
        Generate a completion with optional tool calling.

        Tools are bound with tool_choice="auto" so the model may answer in
        text, call tools, or both.
        """
        start = time.perf_counter_ns()

        client: Any = _get_chat_openai(
            api_key=self._api_key,
            model=self._model,
            temperature=temperature,
        )
        if tools:
            client = client.bind_tools(tools, tool_choice="auto")

        response = await client.ainvoke(_build_messages(prompt, system))
        output_text = response.content if isinstance(response.content, str) else ""
        tool_calls = _extract_tool_calls(response)

        self._record(
            "complete",
            response,
            prompt=prompt,
            system=system,
            output_text=output_text,
            started_ns=start,
            metadata={
                "temperature": temperature,
                "tools": [t.get("function", t).get("name") for t in tools or []],
                "tool_calls": len(tool_calls),
            },
        )
        return Completion(text=output_text, tool_calls=tool_calls)

    def _record(
        self,
        operation: str,
        response: Any,
        *,
        prompt: str,
        system: str | None,
        output_text: str,
        started_ns: int,
        metadata: dict[str, Any],
    ) -> None:
        """Emit a CostUsageRecord to the active collector."""
        input_tokens, output_tokens, total_tokens = _extract_token_usage(response)
        estimated = False

        if input_tokens is None:
            chat_messages = [prompt]
            if system:
                chat_messages.insert(0, system)
            input_tokens = count_chat_tokens(chat_messages, self._model)
            estimated = True

        if output_tokens is None:
            output_tokens = count_text_tokens(output_text, self._model)
            estimated = True

        if total_tokens is None:
            total_tokens = input_tokens + output_tokens

        estimated_cost, pricing_found = estimate_llm_cost_usd(
            self._model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
        elapsed_ms = (time.perf_counter_ns() - started_ns) // 1_000_000

        record_usage(
            CostUsageRecord(
                provider="openai",
                model=self._model,
                operation=operation,
                stage=current_stage(),
                action=current_action(),
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=total_tokens,
                estimated_cost_usd=estimated_cost,
                latency_ms=int(elapsed_ms),
                estimated=estimated,
                metadata={**metadata, "pricing_found": pricing_found},
            )
        )
