"""
Plan Generator

All language-model calls of a run:

    1. generate_plan: prompt + context + entity types -> raw plan text
    2. analyze_action: one proposed action -> analysis text + tool calls
    3. summarize: plan + execution records -> summary text

generate_plan returns the model text untouched; parsing and validation
happen in PlanValidator so that a bad plan can be reported verbatim.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ontology_agent.agent.prompts import (
    ACTION_TOOLS,
    SUMMARY_SYSTEM_PROMPT,
    build_action_system_prompt,
    build_action_user_prompt,
    build_plan_system_prompt,
    build_plan_user_prompt,
    build_summary_user_prompt,
)
from ontology_agent.types.execution import ActionAnalysis, CreatedEntity, ExecutionRecord

if TYPE_CHECKING:
    from ontology_agent.config.settings import AgentConfig
    from ontology_agent.providers.base import LLMProvider
    from ontology_agent.types.context import ContextItem
    from ontology_agent.types.plan import Plan

logger = logging.getLogger(__name__)


def record_to_prompt_dict(record: ExecutionRecord) -> dict[str, Any]:
    """Compact execution record for prompts (no registry snapshot)."""
    return {
        "stepNumber": record.step_number,
        "action": record.action,
        "status": record.status.value,
        "analysis": record.analysis_output,
        "toolCalls": [
            {
                "tool": o.tool,
                "status": o.status.value,
                "params": o.params,
                **({"error": f"{o.error_kind.value}: {o.error}"} if o.error_kind else {}),
                **({"result": o.result.model_dump(exclude_none=True)} if o.result else {}),
            }
            for o in record.outcomes
        ],
        **(
            {"error": f"{record.error_kind.value}: {record.error}"}
            if record.error_kind
            else {}
        ),
    }


class PlanGenerator:
    """
    Language-model front end of the agent.

    Args:
        llm: Provider for plan generation and the summary
        action_llm: Provider for per-action analysis (defaults to llm)
        config: Temperatures are read from here when given
    """

    def __init__(
        self,
        llm: "LLMProvider",
        action_llm: "LLMProvider | None" = None,
        config: "AgentConfig | None" = None,
    ) -> None:
        self.llm = llm
        self.action_llm = action_llm or llm
        self.plan_temperature = config.plan_temperature if config else 0.7
        self.action_temperature = config.action_temperature if config else 0.2
        self.summary_temperature = config.summary_temperature if config else 0.2

    async def generate_plan(
        self,
        prompt: str,
        context: list["ContextItem"],
        entity_types: list[str],
    ) -> str:
        """
        Ask the model for a plan.

        Returns:
            Raw model text (unvalidated)
        """
        text = await self.llm.generate(
            build_plan_user_prompt(prompt, context),
            system=build_plan_system_prompt(entity_types),
            temperature=self.plan_temperature,
        )
        logger.debug(f"Plan text ({len(text)} chars) generated")
        return text

    async def analyze_action(
        self,
        *,
        prompt: str,
        plan: "Plan",
        action: str,
        context: list["ContextItem"],
        entity_types: list[str],
        previous_records: list[ExecutionRecord],
        created_entities: list[CreatedEntity],
    ) -> ActionAnalysis:
        """
        Analyze one proposed action with create_node and create_relationship bound.

        Tool calls are returned in emission order with unvalidated arguments.
        """
        system = build_action_system_prompt(
            prompt=prompt,
            analysis=plan.analysis,
            context_observations=plan.context_observations,
            entity_types=entity_types,
        )
        user = build_action_user_prompt(
            action,
            context,
            [record_to_prompt_dict(r) for r in previous_records],
            [e.model_dump() for e in created_entities],
        )
        completion = await self.action_llm.complete(
            system,
            user,
            tools=ACTION_TOOLS,
            temperature=self.action_temperature,
        )
        return ActionAnalysis(analysis=completion.text, tool_calls=completion.tool_calls)

    async def summarize(
        self,
        plan: "Plan",
        records: list[ExecutionRecord],
    ) -> str:
        """Free-text summary of what the run did."""
        return await self.llm.generate(
            build_summary_user_prompt(
                plan.to_payload(),
                [record_to_prompt_dict(r) for r in records],
            ),
            system=SUMMARY_SYSTEM_PROMPT,
            temperature=self.summary_temperature,
        )
