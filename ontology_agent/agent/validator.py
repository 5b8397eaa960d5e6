"""
Plan Validator

Turns untrusted model text into a Plan, or fails with a
PlanValidationError whose message ends with the complete raw text.

Checks, in order (first failure wins):
    1. Strip the first ```json fence, if present
    2. Parse JSON; must be an object                   -> MalformedPlan
    3. intent is QUERY or MODIFICATION                 -> InvalidIntent
    4. analysis, contextObservations non-empty strings -> MissingField
    5. proposedActions, requiredTools are lists        -> MissingField
       (proposedActions elements must be strings)
    6. every requiredTools element is a string         -> InvalidToolFormat
    7. every requiredTools element is a known tool     -> UnknownTool

contextDataObservations is accepted in place of contextObservations.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from ontology_agent.errors import ErrorKind, PlanValidationError
from ontology_agent.types.plan import TOOL_VOCABULARY, Intent, Plan

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json[^\S\n]*\n?(.*?)\n?[^\S\n]*```", re.DOTALL)
_OPEN_FENCE = re.compile(r"```json[^\S\n]*\n?")

_INTENTS = {intent.value for intent in Intent}
_OBSERVATION_KEYS = ("contextObservations", "contextDataObservations")


def strip_json_fence(text: str) -> str:
    """Return the body of the first ```json fence, or the text unchanged."""
    match = _JSON_FENCE.search(text)
    if match:
        return match.group(1)
    if "```json" in text:
        # Unterminated fence: drop the opener only
        return _OPEN_FENCE.sub("", text, count=1)
    return text


def _is_nonempty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


class PlanValidator:
    """Stateless validator of raw plan text."""

    def validate(self, raw_text: str) -> Plan:
        """
        Validate raw plan text.

        Raises:
            PlanValidationError: with kind MalformedPlan, InvalidIntent,
                MissingField, InvalidToolFormat or UnknownTool
        """

        def fail(kind: ErrorKind, detail: str) -> PlanValidationError:
            logger.warning(f"Plan validation failed: {kind.value}: {detail}")
            return PlanValidationError(kind, detail, raw_text)

        body = strip_json_fence(raw_text)
        try:
            data = json.loads(body)
        except (json.JSONDecodeError, TypeError) as e:
            raise fail(ErrorKind.MALFORMED_PLAN, f"Plan is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise fail(
                ErrorKind.MALFORMED_PLAN,
                f"Plan must be a JSON object, got {type(data).__name__}",
            )

        intent = data.get("intent")
        if not isinstance(intent, str) or intent not in _INTENTS:
            raise fail(
                ErrorKind.INVALID_INTENT,
                f"Invalid or missing intent: {intent!r} (expected QUERY or MODIFICATION)",
            )

        analysis = data.get("analysis")
        if not _is_nonempty_string(analysis):
            raise fail(ErrorKind.MISSING_FIELD, "Invalid or missing analysis")

        observations = next(
            (data[key] for key in _OBSERVATION_KEYS if key in data),
            None,
        )
        if not _is_nonempty_string(observations):
            raise fail(ErrorKind.MISSING_FIELD, "Invalid or missing contextObservations")

        actions = data.get("proposedActions")
        if not isinstance(actions, list):
            raise fail(ErrorKind.MISSING_FIELD, "Invalid or missing proposedActions")
        if not all(isinstance(action, str) for action in actions):
            raise fail(ErrorKind.MISSING_FIELD, "proposedActions must contain only strings")

        tools = data.get("requiredTools")
        if not isinstance(tools, list):
            raise fail(ErrorKind.MISSING_FIELD, "Invalid or missing requiredTools")

        malformed = [tool for tool in tools if not isinstance(tool, str)]
        if malformed:
            raise fail(
                ErrorKind.INVALID_TOOL_FORMAT,
                f"requiredTools entries must be strings: {malformed!r}",
            )

        unknown = [tool for tool in tools if tool not in TOOL_VOCABULARY]
        if unknown:
            raise fail(
                ErrorKind.UNKNOWN_TOOL,
                f"Invalid tools specified: {', '.join(unknown)}",
            )

        return Plan(
            intent=Intent(intent),
            analysis=analysis,
            context_observations=observations,
            proposed_actions=tuple(actions),
            required_tools=tuple(tools),
        )


def validate_plan(raw_text: str) -> Plan:
    """Module-level shortcut for PlanValidator().validate()."""
    return PlanValidator().validate(raw_text)
