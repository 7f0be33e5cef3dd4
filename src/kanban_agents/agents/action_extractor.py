"""Action-Extractor agent: concrete next steps plus solution proposals."""

from __future__ import annotations

import logging

from kanban_agents.agents.action_filter import filter_trivial_actions
from kanban_agents.agents.base import (
    NO_INVENTION_RULE,
    BaseAgent,
    InputValidationError,
    validate_description,
    validate_title,
)
from kanban_agents.agents.constants import WEB_CONTENT_MAX, Confidence, Temperature
from kanban_agents.agents.models import ActionExtractionResult, ActionItem, SolutionProposal
from kanban_agents.agents.schemas import ActionExtractionResponse
from kanban_agents.llm.json_parsing import parse_json_response

logger = logging.getLogger(__name__)


class ActionExtractorAgent(BaseAgent):
    agent_id = "action-extractor-agent"

    async def extract_actions(
        self,
        title: str,
        description: str | None = None,
        content_summary: str | None = None,
        web_content: str | None = None,
    ) -> ActionExtractionResult:
        try:
            validate_title(title)
            validate_description(description)
        except InputValidationError as exc:
            return self.failure(ActionExtractionResult, str(exc))

        if not (content_summary or "").strip() and not (description or "").strip():
            return ActionExtractionResult(
                agent_id=self.agent_id,
                success=True,
                confidence=Confidence.LOW,
                actions=[ActionItem(description=title, priority="medium")],
                total_actions=1,
                metadata={"extracted_from": "title-only"},
            )

        prompt = _build_prompt(title, description, content_summary, web_content)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.MEDIUM)
        except Exception as exc:  # noqa: BLE001
            return self.failure(ActionExtractionResult, str(exc))

        parsed = parse_json_response(response, ActionExtractionResponse)
        if not parsed.success or parsed.data is None:
            return self.failure(ActionExtractionResult, parsed.error or "Invalid actions response")

        extracted = [
            ActionItem(
                description=item.description.strip(),
                priority=item.priority,
                estimated_duration=item.estimated_duration,
            )
            for item in parsed.data.actions
        ]
        actions = filter_trivial_actions(extracted)
        if len(actions) != len(extracted):
            logger.info("Dropped %s trivial actions", len(extracted) - len(actions))
        solutions = [
            SolutionProposal.model_validate(item.model_dump()) for item in parsed.data.solutions
        ]
        return ActionExtractionResult(
            agent_id=self.agent_id,
            success=True,
            confidence=Confidence.VERY_HIGH if actions else Confidence.MEDIUM,
            actions=actions,
            total_actions=len(actions),
            solutions=solutions,
            total_solutions=len(solutions),
            metadata={
                "filtered_count": len(extracted) - len(actions),
                "original_count": len(extracted),
                "solutions_count": len(solutions),
            },
        )


def _build_prompt(
    title: str,
    description: str | None,
    content_summary: str | None,
    web_content: str | None,
) -> str:
    lines = [
        "Break this task into concrete, meaningful actions and propose solution approaches.",
        NO_INVENTION_RULE,
        "Skip obvious steps such as opening a browser, visiting a link or reading a page.",
        "",
        f"Title: {title}",
        f"Description: {description or '(none)'}",
    ]
    if content_summary:
        lines.append(f"Content summary:\n{content_summary}")
    if web_content and web_content != content_summary:
        lines.append(f"Source content (excerpt):\n{web_content[:WEB_CONTENT_MAX]}")
    lines.extend(
        [
            "",
            "Return JSON only:",
            '{"actions": [{"description": "...", "priority": "low|medium|high", '
            '"estimatedDuration": "e.g. 15m"}], '
            '"solutions": [{"title": "...", "description": "...", "approach": "...", '
            '"steps": ["..."], "pros": ["..."], "cons": ["..."], '
            '"estimatedEffort": "...", "confidence": 0.0-1.0}]}',
        ]
    )
    return "\n".join(lines)
