"""Agent-Selector: decides which downstream agents are worth running."""

from __future__ import annotations

import logging
import re

from kanban_agents.agents.base import BaseAgent
from kanban_agents.agents.constants import (
    MIN_CONTENT_FOR_SUMMARIZATION,
    Confidence,
    Temperature,
)
from kanban_agents.agents.models import AgentSelectionResult
from kanban_agents.agents.schemas import AgentSelectionResponse
from kanban_agents.llm.json_parsing import parse_json_response

logger = logging.getLogger(__name__)

DEFAULT_REASONING = "Default selection based on heuristics"
ACTION_KEYWORDS = (
    "complete",
    "implement",
    "build",
    "create",
    "develop",
    "write",
    "review",
    "analyze",
    "plan",
    "design",
    "setup",
    "configure",
    "organize",
    "prepare",
)
STEP_SEPARATORS = (" and ", " then ", ",", ";")
_NUMBER = re.compile(r"\d+")


def suggests_multiple_steps(title: str, description: str | None) -> bool:
    text = f"{title} {description or ''}".lower()
    if any(separator in text for separator in STEP_SEPARATORS):
        return True
    if len(_NUMBER.findall(text)) > 1:
        return True
    has_keyword = any(keyword in text for keyword in ACTION_KEYWORDS)
    return has_keyword and len(title) + len(description or "") > 100


def default_selection(
    title: str,
    description: str | None,
    has_url: bool,
    url_content_length: int = 0,
) -> AgentSelectionResult:
    return AgentSelectionResult(
        agent_id=AgentSelector.agent_id,
        success=True,
        confidence=Confidence.HIGH,
        should_use_web_content=has_url,
        should_use_summarization=has_url and url_content_length > MIN_CONTENT_FOR_SUMMARIZATION,
        should_use_task_analysis=True,
        should_use_context_extraction=True,
        should_use_action_extraction=suggests_multiple_steps(title, description),
        reasoning=DEFAULT_REASONING,
        metadata={"fallback": True},
    )


class AgentSelector(BaseAgent):
    agent_id = "agent-selector"

    async def select_agents(
        self,
        title: str,
        description: str | None,
        has_url: bool,
        url_content_length: int = 0,
    ) -> AgentSelectionResult:
        """Never fails: any model or parse error degrades to the heuristic plan."""
        prompt = _build_prompt(title, description, has_url, url_content_length)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.CONSISTENT)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Agent selection call failed, using heuristics: %s", exc)
            return default_selection(title, description, has_url, url_content_length)

        parsed = parse_json_response(response, AgentSelectionResponse)
        if not parsed.success or parsed.data is None:
            logger.warning("Agent selection response rejected, using heuristics: %s", parsed.error)
            return default_selection(title, description, has_url, url_content_length)

        data = parsed.data
        return AgentSelectionResult(
            agent_id=self.agent_id,
            success=True,
            confidence=data.confidence if data.confidence is not None else Confidence.HIGH,
            should_use_web_content=data.should_use_web_content,
            should_use_summarization=data.should_use_summarization,
            should_use_task_analysis=data.should_use_task_analysis,
            should_use_context_extraction=data.should_use_context_extraction,
            should_use_action_extraction=data.should_use_action_extraction,
            reasoning=data.reasoning,
        )


def _build_prompt(
    title: str, description: str | None, has_url: bool, url_content_length: int
) -> str:
    return (
        "Decide which task-processing agents should run for this task.\n"
        "Agents: web content download, content summarization, task analysis, "
        "context extraction, action extraction.\n"
        "Use web content only when a URL is present. Summarize only long content "
        f"(more than {MIN_CONTENT_FOR_SUMMARIZATION} characters). Extract actions only "
        "for multi-step work.\n\n"
        f"Title: {title}\n"
        f"Description: {description or '(none)'}\n"
        f"Has URL: {'yes' if has_url else 'no'}\n"
        f"URL content length: {url_content_length}\n\n"
        "Return JSON only:\n"
        '{"shouldUseWebContent": bool, "shouldUseSummarization": bool, '
        '"shouldUseTaskAnalysis": bool, "shouldUseContextExtraction": bool, '
        '"shouldUseActionExtraction": bool, "reasoning": "short reason", '
        '"confidence": 0.0-1.0}'
    )
