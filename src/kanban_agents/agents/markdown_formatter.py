"""Markdown-Formatter agent: rewrites a task description as tidy Markdown."""

from __future__ import annotations

from kanban_agents.agents.base import (
    BaseAgent,
    InputValidationError,
    reported_confidence,
    validate_title,
)
from kanban_agents.agents.constants import Confidence, Temperature
from kanban_agents.agents.models import MarkdownFormatResult
from kanban_agents.agents.schemas import MarkdownResponse
from kanban_agents.llm.json_parsing import parse_json_response


class MarkdownFormatterAgent(BaseAgent):
    agent_id = "to-markdown-agent"

    async def format_to_markdown(self, title: str, description: str | None) -> MarkdownFormatResult:
        original = description or ""
        if not original.strip():
            return MarkdownFormatResult(
                agent_id=self.agent_id,
                success=True,
                confidence=Confidence.MAXIMUM,
                formatted_description=original,
                original_length=len(original),
                formatted_length=len(original),
            )
        try:
            validate_title(title)
        except InputValidationError as exc:
            return self._unchanged(original, str(exc))

        try:
            response = await self.call_llm(
                _build_prompt(title, original), temperature=Temperature.FACTUAL
            )
        except Exception as exc:  # noqa: BLE001
            return self._unchanged(original, str(exc))

        parsed = parse_json_response(response, MarkdownResponse)
        if not parsed.success or parsed.data is None:
            return self._unchanged(original, parsed.error or "Invalid markdown response")

        formatted = parsed.data.formatted_description.strip()
        if not formatted:
            return self._unchanged(original, "Formatted description is empty")
        return MarkdownFormatResult(
            agent_id=self.agent_id,
            success=True,
            confidence=reported_confidence(parsed.data.confidence, Confidence.EXCELLENT),
            formatted_description=formatted,
            original_length=len(original),
            formatted_length=len(formatted),
        )

    def _unchanged(self, description: str, error: str) -> MarkdownFormatResult:
        return MarkdownFormatResult(
            agent_id=self.agent_id,
            success=False,
            confidence=Confidence.MEDIUM,
            error=error,
            formatted_description=description,
            original_length=len(description),
            formatted_length=len(description),
        )


def _build_prompt(title: str, description: str) -> str:
    return (
        "Reformat this task description as clean Markdown. Keep every fact and link, "
        "do not add new content, use headings and lists only where they help.\n\n"
        f"Title: {title}\n\n"
        f"Description:\n{description}\n\n"
        'Return JSON only: {"formattedDescription": "...", "confidence": 0.0-1.0}'
    )
