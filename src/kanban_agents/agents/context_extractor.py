"""Context-Extractor agent: work context, tags and project hints."""

from __future__ import annotations

from kanban_agents.agents.base import (
    NO_INVENTION_RULE,
    BaseAgent,
    InputValidationError,
    reported_confidence,
    validate_description,
    validate_title,
)
from kanban_agents.agents.constants import MAX_TAG_COUNT, MAX_TAG_LENGTH, Temperature
from kanban_agents.agents.models import ContextExtractionResult
from kanban_agents.agents.schemas import ContextExtractionResponse
from kanban_agents.llm.json_parsing import parse_json_response

DEFAULT_CONFIDENCE = 0.75


class ContextExtractorAgent(BaseAgent):
    agent_id = "context-extractor-agent"

    async def extract_context(
        self,
        title: str,
        description: str | None = None,
        content_summary: str | None = None,
    ) -> ContextExtractionResult:
        try:
            validate_title(title)
            validate_description(description)
        except InputValidationError as exc:
            return self.failure(ContextExtractionResult, str(exc))

        prompt = _build_prompt(title, description, content_summary)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.BALANCED)
        except Exception as exc:  # noqa: BLE001
            return self.failure(ContextExtractionResult, str(exc))

        parsed = parse_json_response(response, ContextExtractionResponse)
        if not parsed.success or parsed.data is None:
            return self.failure(ContextExtractionResult, parsed.error or "Invalid context response")

        data = parsed.data
        return ContextExtractionResult(
            agent_id=self.agent_id,
            success=True,
            confidence=reported_confidence(
                data.confidence,
                DEFAULT_CONFIDENCE,
                populated=bool(data.context or data.tags or data.project_hints),
            ),
            context=data.context,
            tags=[tag for tag in data.tags if tag],
            project_hints=[hint for hint in data.project_hints if hint],
            estimated_duration=data.estimated_duration,
        )


def _build_prompt(title: str, description: str | None, content_summary: str | None) -> str:
    summary_block = f"\nLinked content summary:\n{content_summary}\n" if content_summary else ""
    return (
        "Extract the working context, tags and related projects for this task.\n"
        f"{NO_INVENTION_RULE}\n"
        f"Use at most {MAX_TAG_COUNT} short lowercase tags of at most {MAX_TAG_LENGTH} "
        "characters and at most 10 project hints.\n\n"
        f"Title: {title}\n"
        f"Description: {description or '(none)'}\n"
        f"{summary_block}\n"
        "Return JSON only:\n"
        '{"context": "EMAIL|MEETING|PHONE|READ|WATCH|DESK|OTHER", "tags": ["..."], '
        '"projectHints": ["..."], "estimatedDuration": "e.g. 1h", "confidence": 0.0-1.0}'
    )
