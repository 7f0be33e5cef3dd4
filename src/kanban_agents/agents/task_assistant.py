"""Task-Assistant agent: clarify, structure, implement and self-check in one call."""

from __future__ import annotations

from kanban_agents.agents.base import (
    NO_INVENTION_RULE,
    BaseAgent,
    InputValidationError,
    reported_confidence,
    truncate_content,
    validate_description,
    validate_title,
)
from kanban_agents.agents.constants import (
    LARGE_CONTENT_TRUNCATE,
    WEB_CONTENT_MAX,
    Confidence,
    Temperature,
)
from kanban_agents.agents.models import (
    ActionItem,
    QualityCheck,
    TaskAssistantResult,
    TaskImplementation,
    TaskStructure,
)
from kanban_agents.agents.schemas import TaskAssistantResponse
from kanban_agents.llm.json_parsing import parse_json_response


class TaskAssistantAgent(BaseAgent):
    agent_id = "task-assistant-agent"

    async def process_task(
        self,
        title: str,
        description: str | None = None,
        web_content: str | None = None,
        content_summary: str | None = None,
        suggested_actions: list[ActionItem] | None = None,
    ) -> TaskAssistantResult:
        try:
            validate_title(title)
            validate_description(description)
        except InputValidationError as exc:
            return self.failure(TaskAssistantResult, str(exc))

        prompt = _build_prompt(title, description, web_content, content_summary, suggested_actions)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.CREATIVE)
        except Exception as exc:  # noqa: BLE001
            return self.failure(TaskAssistantResult, str(exc))

        parsed = parse_json_response(response, TaskAssistantResponse)
        if not parsed.success or parsed.data is None:
            return self.failure(
                TaskAssistantResult,
                f"JSON parsing failed: {parsed.error}. Response length: {len(response)} chars",
            )

        data = parsed.data
        result = TaskAssistantResult(
            agent_id=self.agent_id,
            success=True,
            clarification_questions=data.clarification_questions,
            needs_clarification=data.needs_clarification,
            structure=(
                TaskStructure.model_validate(data.structure.model_dump())
                if data.structure
                else None
            ),
            implementation=(
                TaskImplementation.model_validate(data.implementation.model_dump())
                if data.implementation
                else None
            ),
            quality_check=(
                QualityCheck.model_validate(data.quality_check.model_dump())
                if data.quality_check
                else None
            ),
        )
        if not result.final_result.strip():
            return self.failure(TaskAssistantResult, "Generated result is empty")

        completeness = data.quality_check.completeness if data.quality_check else None
        result.confidence = reported_confidence(
            completeness if completeness is not None else data.confidence, Confidence.HIGH
        )
        return result


def _build_prompt(
    title: str,
    description: str | None,
    web_content: str | None,
    content_summary: str | None,
    suggested_actions: list[ActionItem] | None,
) -> str:
    lines = [
        "You help a person complete a task from their personal kanban board.",
        "Work in four phases and answer in one JSON object:",
        "1. clarification: questions you would ask if information is missing",
        "2. structure: goal, requirements, constraints, desired result",
        "3. implementation: the actual result text, steps and deliverables",
        "4. quality check: score completeness, clarity and practicality from 0 to 1 "
        "and give the improved final result",
        NO_INVENTION_RULE,
        "",
        f"Title: {title}",
        f"Description: {description or '(none)'}",
    ]
    if content_summary:
        lines.append(f"Content summary:\n{content_summary}")
    if web_content:
        excerpt = truncate_content(web_content[:LARGE_CONTENT_TRUNCATE], WEB_CONTENT_MAX)
        lines.append(f"Source content (excerpt):\n{excerpt}")
    if suggested_actions:
        lines.append("Suggested actions:")
        lines.extend(f"- {action.description}" for action in suggested_actions)
    lines.extend(
        [
            "",
            "Return JSON only:",
            '{"clarificationQuestions": ["..."], "needsClarification": bool, '
            '"structure": {"goal": "...", "requirements": ["..."], "constraints": ["..."], '
            '"desiredResult": "...", "format": "...", "style": "...", "assumptions": ["..."]}, '
            '"implementation": {"result": "...", "steps": ["..."], "deliverables": ["..."]}, '
            '"qualityCheck": {"completeness": 0.0-1.0, "clarity": 0.0-1.0, '
            '"practicality": 0.0-1.0, "optimizations": ["..."], "finalResult": "..."}, '
            '"confidence": 0.0-1.0}',
        ]
    )
    return "\n".join(lines)
