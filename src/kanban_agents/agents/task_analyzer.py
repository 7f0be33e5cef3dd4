"""Task-Analyzer agent: context, priority, tags and a cleaned-up title."""

from __future__ import annotations

from kanban_agents.agents.base import (
    NO_INVENTION_RULE,
    BaseAgent,
    InputValidationError,
    reported_confidence,
    validate_description,
    validate_title,
)
from kanban_agents.agents.constants import Confidence, Temperature
from kanban_agents.agents.models import TaskAnalysisResult
from kanban_agents.agents.schemas import TaskAnalysisResponse
from kanban_agents.llm.json_parsing import parse_json_response


class TaskAnalyzerAgent(BaseAgent):
    agent_id = "task-analyzer-agent"

    async def analyze_task(
        self,
        title: str,
        description: str | None = None,
        url: str | None = None,
        content_summary: str | None = None,
    ) -> TaskAnalysisResult:
        try:
            validate_title(title)
            validate_description(description)
        except InputValidationError as exc:
            return self.failure(TaskAnalysisResult, str(exc))

        prompt = _build_prompt(title, description, url, content_summary)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.MEDIUM)
        except Exception as exc:  # noqa: BLE001
            return self.failure(TaskAnalysisResult, str(exc))

        parsed = parse_json_response(response, TaskAnalysisResponse)
        if not parsed.success or parsed.data is None:
            return self.failure(TaskAnalysisResult, parsed.error or "Invalid analysis response")

        data = parsed.data
        return TaskAnalysisResult(
            agent_id=self.agent_id,
            success=True,
            confidence=reported_confidence(
                data.confidence, Confidence.HIGH, populated=_has_findings(data)
            ),
            context=data.context,
            waiting_for=data.waiting_for,
            due_at=data.due_at,
            needs_breakdown=data.needs_breakdown,
            suggested_tags=list(data.suggested_tags),
            priority=data.priority,
            estimated_duration=data.estimated_duration,
            suggested_title=data.suggested_title,
            suggested_description=data.suggested_description,
        )


def _build_prompt(
    title: str, description: str | None, url: str | None, content_summary: str | None
) -> str:
    sections = [
        "Analyze this personal task and suggest how to file it on a kanban board.",
        NO_INVENTION_RULE,
        "",
        f"Title: {title}",
        f"Description: {description or '(none)'}",
    ]
    if url:
        sections.append(f"Source URL: {url}")
    if content_summary:
        sections.append(f"Linked content summary:\n{content_summary}")
    sections.extend(
        [
            "",
            "Return JSON only:",
            '{"context": "EMAIL|MEETING|PHONE|READ|WATCH|DESK|OTHER", '
            '"waitingFor": "string or null", "dueAt": "ISO date or null", '
            '"needsBreakdown": bool, "suggestedTags": ["..."], '
            '"priority": "low|medium|high", "estimatedDuration": "e.g. 30m", '
            '"suggestedTitle": "...", "suggestedDescription": "...", '
            '"confidence": 0.0-1.0}',
        ]
    )
    return "\n".join(sections)


def _has_findings(data: TaskAnalysisResponse) -> bool:
    return any(
        (
            data.context,
            data.waiting_for,
            data.due_at,
            data.needs_breakdown is not None,
            data.suggested_tags,
            data.priority,
            data.estimated_duration,
            data.suggested_title,
            data.suggested_description,
        )
    )
