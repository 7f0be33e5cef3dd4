"""Pure transforms from one agent result to zero or more hint records."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kanban_agents.agents.models import TaskStructure
from kanban_agents.pipeline.models import AgentProcessingResult
from kanban_agents.storage.models import HintCreate, HintType

HintCreator = Callable[[str, AgentProcessingResult], list[HintCreate]]


def web_content_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    web = result.web_content
    if web is None or not web.success:
        return []
    return [
        HintCreate(
            task_id=task_id,
            agent_id=web.agent_id,
            hint_type="web-content",
            title="Downloaded Content",
            content=web.title or f"Content from {web.url}",
            data={
                "url": web.url,
                "title": web.title,
                "content_type": web.content_type,
                "content_length": len(web.text_content or ""),
            },
            confidence=web.confidence,
        )
    ]


def summary_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    summary = result.summarization
    if summary is None or not summary.success:
        return []
    return [
        HintCreate(
            task_id=task_id,
            agent_id=summary.agent_id,
            hint_type="summary",
            title="Content Summary",
            content=summary.summary,
            data={
                "original_length": summary.original_length,
                "word_count": summary.word_count,
                "key_points": summary.key_points,
            },
            confidence=summary.confidence,
        )
    ]


def task_analysis_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    analysis = result.task_analysis
    if analysis is None or not analysis.success:
        return []

    def hint(
        hint_type: HintType,
        title: str,
        content: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> HintCreate:
        return HintCreate(
            task_id=task_id,
            agent_id=analysis.agent_id,
            hint_type=hint_type,
            title=title,
            content=content,
            data=data,
            confidence=analysis.confidence,
        )

    hints: list[HintCreate] = []
    if analysis.suggested_title:
        hints.append(hint("title", "Suggested Title", analysis.suggested_title))
    if analysis.suggested_description:
        hints.append(
            hint("description", "Suggested Description", analysis.suggested_description)
        )
    if analysis.context:
        hints.append(hint("context", "Suggested Context", analysis.context))
    if analysis.suggested_tags:
        hints.append(hint("tags", "Suggested Tags", data={"tags": analysis.suggested_tags}))
    if analysis.priority:
        hints.append(hint("priority", "Suggested Priority", analysis.priority))
    if analysis.estimated_duration:
        hints.append(hint("duration", "Estimated Duration", analysis.estimated_duration))
    return hints


def context_extraction_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    extraction = result.context_extraction
    if extraction is None or not extraction.success:
        return []
    base = {
        "task_id": task_id,
        "agent_id": extraction.agent_id,
        "confidence": extraction.confidence,
    }
    hints: list[HintCreate] = []
    if extraction.context:
        hints.append(
            HintCreate(
                hint_type="context",
                title="Suggested Context",
                content=extraction.context,
                **base,
            )
        )
    if extraction.tags:
        hints.append(
            HintCreate(
                hint_type="tags",
                title="Suggested Tags",
                data={"tags": extraction.tags},
                **base,
            )
        )
    if extraction.project_hints:
        hints.append(
            HintCreate(
                hint_type="project-hints",
                title="Suggested Projects",
                data={"projects": extraction.project_hints},
                **base,
            )
        )
    return hints


def action_extraction_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    extraction = result.action_extraction
    if extraction is None or not extraction.success:
        return []
    hints: list[HintCreate] = []
    if extraction.actions:
        hints.append(
            HintCreate(
                task_id=task_id,
                agent_id=extraction.agent_id,
                hint_type="actions",
                title="Suggested Actions",
                data={
                    "actions": [action.model_dump() for action in extraction.actions],
                    "total_actions": extraction.total_actions,
                },
                confidence=extraction.confidence,
            )
        )
    if extraction.solutions:
        shown = len(extraction.solutions)
        total = extraction.total_solutions or shown
        suffix = "es" if shown > 1 else ""
        hints.append(
            HintCreate(
                task_id=task_id,
                agent_id=extraction.agent_id,
                hint_type="solutions",
                title=f"Proposed Solutions ({total})",
                content=(
                    f"Based on the task context, here are {shown} "
                    f"solution approach{suffix} to consider:"
                ),
                data={
                    "solutions": [solution.model_dump() for solution in extraction.solutions],
                    "total_solutions": total,
                },
                confidence=extraction.confidence,
            )
        )
    return hints


def task_assistant_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    assistant = result.task_assistant
    if assistant is None or not assistant.success:
        return []
    quality = assistant.quality_check
    implementation = assistant.implementation
    hints: list[HintCreate] = []

    if assistant.final_result:
        hints.append(
            HintCreate(
                task_id=task_id,
                agent_id=assistant.agent_id,
                hint_type="description",
                title="Task Assistant Result",
                content=assistant.final_result,
                data={
                    "completeness": quality.completeness if quality else None,
                    "clarity": quality.clarity if quality else None,
                    "practicality": quality.practicality if quality else None,
                    "steps": implementation.steps if implementation else [],
                    "deliverables": implementation.deliverables if implementation else [],
                },
                confidence=_confidence_or(assistant.confidence, 0.8),
            )
        )

    if assistant.needs_clarification and assistant.clarification_questions:
        hints.append(
            HintCreate(
                task_id=task_id,
                agent_id=assistant.agent_id,
                hint_type="help",
                title="Clarification Questions",
                content="\n\n".join(assistant.clarification_questions),
                data={
                    "questions": assistant.clarification_questions,
                    "needs_clarification": True,
                },
                confidence=_confidence_or(assistant.confidence, 0.7),
            )
        )

    if assistant.structure is not None:
        hints.append(
            HintCreate(
                task_id=task_id,
                agent_id=assistant.agent_id,
                hint_type="help",
                title="Task Structure",
                content=format_structure(assistant.structure),
                data=assistant.structure.model_dump(),
                confidence=_confidence_or(assistant.confidence, 0.8),
            )
        )
    return hints


def format_structure(structure: TaskStructure) -> str:
    requirements = "\n".join(f"- {item}" for item in structure.requirements) or "None"
    constraints = "\n".join(f"- {item}" for item in structure.constraints) or "None"
    text = (
        f"**Goal:** {structure.goal}\n\n"
        f"**Requirements:**\n{requirements}\n\n"
        f"**Constraints:**\n{constraints}\n\n"
        f"**Desired Result:**\n{structure.desired_result}"
    )
    if structure.assumptions:
        assumptions = "\n".join(f"- {item}" for item in structure.assumptions)
        text += f"\n\n**Assumptions:**\n{assumptions}"
    return text


def _confidence_or(value: float | None, default: float) -> float:
    return value if value is not None else default


HINT_CREATORS: tuple[HintCreator, ...] = (
    web_content_hints,
    summary_hints,
    task_analysis_hints,
    context_extraction_hints,
    action_extraction_hints,
    task_assistant_hints,
)


def build_hints(task_id: str, result: AgentProcessingResult) -> list[HintCreate]:
    return [hint for creator in HINT_CREATORS for hint in creator(task_id, result)]
