"""JSON contracts expected back from the language model.

Keys are accepted in snake_case or camelCase; unknown keys are dropped.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from kanban_agents.agents.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_TAG_COUNT,
    MAX_TAG_LENGTH,
    MAX_TITLE_LENGTH,
)
from kanban_agents.agents.models import TaskContext, TaskPriority

Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=MAX_TAG_LENGTH)]
ProjectHint = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
Score = Annotated[float, Field(ge=0.0, le=1.0)]


class LenientModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _upper_context(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


def _lower_priority(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


ContextValue = Annotated[TaskContext, BeforeValidator(_upper_context)]
PriorityValue = Annotated[TaskPriority, BeforeValidator(_lower_priority)]


class SummaryResponse(LenientModel):
    summary: str
    key_points: list[str] = Field(default_factory=list)


class TaskAnalysisResponse(LenientModel):
    context: ContextValue | None = None
    waiting_for: str | None = None
    due_at: str | None = None
    needs_breakdown: bool | None = None
    suggested_tags: list[Tag] = Field(default_factory=list, max_length=MAX_TAG_COUNT)
    priority: PriorityValue | None = None
    estimated_duration: str | None = None
    suggested_title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    suggested_description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    confidence: Score | None = None


class ContextExtractionResponse(LenientModel):
    context: ContextValue | None = None
    tags: list[Tag] = Field(default_factory=list, max_length=MAX_TAG_COUNT)
    project_hints: list[ProjectHint] = Field(default_factory=list, max_length=10)
    estimated_duration: str | None = None
    confidence: Score | None = None


class ActionItemResponse(LenientModel):
    description: str
    priority: PriorityValue | None = None
    estimated_duration: str | None = None


class SolutionResponse(LenientModel):
    title: str
    description: str
    approach: str | None = None
    steps: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    estimated_effort: str | None = None
    confidence: Score | None = None


class ActionExtractionResponse(LenientModel):
    actions: list[ActionItemResponse] = Field(default_factory=list)
    solutions: list[SolutionResponse] = Field(default_factory=list)


class StructureResponse(LenientModel):
    goal: str = ""
    requirements: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    desired_result: str = ""
    format: str | None = None
    style: str | None = None
    assumptions: list[str] = Field(default_factory=list)


class ImplementationResponse(LenientModel):
    result: str = ""
    steps: list[str] = Field(default_factory=list)
    deliverables: list[str] = Field(default_factory=list)


class QualityCheckResponse(LenientModel):
    completeness: Score | None = None
    clarity: Score | None = None
    practicality: Score | None = None
    optimizations: list[str] = Field(default_factory=list)
    final_result: str = ""


class TaskAssistantResponse(LenientModel):
    clarification_questions: list[str] = Field(default_factory=list)
    needs_clarification: bool = False
    structure: StructureResponse | None = None
    implementation: ImplementationResponse | None = None
    quality_check: QualityCheckResponse | None = None
    confidence: Score | None = None


class MarkdownResponse(LenientModel):
    formatted_description: str
    confidence: Score | None = None


class AgentSelectionResponse(LenientModel):
    should_use_web_content: bool
    should_use_summarization: bool
    should_use_task_analysis: bool
    should_use_context_extraction: bool
    should_use_action_extraction: bool
    reasoning: str = Field(max_length=500)
    confidence: Score | None = None
