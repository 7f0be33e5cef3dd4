"""Typed results returned by every agent."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

TaskContext = Literal["EMAIL", "MEETING", "PHONE", "READ", "WATCH", "DESK", "OTHER"]
TaskPriority = Literal["low", "medium", "high"]


class AgentResult(BaseModel):
    """Common envelope. When ``success`` is false the payload is not trusted."""

    agent_id: str
    success: bool
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    error: str | None = None
    metadata: dict[str, Any] | None = None


class WebContentResult(AgentResult):
    url: str | None = None
    title: str | None = None
    content: str | None = None
    text_content: str | None = None
    html_content: str | None = None
    content_type: str | None = None
    downloaded_at: datetime | None = None


class SummarizationResult(AgentResult):
    original_length: int = 0
    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    word_count: int = 0


class TaskAnalysisResult(AgentResult):
    context: TaskContext | None = None
    waiting_for: str | None = None
    due_at: str | None = None
    needs_breakdown: bool | None = None
    suggested_tags: list[str] = Field(default_factory=list)
    priority: TaskPriority | None = None
    estimated_duration: str | None = None
    suggested_title: str | None = None
    suggested_description: str | None = None


class ContextExtractionResult(AgentResult):
    context: TaskContext | None = None
    tags: list[str] = Field(default_factory=list)
    project_hints: list[str] = Field(default_factory=list)
    estimated_duration: str | None = None


class ActionItem(BaseModel):
    description: str
    priority: TaskPriority | None = None
    estimated_duration: str | None = None


class SolutionProposal(BaseModel):
    title: str
    description: str
    approach: str | None = None
    steps: list[str] = Field(default_factory=list)
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    estimated_effort: str | None = None
    confidence: float | None = None


class ActionExtractionResult(AgentResult):
    actions: list[ActionItem] = Field(default_factory=list)
    total_actions: int = 0
    solutions: list[SolutionProposal] = Field(default_factory=list)
    total_solutions: int = 0


class TaskStructure(BaseModel):
    goal: str = ""
    requirements: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    desired_result: str = ""
    format: str | None = None
    style: str | None = None
    assumptions: list[str] = Field(default_factory=list)


class TaskImplementation(BaseModel):
    result: str = ""
    steps: list[str] = Field(default_factory=list)
    deliverables: list[str] = Field(default_factory=list)


class QualityCheck(BaseModel):
    completeness: float | None = None
    clarity: float | None = None
    practicality: float | None = None
    optimizations: list[str] = Field(default_factory=list)
    final_result: str = ""


class TaskAssistantResult(AgentResult):
    clarification_questions: list[str] = Field(default_factory=list)
    needs_clarification: bool = False
    structure: TaskStructure | None = None
    implementation: TaskImplementation | None = None
    quality_check: QualityCheck | None = None

    @property
    def final_result(self) -> str:
        if self.quality_check and self.quality_check.final_result:
            return self.quality_check.final_result
        if self.implementation:
            return self.implementation.result
        return ""


class MarkdownFormatResult(AgentResult):
    formatted_description: str = ""
    original_length: int = 0
    formatted_length: int = 0


class AgentSelectionResult(AgentResult):
    """The per-run agent plan; always fully populated, even on fallback."""

    should_use_web_content: bool
    should_use_summarization: bool
    should_use_task_analysis: bool
    should_use_context_extraction: bool
    should_use_action_extraction: bool
    reasoning: str
