"""Run-level models: progress entries, the local brain and the final result."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kanban_agents.agents.models import (
    ActionExtractionResult,
    AgentResult,
    AgentSelectionResult,
    ContextExtractionResult,
    SummarizationResult,
    TaskAnalysisResult,
    TaskAssistantResult,
    WebContentResult,
)


class ProcessingStage(StrEnum):
    INITIALIZING = "initializing"
    DETECTING_URL = "detecting-url"
    DOWNLOADING_CONTENT = "downloading-content"
    EXTRACTING_TEXT = "extracting-text"
    SUMMARIZING_CONTENT = "summarizing-content"
    BUILDING_CONTEXT = "building-context"
    ANALYZING_TASK = "analyzing-task"
    EXTRACTING_CONTEXT = "extracting-context"
    EXTRACTING_ACTIONS = "extracting-actions"
    EXECUTING_ACTIONS = "executing-actions"
    FORMATTING_MARKDOWN = "formatting-markdown"
    APPLYING_RESULTS = "applying-results"
    COMPLETED = "completed"
    ERROR = "error"


class AgentProcessingProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    stage: ProcessingStage
    progress: int = Field(ge=0, le=100)
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LocalBrain(BaseModel):
    """Everything gathered before analysis; frozen once built."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    original_description: str | None = None
    web_content: str | None = None
    content_summary: str | None = None
    web_content_title: str | None = None
    url: str | None = None


class AgentProcessingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    original_text: str = ""
    url: str | None = None
    agent_selection: AgentSelectionResult | None = None
    web_content: WebContentResult | None = None
    summarization: SummarizationResult | None = None
    task_analysis: TaskAnalysisResult | None = None
    context_extraction: ContextExtractionResult | None = None
    action_extraction: ActionExtractionResult | None = None
    task_assistant: TaskAssistantResult | None = None
    processing_time_ms: int = 0
    errors: list[str] | None = None
    progress: list[AgentProcessingProgress] = Field(default_factory=list)

    def agent_results(self) -> list[AgentResult]:
        candidates = (
            self.web_content,
            self.summarization,
            self.task_analysis,
            self.context_extraction,
            self.action_extraction,
            self.task_assistant,
        )
        return [result for result in candidates if result is not None]

    @property
    def successful_agent_count(self) -> int:
        return sum(1 for result in self.agent_results() if result.success)
