"""Typed state contract for the LangGraph pipeline."""

from typing import TypedDict

from kanban_agents.agents.models import (
    ActionExtractionResult,
    AgentSelectionResult,
    ContextExtractionResult,
    SummarizationResult,
    TaskAnalysisResult,
    TaskAssistantResult,
    WebContentResult,
)
from kanban_agents.pipeline.context import ProcessingContext
from kanban_agents.pipeline.models import AgentProcessingResult, LocalBrain


class PipelineState(TypedDict, total=False):
    context: ProcessingContext
    url: str | None
    selection: AgentSelectionResult
    web_content: WebContentResult | None
    summarization: SummarizationResult | None
    brain: LocalBrain
    task_analysis: TaskAnalysisResult | None
    context_extraction: ContextExtractionResult | None
    action_extraction: ActionExtractionResult | None
    task_assistant: TaskAssistantResult | None
    result: AgentProcessingResult


def initial_state(context: ProcessingContext) -> PipelineState:
    return {
        "context": context,
        "url": None,
        "web_content": None,
        "summarization": None,
        "task_analysis": None,
        "context_extraction": None,
        "action_extraction": None,
        "task_assistant": None,
    }
