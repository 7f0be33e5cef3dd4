"""Analyze node: concurrent fan-out of the analysis agents over the local brain."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from kanban_agents.agents import AgentSuite
from kanban_agents.agents.models import (
    ActionExtractionResult,
    AgentResult,
    ContextExtractionResult,
    TaskAnalysisResult,
)
from kanban_agents.pipeline.context import ProcessingContext
from kanban_agents.pipeline.models import LocalBrain, ProcessingStage
from kanban_agents.pipeline.state import PipelineState

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=AgentResult)


async def run(state: PipelineState, agents: AgentSuite) -> PipelineState:
    context = state["context"]
    selection = state["selection"]
    brain = state["brain"]
    await context.progress.emit(
        ProcessingStage.ANALYZING_TASK, "Running analysis agents on complete local brain..."
    )

    branches = (
        _task_analysis(context, agents, brain)
        if selection.should_use_task_analysis
        else _skipped(),
        _context_extraction(context, agents, brain)
        if selection.should_use_context_extraction
        else _skipped(),
        _action_extraction(context, agents, brain)
        if selection.should_use_action_extraction
        else _skipped(),
    )
    settled = await asyncio.gather(*branches, return_exceptions=True)

    outcomes: list[Any] = []
    for outcome in settled:
        if isinstance(outcome, BaseException):
            logger.error("Analysis branch failed for %s", context.task_id, exc_info=outcome)
            context.errors.append(f"Agent execution failed: {outcome}")
            outcomes.append(None)
        else:
            outcomes.append(outcome)
    task_analysis, context_extraction, action_extraction = outcomes

    await context.progress.emit(
        ProcessingStage.ANALYZING_TASK,
        "Analysis completed on local brain",
        {
            "task_analysis": task_analysis.success if task_analysis else None,
            "context_extraction": context_extraction.success if context_extraction else None,
            "action_extraction": action_extraction.success if action_extraction else None,
            "actions_extracted": action_extraction.total_actions if action_extraction else 0,
            "solutions_proposed": action_extraction.total_solutions if action_extraction else 0,
        },
    )
    return {
        "task_analysis": task_analysis,
        "context_extraction": context_extraction,
        "action_extraction": action_extraction,
    }


async def _skipped() -> None:
    return None


async def _guarded(
    context: ProcessingContext,
    label: str,
    agent_id: str,
    call: Callable[[], Awaitable[ResultT]],
) -> ResultT | None:
    """Convert a raised exception into a recorded error and an empty slot."""
    try:
        return await call()
    except Exception as exc:  # noqa: BLE001
        logger.exception("%s raised for %s", agent_id, context.task_id)
        message = f"{label} failed: {exc}"
        context.errors.append(message)
        await context.progress.emit(
            ProcessingStage.ERROR, message, {"agent_id": agent_id, "error": str(exc)}
        )
        return None


async def _task_analysis(
    context: ProcessingContext, agents: AgentSuite, brain: LocalBrain
) -> TaskAnalysisResult | None:
    agent = agents.task_analyzer
    result = await _guarded(
        context,
        "Task analysis",
        agent.agent_id,
        lambda: agent.analyze_task(
            brain.title, brain.description, brain.url, brain.content_summary
        ),
    )
    if result is not None and result.success:
        await context.progress.emit(
            ProcessingStage.ANALYZING_TASK,
            "Task analysis completed",
            {"agent_id": agent.agent_id, "confidence": result.confidence},
        )
    return result


async def _context_extraction(
    context: ProcessingContext, agents: AgentSuite, brain: LocalBrain
) -> ContextExtractionResult | None:
    agent = agents.context_extractor
    result = await _guarded(
        context,
        "Context extraction",
        agent.agent_id,
        lambda: agent.extract_context(brain.title, brain.description, brain.content_summary),
    )
    if result is not None and result.success:
        await context.progress.emit(
            ProcessingStage.EXTRACTING_CONTEXT,
            "Context extraction completed",
            {
                "agent_id": agent.agent_id,
                "confidence": result.confidence,
                "tags_count": len(result.tags),
            },
        )
    return result


async def _action_extraction(
    context: ProcessingContext, agents: AgentSuite, brain: LocalBrain
) -> ActionExtractionResult | None:
    agent = agents.action_extractor
    result = await _guarded(
        context,
        "Action extraction",
        agent.agent_id,
        lambda: agent.extract_actions(
            brain.title, brain.description, brain.content_summary, brain.web_content
        ),
    )
    if result is not None and result.success:
        message = f"Extracted {result.total_actions} actions"
        if result.total_solutions:
            plural = "s" if result.total_solutions > 1 else ""
            message += f" and {result.total_solutions} solution{plural}"
        await context.progress.emit(
            ProcessingStage.EXTRACTING_ACTIONS,
            message,
            {
                "agent_id": agent.agent_id,
                "confidence": result.confidence,
                "actions_count": result.total_actions,
                "solutions_count": result.total_solutions,
            },
        )
    return result
