"""Execute node: hand extracted actions to the Task-Assistant."""

from __future__ import annotations

import logging

from kanban_agents.agents import AgentSuite
from kanban_agents.pipeline.models import ProcessingStage
from kanban_agents.pipeline.state import PipelineState

logger = logging.getLogger(__name__)


def has_actions(state: PipelineState) -> bool:
    extraction = state.get("action_extraction")
    return extraction is not None and extraction.success and bool(extraction.actions)


async def run(state: PipelineState, agents: AgentSuite) -> PipelineState:
    context = state["context"]
    brain = state["brain"]
    extraction = state["action_extraction"]
    agent = agents.task_assistant
    actions = list(extraction.actions) if extraction else []

    await context.progress.emit(
        ProcessingStage.EXECUTING_ACTIONS,
        f"Executing {len(actions)} extracted action(s) using local brain and LLM...",
        {"agent_id": agent.agent_id, "actions_count": len(actions)},
    )
    try:
        result = await agent.process_task(
            brain.title,
            brain.description,
            brain.web_content,
            brain.content_summary,
            actions,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Task assistant raised for %s", context.task_id)
        context.errors.append(f"Action execution failed: {exc}")
        await context.progress.emit(
            ProcessingStage.ERROR,
            f"Action execution failed: {exc}",
            {"agent_id": agent.agent_id, "error": str(exc)},
        )
        return {"task_assistant": None}

    if result.success:
        await context.progress.emit(
            ProcessingStage.EXECUTING_ACTIONS,
            "Actions executed with LLM - results generated",
            {
                "agent_id": agent.agent_id,
                "has_implementation": result.implementation is not None,
                "has_quality_check": result.quality_check is not None,
                "steps_count": len(result.implementation.steps) if result.implementation else 0,
            },
        )
    else:
        context.errors.append(f"Action execution failed: {result.error}")
        await context.progress.emit(
            ProcessingStage.ERROR,
            f"Action execution failed: {result.error}",
            {"agent_id": agent.agent_id, "error": result.error},
        )
    return {"task_assistant": result}
