"""Select node: detect a URL and decide which agents run."""

from __future__ import annotations

import logging

from kanban_agents.agents import AgentSuite
from kanban_agents.pipeline.models import ProcessingStage
from kanban_agents.pipeline.state import PipelineState

logger = logging.getLogger(__name__)


async def run(state: PipelineState, agents: AgentSuite) -> PipelineState:
    context = state["context"]
    task = context.task
    await context.progress.emit(
        ProcessingStage.INITIALIZING, "Analyzing task to determine which agents to use..."
    )

    url = None
    if not context.options.skip_web_content:
        url = agents.web_content.extract_url(context.original_text, task.metadata)

    selection = await agents.selector.select_agents(
        task.title, task.description, url is not None, 0
    )
    logger.info(
        "Agent selection for %s: web=%s summary=%s analysis=%s context=%s actions=%s (%s)",
        task.task_id,
        selection.should_use_web_content,
        selection.should_use_summarization,
        selection.should_use_task_analysis,
        selection.should_use_context_extraction,
        selection.should_use_action_extraction,
        selection.reasoning,
    )
    await context.progress.emit(
        ProcessingStage.INITIALIZING,
        f"Selected agents: {selection.reasoning}",
        {
            "selected_agents": {
                "web_content": selection.should_use_web_content,
                "summarization": selection.should_use_summarization,
                "task_analysis": selection.should_use_task_analysis,
                "context_extraction": selection.should_use_context_extraction,
                "action_extraction": selection.should_use_action_extraction,
            },
            "confidence": selection.confidence,
        },
    )
    return {"url": url, "selection": selection}
