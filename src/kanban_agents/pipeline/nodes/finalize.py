"""Finalize node: pin progress to 100 and assemble the run result."""

from __future__ import annotations

import logging
from typing import Any

from kanban_agents.events.publisher import AgentCompletedEvent, EventPublisher
from kanban_agents.pipeline.context import ProcessingContext
from kanban_agents.pipeline.models import AgentProcessingResult, ProcessingStage
from kanban_agents.pipeline.state import PipelineState

logger = logging.getLogger(__name__)

RESULT_KEYS = (
    "url",
    "web_content",
    "summarization",
    "task_analysis",
    "context_extraction",
    "action_extraction",
    "task_assistant",
)


async def run(state: PipelineState, publisher: EventPublisher | None) -> PipelineState:
    fields: dict[str, Any] = {key: state.get(key) for key in RESULT_KEYS}
    fields["agent_selection"] = state.get("selection")
    result = await complete_run(state["context"], publisher, **fields)
    return {"result": result}


async def complete_run(
    context: ProcessingContext,
    publisher: EventPublisher | None,
    **fields: Any,
) -> AgentProcessingResult:
    """Emit the final ``completed`` entry, publish the completion event, build the result."""
    processing_time_ms = context.elapsed_ms()
    draft = AgentProcessingResult(task_id=context.task_id, **fields)
    successful = draft.successful_agent_count

    context.progress.set_progress(100)
    await context.progress.emit(
        ProcessingStage.COMPLETED,
        "Agent processing completed",
        {
            "processing_time_ms": processing_time_ms,
            "errors_count": len(context.errors),
            "successful_agents": successful,
        },
    )
    errors = list(context.errors) or None
    logger.info(
        "Task %s processed in %sms (%s successful agents, %s errors)",
        context.task_id,
        processing_time_ms,
        successful,
        len(context.errors),
    )

    if publisher is not None:
        try:
            await publisher.publish(
                AgentCompletedEvent(
                    task_id=context.task_id,
                    board_id=context.task.board_id,
                    duration_ms=processing_time_ms,
                    successful_agent_count=successful,
                    errors=errors,
                )
            )
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to publish completion event for %s", context.task_id, exc_info=True
            )

    return draft.model_copy(
        update={
            "original_text": context.original_text,
            "processing_time_ms": processing_time_ms,
            "errors": errors,
            "progress": context.progress.history,
        }
    )
