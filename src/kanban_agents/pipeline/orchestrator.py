"""Agent orchestrator: runs the pipeline graph for one task."""

from __future__ import annotations

import logging

from kanban_agents.agents import AgentSuite
from kanban_agents.events.publisher import EventPublisher
from kanban_agents.pipeline.context import ProcessingContext, ProcessingOptions
from kanban_agents.pipeline.errors import TaskNotFoundError
from kanban_agents.pipeline.models import AgentProcessingResult, ProcessingStage
from kanban_agents.pipeline.nodes.finalize import complete_run
from kanban_agents.pipeline.progress import ProgressCallback, ProgressTracker
from kanban_agents.pipeline.state import initial_state
from kanban_agents.pipeline.workflow import build_graph
from kanban_agents.storage.base import TaskStore

logger = logging.getLogger(__name__)


class AgentOrchestrator:
    """Selects agents, builds the local brain, then fans out the analysis agents.

    Agent failures never escape ``process_task``; they land in ``result.errors``.
    Only a missing task is raised to the caller.
    """

    def __init__(
        self,
        store: TaskStore,
        agents: AgentSuite,
        *,
        publisher: EventPublisher | None = None,
    ) -> None:
        self.store = store
        self.agents = agents
        self.publisher = publisher
        self._graph = build_graph(agents, publisher=publisher)

    async def process_task(
        self,
        task_id: str,
        *,
        skip_web_content: bool = False,
        skip_summarization: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> AgentProcessingResult:
        task = await self.store.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        tracker = ProgressTracker(
            task.task_id,
            task.board_id,
            publisher=self.publisher,
            callback=on_progress,
        )
        context = ProcessingContext(
            task=task,
            progress=tracker,
            options=ProcessingOptions(
                skip_web_content=skip_web_content,
                skip_summarization=skip_summarization,
            ),
        )
        tracker.set_progress(0)
        await tracker.emit(ProcessingStage.INITIALIZING, "Starting agent processing...")

        try:
            state = await self._graph.ainvoke(initial_state(context))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Agent processing failed for %s", task_id)
            message = f"Processing failed: {exc}"
            context.errors.append(message)
            await tracker.emit(ProcessingStage.ERROR, message, {"error": str(exc)})
            return await complete_run(context, self.publisher)
        return state["result"]
