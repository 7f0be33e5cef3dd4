"""End-to-end processing of one task: agents, hints, then Markdown formatting."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kanban_agents.agents.markdown_formatter import MarkdownFormatterAgent
from kanban_agents.agents.models import MarkdownFormatResult
from kanban_agents.hints.service import HintService
from kanban_agents.pipeline.models import (
    AgentProcessingProgress,
    AgentProcessingResult,
    ProcessingStage,
)
from kanban_agents.pipeline.orchestrator import AgentOrchestrator
from kanban_agents.pipeline.progress import ProgressCallback, ProgressTracker
from kanban_agents.storage.base import TaskStore
from kanban_agents.storage.models import HintCreate, HintRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskProcessingReport:
    result: AgentProcessingResult
    hints: list[HintRecord] = field(default_factory=list)
    applied_hint_ids: list[str] = field(default_factory=list)
    markdown: MarkdownFormatResult | None = None
    progress: list[AgentProcessingProgress] = field(default_factory=list)


class TaskProcessor:
    def __init__(
        self,
        store: TaskStore,
        orchestrator: AgentOrchestrator,
        hint_service: HintService,
        markdown_formatter: MarkdownFormatterAgent,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.hint_service = hint_service
        self.markdown_formatter = markdown_formatter

    async def process_task_with_agents(
        self,
        task_id: str,
        *,
        update_task: bool = True,
        skip_web_content: bool = False,
        skip_summarization: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> TaskProcessingReport:
        logger.info("Starting agent processing for task %s", task_id)
        result = await self.orchestrator.process_task(
            task_id,
            skip_web_content=skip_web_content,
            skip_summarization=skip_summarization,
            on_progress=on_progress,
        )
        task = await self.store.find_task(task_id)
        # The orchestrator already reported 100; post-run stages must not step back.
        tracker = ProgressTracker(
            task_id,
            task.board_id if task else None,
            publisher=self.orchestrator.publisher,
            callback=on_progress,
            start=100,
        )

        hints = await self.hint_service.create_hints_from_results(
            task_id, result, auto_apply=False
        )
        applied: list[HintRecord] = []
        if update_task and hints:
            await tracker.emit(
                ProcessingStage.APPLYING_RESULTS,
                "Applying high-confidence hints to task...",
                {"hints_count": len(hints)},
            )
            applied = await self.hint_service.auto_apply_high_confidence_hints(
                task_id, [hint.hint_id for hint in hints]
            )
            await tracker.emit(
                ProcessingStage.APPLYING_RESULTS,
                f"Applied {len(applied)} hint(s) to task",
                {"applied_hint_ids": [hint.hint_id for hint in applied]},
            )

        markdown = await self._format_description(task_id, tracker)

        logger.info(
            "Completed agent processing for task %s (%s errors)",
            task_id,
            len(result.errors or []),
        )
        return TaskProcessingReport(
            result=result,
            hints=hints,
            applied_hint_ids=[hint.hint_id for hint in applied],
            markdown=markdown,
            progress=result.progress + tracker.history,
        )

    async def _format_description(
        self, task_id: str, tracker: ProgressTracker
    ) -> MarkdownFormatResult | None:
        """Format the final description; failures are reported, never raised."""
        agent_id = self.markdown_formatter.agent_id
        try:
            task = await self.store.find_task(task_id)
            if task is None:
                logger.warning("Task %s not found for markdown conversion", task_id)
                return None
            if not (task.description or "").strip():
                logger.info("Skipping markdown conversion - no description for task %s", task_id)
                return None

            await tracker.emit(
                ProcessingStage.FORMATTING_MARKDOWN,
                "Converting description to markdown format...",
            )
            formatted = await self.markdown_formatter.format_to_markdown(
                task.title, task.description
            )
            if not formatted.success or not formatted.formatted_description:
                error = formatted.error or "Unknown error"
                logger.warning("Markdown conversion failed for task %s: %s", task_id, error)
                await tracker.emit(
                    ProcessingStage.ERROR,
                    f"Markdown conversion failed: {error}",
                    {"agent_id": agent_id, "error": error},
                )
                return formatted

            async with self.store.transaction() as tx:
                await tx.update_task(task_id, description=formatted.formatted_description)
                recorded = await tx.create_hints(
                    [
                        HintCreate(
                            task_id=task_id,
                            agent_id=agent_id,
                            hint_type="description",
                            title="Description Formatted (Markdown)",
                            content=formatted.formatted_description,
                            data={
                                "original_length": formatted.original_length,
                                "formatted_length": formatted.formatted_length,
                            },
                            confidence=formatted.confidence,
                        )
                    ]
                )
                for hint in recorded:
                    await tx.update_hint(hint.hint_id, applied=True)

            logger.info(
                "Converted description to markdown for task %s (%s -> %s chars)",
                task_id,
                formatted.original_length,
                formatted.formatted_length,
            )
            await tracker.emit(
                ProcessingStage.FORMATTING_MARKDOWN,
                "Description converted to markdown",
                {
                    "agent_id": agent_id,
                    "confidence": formatted.confidence,
                    "original_length": formatted.original_length,
                    "formatted_length": formatted.formatted_length,
                },
            )
            return formatted
        except Exception:  # noqa: BLE001
            logger.exception("Error converting description to markdown for task %s", task_id)
            return None
