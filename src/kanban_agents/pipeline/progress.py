"""Monotonic progress tracking with two failure-isolated sinks."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from kanban_agents.events.publisher import AgentProgressEvent, EventPublisher
from kanban_agents.pipeline.models import AgentProcessingProgress, ProcessingStage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[AgentProcessingProgress], Awaitable[None] | None]

PROGRESS_STEP = 5


class ProgressTracker:
    """Every ``emit`` bumps progress by a fixed step, clamped to [0, 100].

    The entry is appended to the history before either sink is awaited, so
    concurrent emitters still produce a non-decreasing history.
    """

    def __init__(
        self,
        task_id: str,
        board_id: str | None = None,
        *,
        publisher: EventPublisher | None = None,
        callback: ProgressCallback | None = None,
        step: int = PROGRESS_STEP,
        start: int = 0,
    ) -> None:
        self.task_id = task_id
        self.board_id = board_id
        self._publisher = publisher
        self._callback = callback
        self._step = step
        self._current = _clamp(start)
        self._history: list[AgentProcessingProgress] = []

    @property
    def current(self) -> int:
        return self._current

    @property
    def history(self) -> list[AgentProcessingProgress]:
        return list(self._history)

    def set_progress(self, value: int) -> None:
        self._current = _clamp(value)

    async def emit(
        self,
        stage: ProcessingStage,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> AgentProcessingProgress:
        self._current = _clamp(self._current + self._step)
        entry = AgentProcessingProgress(
            task_id=self.task_id,
            stage=stage,
            progress=self._current,
            message=message,
            details=dict(details or {}),
        )
        self._history.append(entry)

        if self._publisher is not None and self.board_id is not None:
            try:
                await self._publisher.publish(
                    AgentProgressEvent(
                        task_id=self.task_id,
                        board_id=self.board_id,
                        stage=entry.stage.value,
                        progress=entry.progress,
                        message=message,
                        details=entry.details,
                        timestamp=entry.timestamp,
                    )
                )
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Failed to publish progress event for %s", self.task_id, exc_info=True
                )

        if self._callback is not None:
            try:
                outcome = self._callback(entry)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:  # noqa: BLE001
                logger.warning("Progress callback failed for %s", self.task_id, exc_info=True)

        return entry


def _clamp(value: int) -> int:
    return max(0, min(100, value))
