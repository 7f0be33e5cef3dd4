"""Per-run processing context shared by the pipeline nodes."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from kanban_agents.pipeline.progress import ProgressTracker
from kanban_agents.storage.models import TaskRecord


@dataclass(slots=True)
class ProcessingOptions:
    skip_web_content: bool = False
    skip_summarization: bool = False


@dataclass(slots=True)
class ProcessingContext:
    """Task snapshot, options, progress and the run's non-fatal error log."""

    task: TaskRecord
    progress: ProgressTracker
    options: ProcessingOptions = field(default_factory=ProcessingOptions)
    errors: list[str] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)

    @property
    def task_id(self) -> str:
        return self.task.task_id

    @property
    def original_text(self) -> str:
        return f"{self.task.title}\n\n{self.task.description or ''}".strip()

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)
