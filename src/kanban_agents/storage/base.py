"""Data-access interface the pipeline and hint service depend on."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from kanban_agents.storage.models import (
    ChecklistItemCreate,
    ChecklistItemRecord,
    HintCreate,
    HintFilter,
    HintRecord,
    TagRecord,
    TaskRecord,
)


class TaskStore(Protocol):
    async def migrate(self) -> None: ...

    async def find_task(self, task_id: str) -> TaskRecord | None: ...

    async def update_task(self, task_id: str, **fields: Any) -> TaskRecord: ...

    async def count_checklist_items(self, task_id: str) -> int: ...

    async def create_checklist_items(
        self, items: list[ChecklistItemCreate]
    ) -> list[ChecklistItemRecord]: ...

    async def list_checklist_items(self, task_id: str) -> list[ChecklistItemRecord]: ...

    async def find_or_create_tag(self, board_id: str, name: str) -> TagRecord: ...

    async def link_tag(self, task_id: str, tag_id: str) -> None: ...

    async def list_task_tags(self, task_id: str) -> list[TagRecord]: ...

    async def create_hints(self, hints: list[HintCreate]) -> list[HintRecord]: ...

    async def find_hints(self, hint_filter: HintFilter) -> list[HintRecord]: ...

    async def get_hint(self, hint_id: str) -> HintRecord | None: ...

    async def update_hint(self, hint_id: str, **fields: Any) -> HintRecord: ...

    async def delete_hint(self, hint_id: str) -> bool: ...

    def transaction(self) -> AbstractAsyncContextManager["TaskStore"]:
        """Yield a store whose writes commit together or not at all."""
        ...
