"""In-memory storage backend for tests only."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from kanban_agents.storage.models import (
    TASK_UPDATABLE_FIELDS,
    ChecklistItemCreate,
    ChecklistItemRecord,
    HintCreate,
    HintFilter,
    HintRecord,
    TagRecord,
    TaskRecord,
)

DEFAULT_TAG_COLOR = "#94a3b8"


class InMemoryTaskStore:
    """Simple in-memory implementation for unit tests.

    Records are replaced, never mutated, so a transaction can snapshot the
    container dicts shallowly and restore them on error.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, TaskRecord] = {}
        self._tags: dict[str, TagRecord] = {}
        self._task_tags: set[tuple[str, str]] = set()
        self._checklist: dict[str, ChecklistItemRecord] = {}
        self._hints: dict[str, HintRecord] = {}
        self._hint_seq: dict[str, int] = {}
        self._next_seq = 1
        self._tx_lock = asyncio.Lock()

    async def migrate(self) -> None:
        return None

    def add_task(
        self,
        *,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
        board_id: str = "board-1",
        task_id: str | None = None,
    ) -> TaskRecord:
        now = datetime.now(UTC)
        record = TaskRecord(
            task_id=task_id or str(uuid4()),
            board_id=board_id,
            title=title,
            description=description,
            metadata=dict(metadata or {}),
            created_at=now,
            updated_at=now,
        )
        self._tasks[record.task_id] = record
        return record

    def add_tag(self, board_id: str, name: str, color: str = DEFAULT_TAG_COLOR) -> TagRecord:
        tag = TagRecord(tag_id=str(uuid4()), board_id=board_id, name=name, color=color)
        self._tags[tag.tag_id] = tag
        return tag

    async def find_task(self, task_id: str) -> TaskRecord | None:
        return self._tasks.get(task_id)

    async def update_task(self, task_id: str, **fields: Any) -> TaskRecord:
        unknown = set(fields) - TASK_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {sorted(unknown)}")
        current = self._tasks.get(task_id)
        if current is None:
            raise KeyError(f"Task {task_id} does not exist")
        updated = current.model_copy(update={**fields, "updated_at": datetime.now(UTC)})
        self._tasks[task_id] = updated
        return updated

    async def count_checklist_items(self, task_id: str) -> int:
        return sum(1 for item in self._checklist.values() if item.task_id == task_id)

    async def create_checklist_items(
        self, items: list[ChecklistItemCreate]
    ) -> list[ChecklistItemRecord]:
        created = []
        for item in items:
            record = ChecklistItemRecord(item_id=str(uuid4()), **item.model_dump())
            self._checklist[record.item_id] = record
            created.append(record)
        return created

    async def list_checklist_items(self, task_id: str) -> list[ChecklistItemRecord]:
        items = [item for item in self._checklist.values() if item.task_id == task_id]
        return sorted(items, key=lambda item: item.position)

    async def find_or_create_tag(self, board_id: str, name: str) -> TagRecord:
        wanted = name.strip().lower()
        for tag in self._tags.values():
            if tag.board_id == board_id and tag.name.lower() == wanted:
                return tag
        return self.add_tag(board_id, name.strip())

    async def link_tag(self, task_id: str, tag_id: str) -> None:
        self._task_tags.add((task_id, tag_id))

    async def list_task_tags(self, task_id: str) -> list[TagRecord]:
        return [self._tags[tag_id] for owner, tag_id in sorted(self._task_tags) if owner == task_id]

    async def create_hints(self, hints: list[HintCreate]) -> list[HintRecord]:
        now = datetime.now(UTC)
        records = [
            HintRecord(hint_id=str(uuid4()), created_at=now, **hint.model_dump()) for hint in hints
        ]
        for record in records:
            self._hints[record.hint_id] = record
            self._hint_seq[record.hint_id] = self._next_seq
            self._next_seq += 1
        return records

    async def find_hints(self, hint_filter: HintFilter) -> list[HintRecord]:
        matches = [
            hint for hint in self._hints.values() if _matches(hint, hint_filter)
        ]
        newest_first = sorted(
            matches,
            key=lambda hint: (hint.created_at, self._hint_seq[hint.hint_id]),
            reverse=True,
        )
        if hint_filter.order == "review":
            # Stable sorts: newest first, then confidence desc, then unapplied first.
            newest_first.sort(key=lambda hint: -(hint.confidence or 0.0))
            newest_first.sort(key=lambda hint: hint.applied)
        if hint_filter.limit is not None:
            return newest_first[: hint_filter.limit]
        return newest_first

    async def get_hint(self, hint_id: str) -> HintRecord | None:
        return self._hints.get(hint_id)

    async def update_hint(self, hint_id: str, **fields: Any) -> HintRecord:
        current = self._hints.get(hint_id)
        if current is None:
            raise KeyError(f"Hint {hint_id} does not exist")
        updated = current.model_copy(update=fields)
        self._hints[hint_id] = updated
        return updated

    async def delete_hint(self, hint_id: str) -> bool:
        self._hint_seq.pop(hint_id, None)
        return self._hints.pop(hint_id, None) is not None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryTaskStore]:
        async with self._tx_lock:
            snapshot = (
                dict(self._tasks),
                dict(self._tags),
                set(self._task_tags),
                dict(self._checklist),
                dict(self._hints),
                dict(self._hint_seq),
            )
            try:
                yield self
            except BaseException:
                (
                    self._tasks,
                    self._tags,
                    self._task_tags,
                    self._checklist,
                    self._hints,
                    self._hint_seq,
                ) = snapshot
                raise


def _matches(hint: HintRecord, hint_filter: HintFilter) -> bool:
    if hint_filter.task_id is not None and hint.task_id != hint_filter.task_id:
        return False
    if hint_filter.hint_ids is not None and hint.hint_id not in hint_filter.hint_ids:
        return False
    if hint_filter.applied is not None and hint.applied != hint_filter.applied:
        return False
    if hint_filter.created_since is not None and hint.created_at < hint_filter.created_since:
        return False
    return True
