"""Hint materialization, conflict resolution and application to tasks."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from kanban_agents.config.settings import Settings, get_settings
from kanban_agents.hints.creators import build_hints
from kanban_agents.pipeline.errors import TaskNotFoundError
from kanban_agents.pipeline.models import AgentProcessingResult
from kanban_agents.storage.base import TaskStore
from kanban_agents.storage.models import ChecklistItemCreate, HintCreate, HintFilter, HintRecord

logger = logging.getLogger(__name__)

SUPPLEMENTARY_HINT_TYPES = frozenset({"summary", "help"})
INFORMATIONAL_HINT_TYPES = frozenset({"web-content", "project-hints", "solutions"})
PRIORITY_MAP = {"low": "LOW", "medium": "MEDIUM", "high": "HIGH"}


class HintNotFoundError(LookupError):
    def __init__(self, hint_id: str) -> None:
        super().__init__(f"Hint not found: {hint_id}")
        self.hint_id = hint_id


class HintService:
    """Turns an agent run into persisted hints and auto-applies the confident ones."""

    def __init__(self, store: TaskStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    async def create_hints_from_results(
        self, task_id: str, result: AgentProcessingResult, *, auto_apply: bool = True
    ) -> list[HintRecord]:
        hints = build_hints(task_id, result)
        if not hints:
            return []

        async with self.store.transaction() as tx:
            if self.settings.hint_dedupe_mode == "recency-window":
                hints = await self._drop_recent_duplicates(tx, task_id, hints)
                if not hints:
                    logger.info("All hints for task %s already exist; nothing created", task_id)
                    return []
            created = await tx.create_hints(hints)

        logger.info(
            "Created %s hints for task %s (%s)",
            len(hints),
            task_id,
            ", ".join(sorted({hint.hint_type for hint in hints})),
        )
        if auto_apply:
            await self.auto_apply_high_confidence_hints(
                task_id, [hint.hint_id for hint in created]
            )
        return created

    async def auto_apply_high_confidence_hints(
        self, task_id: str, hint_ids: list[str]
    ) -> list[HintRecord]:
        """Apply qualifying hints; failures are logged and never raised."""
        applied: list[HintRecord] = []
        if not hint_ids:
            return applied
        try:
            candidates = await self.store.find_hints(
                HintFilter(hint_ids=hint_ids, applied=False, order="newest")
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load hints for auto-apply on task %s", task_id)
            return applied

        threshold = self.settings.auto_apply_threshold
        confident = [
            hint
            for hint in reversed(candidates)
            if hint.confidence is not None and hint.confidence >= threshold
        ]
        if not confident:
            logger.debug("No high-confidence hints to auto-apply for task %s", task_id)
            return applied

        selected = self.select_best_hints(confident)
        logger.info(
            "Auto-applying %s hints for task %s: %s",
            len(selected),
            task_id,
            ", ".join(f"{hint.hint_type} ({hint.confidence:.0%})" for hint in selected),
        )
        for hint in selected:
            try:
                applied.append(await self.apply_hint_to_task(hint))
            except Exception:  # noqa: BLE001
                logger.exception("Failed to auto-apply hint %s", hint.hint_id)
        return applied

    def select_best_hints(self, hints: Iterable[HintRecord]) -> list[HintRecord]:
        """Keep one description hint, then supplementary hints, then everything else."""
        hints = list(hints)
        priority = self.settings.hint_agent_priority
        descriptions = sorted(
            (hint for hint in hints if hint.hint_type == "description"),
            key=lambda hint: (-(hint.confidence or 0.0), -priority.get(hint.agent_id, 0)),
        )
        selected = descriptions[:1]
        if len(descriptions) > 1:
            logger.debug(
                "Selected description hint from %s out of %s candidates",
                selected[0].agent_id,
                len(descriptions),
            )
        selected += [hint for hint in hints if hint.hint_type in SUPPLEMENTARY_HINT_TYPES]
        selected += [
            hint
            for hint in hints
            if hint.hint_type != "description" and hint.hint_type not in SUPPLEMENTARY_HINT_TYPES
        ]
        return selected

    async def apply_hint_to_task(self, hint: HintRecord) -> HintRecord:
        """Mark the hint applied and write its value to the task in one transaction."""
        async with self.store.transaction() as tx:
            task = await tx.find_task(hint.task_id)
            if task is None:
                raise TaskNotFoundError(hint.task_id)
            marked = await tx.update_hint(hint.hint_id, applied=True)
            updates: dict[str, Any] = {}
            content = hint.content
            data = hint.data or {}
            kind = hint.hint_type

            if kind in {"title", "description", "context", "duration"}:
                if content:
                    updates[kind] = content
            elif kind == "tags":
                for name in data.get("tags") or []:
                    tag = await tx.find_or_create_tag(task.board_id, name)
                    await tx.link_tag(task.task_id, tag.tag_id)
            elif kind == "actions":
                actions = data.get("actions") or []
                if actions:
                    offset = await tx.count_checklist_items(task.task_id)
                    await tx.create_checklist_items(
                        [
                            ChecklistItemCreate(
                                task_id=task.task_id,
                                title=action["description"],
                                position=offset + index,
                            )
                            for index, action in enumerate(actions)
                        ]
                    )
            elif kind == "summary":
                if content:
                    updates["description"] = _append(task.description, "[Summary]\n", content)
            elif kind == "help":
                if content:
                    updates["description"] = _append(
                        task.description, "## Task Help\n\n", content
                    )
            elif kind == "priority":
                if content:
                    mapped = PRIORITY_MAP.get(content.lower())
                    if mapped:
                        updates["priority"] = mapped
                    else:
                        logger.warning("Invalid priority value: %s", content)
            elif kind in INFORMATIONAL_HINT_TYPES:
                logger.debug("Informational hint type %s is not applied", kind)
            else:
                logger.warning("Unknown hint type for apply: %s", kind)

            if updates:
                await tx.update_task(task.task_id, **updates)
        logger.info("Applied hint %s (%s) to task %s", hint.hint_id, kind, hint.task_id)
        return marked

    async def apply_hint(self, hint_id: str) -> HintRecord:
        hint = await self.store.get_hint(hint_id)
        if hint is None:
            raise HintNotFoundError(hint_id)
        if hint.applied:
            return hint
        return await self.apply_hint_to_task(hint)

    async def dismiss_hint(self, hint_id: str) -> HintRecord:
        if await self.store.get_hint(hint_id) is None:
            raise HintNotFoundError(hint_id)
        return await self.store.update_hint(hint_id, applied=True)

    async def delete_hint(self, hint_id: str) -> None:
        if not await self.store.delete_hint(hint_id):
            raise HintNotFoundError(hint_id)

    async def get_hints_for_task(self, task_id: str) -> list[HintRecord]:
        if await self.store.find_task(task_id) is None:
            raise TaskNotFoundError(task_id)
        return await self.store.find_hints(HintFilter(task_id=task_id, order="review"))

    async def _drop_recent_duplicates(
        self, tx: TaskStore, task_id: str, hints: list[HintCreate]
    ) -> list[HintCreate]:
        since = datetime.now(UTC) - timedelta(seconds=self.settings.hint_dedupe_window_s)
        existing = await tx.find_hints(HintFilter(task_id=task_id, created_since=since))
        seen = {_dedupe_key(hint) for hint in existing}
        fresh = [hint for hint in hints if _dedupe_key(hint) not in seen]
        if len(fresh) < len(hints):
            logger.info(
                "Skipped %s duplicate hints for task %s", len(hints) - len(fresh), task_id
            )
        return fresh


def _dedupe_key(hint: HintCreate) -> tuple[str, str, str | None, str]:
    data = json.dumps(hint.data or {}, sort_keys=True, default=str)
    return hint.agent_id, hint.hint_type, hint.content, data


def _append(description: str | None, heading: str, content: str) -> str:
    if description:
        return f"{description}\n\n{heading}{content}"
    return f"{heading}{content}"
