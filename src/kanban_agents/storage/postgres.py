"""PostgreSQL-backed storage with automatic table migration."""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

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
HINT_UPDATABLE_FIELDS = frozenset({"applied", "title", "content", "data", "confidence"})

MIGRATIONS = (
    """
    CREATE TABLE IF NOT EXISTS tasks (
        task_id TEXT PRIMARY KEY,
        board_id TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        metadata_json JSONB NOT NULL DEFAULT '{}'::jsonb,
        context TEXT,
        priority TEXT,
        duration TEXT,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tags (
        tag_id TEXT PRIMARY KEY,
        board_id TEXT NOT NULL,
        name TEXT NOT NULL,
        color TEXT NOT NULL
    )
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_tags_board_name
    ON tags(board_id, lower(name))
    """,
    """
    CREATE TABLE IF NOT EXISTS task_tags (
        task_id TEXT NOT NULL REFERENCES tasks(task_id) ON DELETE CASCADE,
        tag_id TEXT NOT NULL REFERENCES tags(tag_id) ON DELETE CASCADE,
        PRIMARY KEY (task_id, tag_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS checklist_items (
        item_id TEXT PRIMARY KEY,
        task_id TEXT NOT NULL REFERENCES tasks(task_id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        is_done BOOLEAN NOT NULL DEFAULT FALSE,
        position INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS hints (
        hint_id TEXT PRIMARY KEY,
        task_id TEXT NOT NULL REFERENCES tasks(task_id) ON DELETE CASCADE,
        agent_id TEXT NOT NULL,
        hint_type TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT,
        data_json JSONB,
        confidence DOUBLE PRECISION,
        applied BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_hints_task_created
    ON hints(task_id, created_at DESC)
    """,
)


class PostgresTaskStore:
    """Persist tasks, tags, checklist items and hints in PostgreSQL.

    Every public call runs in its own connection and transaction;
    ``transaction()`` shares one of each across several calls.
    """

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("KANBAN_AGENTS_DATABASE_URL is required")
        self.database_url = database_url
        self._psycopg, self._dict_row, self._json_wrapper = self._load_psycopg()

    async def migrate(self) -> None:
        async with self.transaction() as session:
            await session.migrate()

    async def find_task(self, task_id: str) -> TaskRecord | None:
        async with self.transaction() as session:
            return await session.find_task(task_id)

    async def update_task(self, task_id: str, **fields: Any) -> TaskRecord:
        async with self.transaction() as session:
            return await session.update_task(task_id, **fields)

    async def count_checklist_items(self, task_id: str) -> int:
        async with self.transaction() as session:
            return await session.count_checklist_items(task_id)

    async def create_checklist_items(
        self, items: list[ChecklistItemCreate]
    ) -> list[ChecklistItemRecord]:
        async with self.transaction() as session:
            return await session.create_checklist_items(items)

    async def list_checklist_items(self, task_id: str) -> list[ChecklistItemRecord]:
        async with self.transaction() as session:
            return await session.list_checklist_items(task_id)

    async def find_or_create_tag(self, board_id: str, name: str) -> TagRecord:
        async with self.transaction() as session:
            return await session.find_or_create_tag(board_id, name)

    async def link_tag(self, task_id: str, tag_id: str) -> None:
        async with self.transaction() as session:
            await session.link_tag(task_id, tag_id)

    async def list_task_tags(self, task_id: str) -> list[TagRecord]:
        async with self.transaction() as session:
            return await session.list_task_tags(task_id)

    async def create_hints(self, hints: list[HintCreate]) -> list[HintRecord]:
        async with self.transaction() as session:
            return await session.create_hints(hints)

    async def find_hints(self, hint_filter: HintFilter) -> list[HintRecord]:
        async with self.transaction() as session:
            return await session.find_hints(hint_filter)

    async def get_hint(self, hint_id: str) -> HintRecord | None:
        async with self.transaction() as session:
            return await session.get_hint(hint_id)

    async def update_hint(self, hint_id: str, **fields: Any) -> HintRecord:
        async with self.transaction() as session:
            return await session.update_hint(hint_id, **fields)

    async def delete_hint(self, hint_id: str) -> bool:
        async with self.transaction() as session:
            return await session.delete_hint(hint_id)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresSession]:
        # The connection context commits on success and rolls back on error.
        conn = await self._psycopg.AsyncConnection.connect(
            self.database_url, row_factory=self._dict_row
        )
        async with conn:
            yield PostgresSession(conn, self._json_wrapper)

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        try:
            import psycopg
            from psycopg.rows import dict_row
            from psycopg.types.json import Json
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "PostgreSQL storage requires psycopg. "
                'Install with: python -m pip install "psycopg[binary]>=3.1,<4.0"'
            ) from exc
        return psycopg, dict_row, Json


class PostgresSession:
    """Store operations bound to one open connection and transaction."""

    def __init__(self, conn: Any, json_wrapper: Any) -> None:
        self._conn = conn
        self._json = json_wrapper

    async def migrate(self) -> None:
        for statement in MIGRATIONS:
            await self._conn.execute(statement)

    async def find_task(self, task_id: str) -> TaskRecord | None:
        row = await self._fetchone("SELECT * FROM tasks WHERE task_id = %s", (task_id,))
        return _row_to_task(row) if row else None

    async def update_task(self, task_id: str, **fields: Any) -> TaskRecord:
        unknown = set(fields) - TASK_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported task fields: {sorted(unknown)}")
        assignments = ["updated_at = %s"]
        params: list[Any] = [datetime.now(UTC)]
        for name, value in fields.items():
            if name == "metadata":
                assignments.append("metadata_json = %s")
                params.append(self._json(value or {}))
            else:
                assignments.append(f"{name} = %s")
                params.append(value)
        params.append(task_id)
        row = await self._fetchone(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = %s RETURNING *",
            tuple(params),
        )
        if row is None:
            raise KeyError(f"Task {task_id} does not exist")
        return _row_to_task(row)

    async def count_checklist_items(self, task_id: str) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS total FROM checklist_items WHERE task_id = %s", (task_id,)
        )
        return int(row["total"]) if row else 0

    async def create_checklist_items(
        self, items: list[ChecklistItemCreate]
    ) -> list[ChecklistItemRecord]:
        records = [
            ChecklistItemRecord(item_id=str(uuid.uuid4()), **item.model_dump()) for item in items
        ]
        if not records:
            return []
        async with self._conn.cursor() as cur:
            await cur.executemany(
                """
                INSERT INTO checklist_items (item_id, task_id, title, is_done, position)
                VALUES (%s, %s, %s, %s, %s)
                """,
                [
                    (record.item_id, record.task_id, record.title, record.is_done, record.position)
                    for record in records
                ],
            )
        return records

    async def list_checklist_items(self, task_id: str) -> list[ChecklistItemRecord]:
        rows = await self._fetchall(
            "SELECT * FROM checklist_items WHERE task_id = %s ORDER BY position ASC",
            (task_id,),
        )
        return [ChecklistItemRecord.model_validate(dict(row)) for row in rows]

    async def find_or_create_tag(self, board_id: str, name: str) -> TagRecord:
        clean_name = name.strip()
        row = await self._fetchone(
            "SELECT * FROM tags WHERE board_id = %s AND lower(name) = lower(%s) LIMIT 1",
            (board_id, clean_name),
        )
        if row is None:
            row = await self._fetchone(
                """
                INSERT INTO tags (tag_id, board_id, name, color)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (board_id, lower(name)) DO NOTHING
                RETURNING *
                """,
                (str(uuid.uuid4()), board_id, clean_name, DEFAULT_TAG_COLOR),
            )
        if row is None:
            row = await self._fetchone(
                "SELECT * FROM tags WHERE board_id = %s AND lower(name) = lower(%s) LIMIT 1",
                (board_id, clean_name),
            )
        if row is None:
            raise RuntimeError(f"Could not create tag {clean_name!r} on board {board_id}")
        return TagRecord.model_validate(dict(row))

    async def link_tag(self, task_id: str, tag_id: str) -> None:
        await self._conn.execute(
            """
            INSERT INTO task_tags (task_id, tag_id) VALUES (%s, %s)
            ON CONFLICT (task_id, tag_id) DO NOTHING
            """,
            (task_id, tag_id),
        )

    async def list_task_tags(self, task_id: str) -> list[TagRecord]:
        rows = await self._fetchall(
            """
            SELECT tags.* FROM tags
            JOIN task_tags ON task_tags.tag_id = tags.tag_id
            WHERE task_tags.task_id = %s
            ORDER BY tags.name
            """,
            (task_id,),
        )
        return [TagRecord.model_validate(dict(row)) for row in rows]

    async def create_hints(self, hints: list[HintCreate]) -> list[HintRecord]:
        if not hints:
            return []
        now = datetime.now(UTC)
        records = [
            HintRecord(hint_id=str(uuid.uuid4()), created_at=now, **hint.model_dump())
            for hint in hints
        ]
        async with self._conn.cursor() as cur:
            await cur.executemany(
                """
                INSERT INTO hints (
                    hint_id, task_id, agent_id, hint_type, title,
                    content, data_json, confidence, applied, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, FALSE, %s)
                """,
                [
                    (
                        record.hint_id,
                        record.task_id,
                        record.agent_id,
                        record.hint_type,
                        record.title,
                        record.content,
                        self._json(record.data) if record.data is not None else None,
                        record.confidence,
                        record.created_at,
                    )
                    for record in records
                ],
            )
        return records

    async def find_hints(self, hint_filter: HintFilter) -> list[HintRecord]:
        clauses: list[str] = []
        params: list[Any] = []
        if hint_filter.task_id is not None:
            clauses.append("task_id = %s")
            params.append(hint_filter.task_id)
        if hint_filter.hint_ids is not None:
            clauses.append("hint_id = ANY(%s)")
            params.append(list(hint_filter.hint_ids))
        if hint_filter.applied is not None:
            clauses.append("applied = %s")
            params.append(hint_filter.applied)
        if hint_filter.created_since is not None:
            clauses.append("created_at >= %s")
            params.append(hint_filter.created_since)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        if hint_filter.order == "review":
            order = "ORDER BY applied ASC, confidence DESC NULLS LAST, created_at DESC"
        else:
            order = "ORDER BY created_at DESC"
        limit = ""
        if hint_filter.limit is not None:
            limit = "LIMIT %s"
            params.append(hint_filter.limit)
        rows = await self._fetchall(f"SELECT * FROM hints {where} {order} {limit}", tuple(params))
        return [_row_to_hint(row) for row in rows]

    async def get_hint(self, hint_id: str) -> HintRecord | None:
        row = await self._fetchone("SELECT * FROM hints WHERE hint_id = %s", (hint_id,))
        return _row_to_hint(row) if row else None

    async def update_hint(self, hint_id: str, **fields: Any) -> HintRecord:
        unknown = set(fields) - HINT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported hint fields: {sorted(unknown)}")
        if not fields:
            current = await self.get_hint(hint_id)
            if current is None:
                raise KeyError(f"Hint {hint_id} does not exist")
            return current
        assignments: list[str] = []
        params: list[Any] = []
        for name, value in fields.items():
            if name == "data":
                assignments.append("data_json = %s")
                params.append(self._json(value) if value is not None else None)
            else:
                assignments.append(f"{name} = %s")
                params.append(value)
        params.append(hint_id)
        row = await self._fetchone(
            f"UPDATE hints SET {', '.join(assignments)} WHERE hint_id = %s RETURNING *",
            tuple(params),
        )
        if row is None:
            raise KeyError(f"Hint {hint_id} does not exist")
        return _row_to_hint(row)

    async def delete_hint(self, hint_id: str) -> bool:
        cur = await self._conn.execute("DELETE FROM hints WHERE hint_id = %s", (hint_id,))
        return cur.rowcount > 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresSession]:
        yield self

    async def _fetchone(self, query: str, params: tuple[Any, ...]) -> Any:
        cur = await self._conn.execute(query, params)
        return await cur.fetchone()

    async def _fetchall(self, query: str, params: tuple[Any, ...]) -> list[Any]:
        cur = await self._conn.execute(query, params)
        return await cur.fetchall()


def _parse_json_optional(raw: Any) -> dict[str, Any] | None:
    if raw is None:
        return None
    parsed = json.loads(raw) if isinstance(raw, str) else raw
    return parsed if isinstance(parsed, dict) else None


def _parse_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        return datetime.fromisoformat(raw)
    raise TypeError(f"Unsupported datetime value: {type(raw)!r}")


def _row_to_task(row: Any) -> TaskRecord:
    return TaskRecord(
        task_id=str(row["task_id"]),
        board_id=str(row["board_id"]),
        title=row["title"],
        description=row["description"],
        metadata=_parse_json_optional(row["metadata_json"]) or {},
        context=row["context"],
        priority=row["priority"],
        duration=row["duration"],
        created_at=_parse_datetime(row["created_at"]),
        updated_at=_parse_datetime(row["updated_at"]),
    )


def _row_to_hint(row: Any) -> HintRecord:
    return HintRecord(
        hint_id=str(row["hint_id"]),
        task_id=str(row["task_id"]),
        agent_id=row["agent_id"],
        hint_type=row["hint_type"],
        title=row["title"],
        content=row["content"],
        data=_parse_json_optional(row["data_json"]),
        confidence=row["confidence"],
        applied=bool(row["applied"]),
        created_at=_parse_datetime(row["created_at"]),
    )
