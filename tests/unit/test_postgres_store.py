from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from kanban_agents.storage.models import HintCreate, HintFilter
from kanban_agents.storage.postgres import MIGRATIONS, PostgresSession, PostgresTaskStore

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


class FakeCursor:
    def __init__(self, rows: list[dict], rowcount: int = 0) -> None:
        self._rows = rows
        self.rowcount = rowcount

    async def fetchone(self):
        return self._rows[0] if self._rows else None

    async def fetchall(self):
        return list(self._rows)


class FakeBatchCursor:
    def __init__(self, batches: list[tuple[str, list[tuple]]]) -> None:
        self._batches = batches

    async def __aenter__(self) -> FakeBatchCursor:
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def executemany(self, query: str, rows: list[tuple]) -> None:
        self._batches.append((" ".join(query.split()), rows))


class FakeConnection:
    """Records SQL and replays queued result rows."""

    def __init__(self, *results: list[dict], rowcount: int = 0) -> None:
        self.results = list(results)
        self.rowcount = rowcount
        self.statements: list[tuple[str, tuple]] = []
        self.batches: list[tuple[str, list[tuple]]] = []

    def cursor(self) -> FakeBatchCursor:
        return FakeBatchCursor(self.batches)

    async def execute(self, query: str, params: tuple = ()) -> FakeCursor:
        self.statements.append((" ".join(query.split()), params))
        rows = self.results.pop(0) if self.results else []
        return FakeCursor(rows, self.rowcount)


def _task_row(**overrides) -> dict:
    row = {
        "task_id": "t-1",
        "board_id": "b-1",
        "title": "Renew passport",
        "description": None,
        "metadata_json": '{"url": "https://gov.example"}',
        "context": None,
        "priority": "HIGH",
        "duration": None,
        "created_at": NOW,
        "updated_at": NOW.isoformat(),
    }
    row.update(overrides)
    return row


def _session(conn: FakeConnection) -> PostgresSession:
    return PostgresSession(conn, json_wrapper=lambda value: ("json", value))


def test_store_requires_database_url() -> None:
    with pytest.raises(ValueError, match="KANBAN_AGENTS_DATABASE_URL is required"):
        PostgresTaskStore("")


def test_migrate_runs_every_statement() -> None:
    conn = FakeConnection()

    asyncio.run(_session(conn).migrate())

    assert len(conn.statements) == len(MIGRATIONS)
    assert any("CREATE TABLE IF NOT EXISTS hints" in sql for sql, _ in conn.statements)


def test_find_task_maps_row() -> None:
    conn = FakeConnection([_task_row()])

    task = asyncio.run(_session(conn).find_task("t-1"))

    assert task.metadata == {"url": "https://gov.example"}
    assert task.priority == "HIGH"
    assert task.updated_at == NOW


def test_update_task_builds_assignments() -> None:
    conn = FakeConnection([_task_row(title="New title")])

    task = asyncio.run(_session(conn).update_task("t-1", title="New title", metadata={"a": 1}))

    sql, params = conn.statements[0]
    assert sql.startswith("UPDATE tasks SET updated_at = %s, title = %s, metadata_json = %s")
    assert params[1:] == ("New title", ("json", {"a": 1}), "t-1")
    assert task.title == "New title"


def test_update_task_rejects_unknown_fields() -> None:
    with pytest.raises(ValueError, match="Unsupported task fields"):
        asyncio.run(_session(FakeConnection()).update_task("t-1", board_id="b-2"))


def test_find_hints_builds_filter_and_review_order() -> None:
    conn = FakeConnection([])

    asyncio.run(
        _session(conn).find_hints(
            HintFilter(task_id="t-1", applied=False, created_since=NOW, limit=5)
        )
    )

    sql, params = conn.statements[0]
    assert "WHERE task_id = %s AND applied = %s AND created_at >= %s" in sql
    assert "ORDER BY applied ASC, confidence DESC NULLS LAST, created_at DESC" in sql
    assert sql.endswith("LIMIT %s")
    assert params == ("t-1", False, NOW, 5)


def test_find_or_create_tag_falls_back_to_insert() -> None:
    tag_row = {"tag_id": "g-1", "board_id": "b-1", "name": "travel", "color": "#94a3b8"}
    conn = FakeConnection([], [tag_row])

    tag = asyncio.run(_session(conn).find_or_create_tag("b-1", " travel "))

    assert tag.tag_id == "g-1"
    assert conn.statements[1][0].startswith("INSERT INTO tags")
    assert conn.statements[1][1][1:3] == ("b-1", "travel")


def test_delete_hint_reports_rowcount() -> None:
    assert asyncio.run(_session(FakeConnection(rowcount=1)).delete_hint("h-1")) is True
    assert asyncio.run(_session(FakeConnection(rowcount=0)).delete_hint("h-1")) is False


def test_create_hints_inserts_client_side_ids() -> None:
    conn = FakeConnection()
    hint = HintCreate(
        task_id="t-1",
        agent_id="task-analyzer-agent",
        hint_type="tags",
        title="Suggested Tags",
        data={"tags": ["admin"]},
        confidence=0.8,
    )

    (record,) = asyncio.run(_session(conn).create_hints([hint]))

    sql, rows = conn.batches[0]
    assert sql.startswith("INSERT INTO hints")
    assert rows[0][0] == record.hint_id
    assert rows[0][6] == ("json", {"tags": ["admin"]})
    assert rows[0][8] == record.created_at
    assert conn.statements == []
