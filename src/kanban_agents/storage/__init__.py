"""Storage backends and models."""

from kanban_agents.storage.base import TaskStore
from kanban_agents.storage.memory import InMemoryTaskStore
from kanban_agents.storage.models import (
    ChecklistItemCreate,
    ChecklistItemRecord,
    HintCreate,
    HintFilter,
    HintRecord,
    TagRecord,
    TaskRecord,
)
from kanban_agents.storage.postgres import PostgresTaskStore

__all__ = [
    "ChecklistItemCreate",
    "ChecklistItemRecord",
    "HintCreate",
    "HintFilter",
    "HintRecord",
    "InMemoryTaskStore",
    "PostgresTaskStore",
    "TagRecord",
    "TaskRecord",
    "TaskStore",
]
