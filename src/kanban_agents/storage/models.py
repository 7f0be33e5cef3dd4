"""Storage models shared by the pipeline, hint service and persistence backends."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

HintType = Literal[
    "title",
    "description",
    "context",
    "tags",
    "actions",
    "solutions",
    "summary",
    "priority",
    "duration",
    "help",
    "web-content",
    "project-hints",
]
TaskPriorityLevel = Literal["LOW", "MEDIUM", "HIGH"]

TASK_UPDATABLE_FIELDS = frozenset(
    {"title", "description", "context", "priority", "duration", "metadata"}
)


class TaskRecord(BaseModel):
    """Snapshot of a board task."""

    task_id: str
    board_id: str
    title: str
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    context: str | None = None
    priority: TaskPriorityLevel | None = None
    duration: str | None = None
    created_at: datetime
    updated_at: datetime


class TagRecord(BaseModel):
    tag_id: str
    board_id: str
    name: str
    color: str


class ChecklistItemCreate(BaseModel):
    task_id: str
    title: str
    is_done: bool = False
    position: int


class ChecklistItemRecord(ChecklistItemCreate):
    item_id: str


class HintCreate(BaseModel):
    """A hint about to be persisted."""

    task_id: str
    agent_id: str
    hint_type: HintType
    title: str
    content: str | None = None
    data: dict[str, Any] | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class HintRecord(HintCreate):
    hint_id: str
    applied: bool = False
    created_at: datetime


class HintFilter(BaseModel):
    task_id: str | None = None
    hint_ids: list[str] | None = None
    applied: bool | None = None
    created_since: datetime | None = None
    limit: int | None = Field(default=None, ge=1)
    order: Literal["review", "newest"] = "review"
