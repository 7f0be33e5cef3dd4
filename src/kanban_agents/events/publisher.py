"""Progress and completion events published to external subscribers."""

from __future__ import annotations

import logging
from collections import deque
from datetime import UTC, datetime
from typing import Annotated, Any, Literal, Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AgentProgressEvent(BaseModel):
    type: Literal["agent.progress"] = "agent.progress"
    task_id: str
    board_id: str
    stage: str
    progress: int
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class AgentCompletedEvent(BaseModel):
    type: Literal["agent.completed"] = "agent.completed"
    task_id: str
    board_id: str
    duration_ms: int
    successful_agent_count: int
    errors: list[str] | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


AgentEvent = Annotated[AgentProgressEvent | AgentCompletedEvent, Field(discriminator="type")]


class EventPublisher(Protocol):
    async def publish(self, event: AgentEvent) -> None: ...


class LoggingEventPublisher:
    """Default publisher: writes events to the log."""

    async def publish(self, event: AgentEvent) -> None:
        if isinstance(event, AgentProgressEvent):
            logger.info(
                "task=%s stage=%s progress=%s %s",
                event.task_id,
                event.stage,
                event.progress,
                event.message,
            )
        else:
            logger.info(
                "task=%s completed in %sms with %s successful agents (%s errors)",
                event.task_id,
                event.duration_ms,
                event.successful_agent_count,
                len(event.errors or []),
            )


class InMemoryEventPublisher:
    """Keeps the most recent events; used by tests and the HTTP surface."""

    def __init__(self, max_events: int = 1000) -> None:
        self._events: deque[AgentEvent] = deque(maxlen=max_events)

    async def publish(self, event: AgentEvent) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[AgentEvent]:
        return list(self._events)

    def events_for(self, task_id: str) -> list[AgentEvent]:
        return [event for event in self._events if event.task_id == task_id]


class CompositeEventPublisher:
    """Fans out to several publishers; one failing sink never blocks the others."""

    def __init__(self, *publishers: EventPublisher) -> None:
        self._publishers = publishers

    async def publish(self, event: AgentEvent) -> None:
        for publisher in self._publishers:
            try:
                await publisher.publish(event)
            except Exception:  # noqa: BLE001
                logger.exception("Event publisher %s failed", type(publisher).__name__)
