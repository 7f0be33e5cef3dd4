import asyncio

from kanban_agents.events.publisher import (
    AgentProgressEvent,
    CompositeEventPublisher,
    InMemoryEventPublisher,
)
from kanban_agents.pipeline.models import ProcessingStage
from kanban_agents.pipeline.progress import ProgressTracker


class ExplodingPublisher:
    async def publish(self, event) -> None:
        raise RuntimeError("broker down")


def test_progress_steps_are_clamped_to_100() -> None:
    tracker = ProgressTracker("task-1", step=40)

    async def scenario() -> None:
        for _ in range(4):
            await tracker.emit(ProcessingStage.ANALYZING_TASK, "tick")

    asyncio.run(scenario())

    assert [entry.progress for entry in tracker.history] == [40, 80, 100, 100]


def test_both_sinks_receive_entries() -> None:
    publisher = InMemoryEventPublisher()
    received = []
    tracker = ProgressTracker("task-1", "board-1", publisher=publisher, callback=received.append)

    asyncio.run(tracker.emit(ProcessingStage.INITIALIZING, "Starting", {"a": 1}))

    assert [entry.message for entry in received] == ["Starting"]
    event = publisher.events[0]
    assert isinstance(event, AgentProgressEvent)
    assert event.stage == "initializing"
    assert event.board_id == "board-1"
    assert event.details == {"a": 1}


def test_async_callback_is_awaited() -> None:
    received = []

    async def callback(entry) -> None:
        received.append(entry.stage)

    tracker = ProgressTracker("task-1", callback=callback)

    asyncio.run(tracker.emit(ProcessingStage.COMPLETED, "done"))

    assert received == [ProcessingStage.COMPLETED]


def test_sink_failures_are_isolated() -> None:
    def failing_callback(entry) -> None:
        raise ValueError("ui gone")

    tracker = ProgressTracker(
        "task-1", "board-1", publisher=ExplodingPublisher(), callback=failing_callback
    )

    async def scenario() -> None:
        await tracker.emit(ProcessingStage.INITIALIZING, "one")
        await tracker.emit(ProcessingStage.DETECTING_URL, "two")

    asyncio.run(scenario())

    assert [entry.progress for entry in tracker.history] == [5, 10]


def test_events_are_not_published_without_board() -> None:
    publisher = InMemoryEventPublisher()
    tracker = ProgressTracker("task-1", publisher=publisher)

    asyncio.run(tracker.emit(ProcessingStage.INITIALIZING, "Starting"))

    assert publisher.events == []
    assert len(tracker.history) == 1


def test_concurrent_emitters_keep_history_monotonic() -> None:
    async def slow_callback(entry) -> None:
        await asyncio.sleep(0)

    tracker = ProgressTracker("task-1", callback=slow_callback)

    async def scenario() -> None:
        await asyncio.gather(
            *(tracker.emit(ProcessingStage.ANALYZING_TASK, f"branch {i}") for i in range(6))
        )

    asyncio.run(scenario())

    values = [entry.progress for entry in tracker.history]
    assert values == sorted(values)
    assert values[-1] == 30


def test_composite_publisher_continues_after_failure() -> None:
    memory = InMemoryEventPublisher()
    composite = CompositeEventPublisher(ExplodingPublisher(), memory)
    tracker = ProgressTracker("task-1", "board-1", publisher=composite)

    asyncio.run(tracker.emit(ProcessingStage.INITIALIZING, "Starting"))

    assert len(memory.events_for("task-1")) == 1
