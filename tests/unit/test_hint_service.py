import asyncio

import pytest

from kanban_agents.agents.models import (
    ActionExtractionResult,
    ActionItem,
    QualityCheck,
    SummarizationResult,
    TaskAnalysisResult,
    TaskAssistantResult,
)
from kanban_agents.config.settings import Settings
from kanban_agents.hints.service import HintNotFoundError, HintService
from kanban_agents.pipeline.errors import TaskNotFoundError
from kanban_agents.pipeline.models import AgentProcessingResult
from kanban_agents.storage.memory import InMemoryTaskStore
from kanban_agents.storage.models import ChecklistItemCreate, HintCreate, HintFilter


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def _analysis(confidence: float, **fields) -> TaskAnalysisResult:
    return TaskAnalysisResult(
        agent_id="task-analyzer-agent", success=True, confidence=confidence, **fields
    )


def _assistant(confidence: float, text: str = "Assistant plan") -> TaskAssistantResult:
    return TaskAssistantResult(
        agent_id="task-assistant-agent",
        success=True,
        confidence=confidence,
        quality_check=QualityCheck(final_result=text),
    )


def _hints_by_agent(store, task_id):
    hints = asyncio.run(store.find_hints(HintFilter(task_id=task_id)))
    return {(hint.agent_id, hint.hint_type): hint for hint in hints}


def test_only_the_most_confident_description_is_applied() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport", description="old")
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.81, suggested_description="Analyzer description"),
        task_assistant=_assistant(0.95, "Assistant description"),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    hints = _hints_by_agent(store, task.task_id)
    assert hints[("task-assistant-agent", "description")].applied is True
    assert hints[("task-analyzer-agent", "description")].applied is False
    assert asyncio.run(store.find_task(task.task_id)).description == "Assistant description"


def test_equal_confidence_ties_go_to_the_higher_priority_agent() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.9, suggested_description="Analyzer description"),
        task_assistant=_assistant(0.9, "Assistant description"),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    assert asyncio.run(store.find_task(task.task_id)).description == "Assistant description"


def test_summary_appends_to_the_applied_description() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id,
        summarization=SummarizationResult(
            agent_id="content-summarizer-agent",
            success=True,
            confidence=0.85,
            summary="Bring two photos.",
        ),
        task_assistant=_assistant(0.95, "Book an appointment."),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    description = asyncio.run(store.find_task(task.task_id)).description
    assert description == "Book an appointment.\n\n[Summary]\nBring two photos."


def test_low_confidence_hints_are_left_for_review() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.7, suggested_title="Renew passport soon", priority="high"),
    )

    created = asyncio.run(
        HintService(store, _settings()).create_hints_from_results(task.task_id, result)
    )

    assert len(created) == 2
    assert all(not hint.applied for hint in asyncio.run(store.find_hints(HintFilter())))
    assert asyncio.run(store.find_task(task.task_id)).title == "Renew passport"


def test_independent_hint_types_are_all_applied() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(
            0.9,
            suggested_title="Renew passport",
            context="DESK",
            priority="high",
            estimated_duration="1h",
        ),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    updated = asyncio.run(store.find_task(task.task_id))
    assert updated.title == "Renew passport"
    assert updated.context == "DESK"
    assert updated.priority == "HIGH"
    assert updated.duration == "1h"


def test_applying_tags_twice_never_duplicates_links() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    existing = store.add_tag(task.board_id, "Travel")
    service = HintService(store, _settings())

    async def scenario():
        await store.create_hints(
            [
                HintCreate(
                    task_id=task.task_id,
                    agent_id="context-extractor-agent",
                    hint_type="tags",
                    title="Suggested Tags",
                    data={"tags": ["travel", "admin"]},
                    confidence=0.9,
                )
            ]
        )
        (hint,) = await store.find_hints(HintFilter(task_id=task.task_id))
        await service.apply_hint_to_task(hint)
        await service.apply_hint_to_task(hint)
        return await store.list_task_tags(task.task_id)

    tags = asyncio.run(scenario())

    assert sorted(tag.name for tag in tags) == ["Travel", "admin"]
    assert existing.tag_id in {tag.tag_id for tag in tags}


def test_actions_are_appended_after_existing_checklist_items() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    asyncio.run(
        store.create_checklist_items(
            [
                ChecklistItemCreate(task_id=task.task_id, title="Existing one", position=0),
                ChecklistItemCreate(task_id=task.task_id, title="Existing two", position=1),
            ]
        )
    )
    result = AgentProcessingResult(
        task_id=task.task_id,
        action_extraction=ActionExtractionResult(
            agent_id="action-extractor-agent",
            success=True,
            confidence=0.8,
            actions=[
                ActionItem(description="Take passport photos"),
                ActionItem(description="Fill in the renewal form"),
            ],
            total_actions=2,
        ),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    items = asyncio.run(store.list_checklist_items(task.task_id))
    assert [(item.title, item.position) for item in items] == [
        ("Existing one", 0),
        ("Existing two", 1),
        ("Take passport photos", 2),
        ("Fill in the renewal form", 3),
    ]


class TagFailingStore(InMemoryTaskStore):
    async def link_tag(self, task_id: str, tag_id: str) -> None:
        raise RuntimeError("tag table locked")


def test_one_failing_hint_does_not_block_the_batch() -> None:
    store = TagFailingStore()
    task = store.add_task(title="renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.9, suggested_title="Renew passport", suggested_tags=["admin"]),
    )

    asyncio.run(HintService(store, _settings()).create_hints_from_results(task.task_id, result))

    hints = _hints_by_agent(store, task.task_id)
    assert hints[("task-analyzer-agent", "tags")].applied is False
    assert hints[("task-analyzer-agent", "title")].applied is True
    assert asyncio.run(store.find_task(task.task_id)).title == "Renew passport"
    assert asyncio.run(store.list_task_tags(task.task_id)) == []


def test_recency_window_mode_skips_duplicate_batches() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id, task_analysis=_analysis(0.5, suggested_title="Renew it")
    )
    service = HintService(store, _settings(hint_dedupe_mode="recency-window"))

    first = asyncio.run(service.create_hints_from_results(task.task_id, result))
    second = asyncio.run(service.create_hints_from_results(task.task_id, result))

    assert len(first) == 1
    assert second == []
    assert len(asyncio.run(store.find_hints(HintFilter(task_id=task.task_id)))) == 1


def test_append_mode_keeps_every_batch() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id, task_analysis=_analysis(0.5, suggested_title="Renew it")
    )
    service = HintService(store, _settings())

    asyncio.run(service.create_hints_from_results(task.task_id, result))
    asyncio.run(service.create_hints_from_results(task.task_id, result))

    assert len(asyncio.run(store.find_hints(HintFilter(task_id=task.task_id)))) == 2


def test_manual_apply_dismiss_and_delete() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    service = HintService(store, _settings())
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.5, suggested_title="Renew it", estimated_duration="2h"),
    )
    created = asyncio.run(service.create_hints_from_results(task.task_id, result))
    by_type = {hint.hint_type: hint for hint in created}

    applied = asyncio.run(service.apply_hint(by_type["title"].hint_id))
    dismissed = asyncio.run(service.dismiss_hint(by_type["duration"].hint_id))
    asyncio.run(service.delete_hint(by_type["duration"].hint_id))

    assert applied.applied is True
    assert dismissed.applied is True
    task_after = asyncio.run(store.find_task(task.task_id))
    assert task_after.title == "Renew it"
    assert task_after.duration is None
    remaining = asyncio.run(service.get_hints_for_task(task.task_id))
    assert [hint.hint_type for hint in remaining] == ["title"]
    with pytest.raises(HintNotFoundError):
        asyncio.run(service.delete_hint(by_type["duration"].hint_id))


def test_hint_lookups_raise_for_unknown_ids() -> None:
    service = HintService(InMemoryTaskStore(), _settings())

    with pytest.raises(HintNotFoundError):
        asyncio.run(service.apply_hint("missing"))
    with pytest.raises(HintNotFoundError):
        asyncio.run(service.dismiss_hint("missing"))
    with pytest.raises(TaskNotFoundError):
        asyncio.run(service.get_hints_for_task("missing"))


def test_threshold_is_configurable() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    result = AgentProcessingResult(
        task_id=task.task_id, task_analysis=_analysis(0.7, suggested_title="Renew it")
    )

    asyncio.run(
        HintService(store, _settings(auto_apply_threshold=0.6)).create_hints_from_results(
            task.task_id, result
        )
    )

    assert asyncio.run(store.find_task(task.task_id)).title == "Renew it"


class InterleavingStore(InMemoryTaskStore):
    """Commits another run's batch for the same task right after each insert."""

    def __init__(self) -> None:
        super().__init__()
        self.pending: list[HintCreate] = []

    async def create_hints(self, hints):
        records = await super().create_hints(hints)
        batch, self.pending = self.pending, []
        if batch:
            await super().create_hints(batch)
        return records


def test_auto_apply_only_touches_hints_from_its_own_batch() -> None:
    store = InterleavingStore()
    task = store.add_task(title="Renew passport", description="old")
    store.pending = [
        HintCreate(
            task_id=task.task_id,
            agent_id="task-analyzer-agent",
            hint_type="title",
            title="Suggested Title",
            content="Title from another run",
            confidence=0.99,
        )
    ]
    result = AgentProcessingResult(
        task_id=task.task_id,
        task_analysis=_analysis(0.9, priority="high"),
    )

    created = asyncio.run(
        HintService(store, _settings()).create_hints_from_results(task.task_id, result)
    )

    assert [hint.hint_type for hint in created] == ["priority"]
    updated = asyncio.run(store.find_task(task.task_id))
    assert updated.title == "Renew passport"
    assert updated.priority == "HIGH"
    hints = _hints_by_agent(store, task.task_id)
    assert hints[("task-analyzer-agent", "title")].applied is False
    assert hints[("task-analyzer-agent", "priority")].applied is True


def test_create_hints_returns_inserted_records() -> None:
    store = InMemoryTaskStore()
    task = store.add_task(title="Renew passport")
    hint = HintCreate(
        task_id=task.task_id,
        agent_id="task-analyzer-agent",
        hint_type="priority",
        title="Suggested Priority",
        content="low",
        confidence=0.4,
    )

    (record,) = asyncio.run(store.create_hints([hint]))

    assert asyncio.run(store.get_hint(record.hint_id)) == record
    assert record.applied is False
