from kanban_agents.agents.models import (
    ActionExtractionResult,
    ActionItem,
    ContextExtractionResult,
    SolutionProposal,
    SummarizationResult,
    TaskAnalysisResult,
    TaskAssistantResult,
    TaskStructure,
    WebContentResult,
)
from kanban_agents.hints.creators import build_hints, format_structure
from kanban_agents.pipeline.models import AgentProcessingResult


def _titles(hints) -> list[tuple[str, str]]:
    return [(hint.hint_type, hint.title) for hint in hints]


def test_failed_results_produce_no_hints() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        web_content=WebContentResult(agent_id="web-content-agent", success=False, error="404"),
        task_analysis=TaskAnalysisResult(
            agent_id="task-analyzer-agent", success=False, suggested_title="ignored"
        ),
    )

    assert build_hints("t-1", result) == []


def test_analysis_and_context_hints() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        task_analysis=TaskAnalysisResult(
            agent_id="task-analyzer-agent",
            success=True,
            confidence=0.9,
            suggested_title="Renew passport",
            suggested_tags=["admin"],
            priority="high",
        ),
        context_extraction=ContextExtractionResult(
            agent_id="context-extractor-agent",
            success=True,
            confidence=0.7,
            context="DESK",
            project_hints=["Travel"],
        ),
    )

    hints = build_hints("t-1", result)

    assert _titles(hints) == [
        ("title", "Suggested Title"),
        ("tags", "Suggested Tags"),
        ("priority", "Suggested Priority"),
        ("context", "Suggested Context"),
        ("project-hints", "Suggested Projects"),
    ]
    assert hints[1].data == {"tags": ["admin"]}
    assert hints[4].data == {"projects": ["Travel"]}
    assert all(hint.task_id == "t-1" for hint in hints)


def test_web_and_summary_hints_carry_metadata() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        web_content=WebContentResult(
            agent_id="web-content-agent",
            success=True,
            confidence=0.8,
            url="https://gov.example/renew",
            text_content="abcd",
            content_type="text/html",
        ),
        summarization=SummarizationResult(
            agent_id="content-summarizer-agent",
            success=True,
            confidence=0.85,
            summary="Bring photos.",
            word_count=2,
        ),
    )

    web, summary = build_hints("t-1", result)

    assert web.content == "Content from https://gov.example/renew"
    assert web.data["content_length"] == 4
    assert summary.hint_type == "summary"
    assert summary.content == "Bring photos."


def test_solutions_title_counts_total() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        action_extraction=ActionExtractionResult(
            agent_id="action-extractor-agent",
            success=True,
            confidence=0.75,
            actions=[ActionItem(description="Book an appointment")],
            total_actions=1,
            solutions=[SolutionProposal(title="Online", description="Renew online")],
            total_solutions=3,
        ),
    )

    actions, solutions = build_hints("t-1", result)

    assert actions.data["total_actions"] == 1
    assert solutions.title == "Proposed Solutions (3)"
    assert "1 solution approach to consider" in solutions.content


def test_empty_action_lists_are_skipped() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        action_extraction=ActionExtractionResult(agent_id="action-extractor-agent", success=True),
    )

    assert build_hints("t-1", result) == []


def test_assistant_hints_use_default_confidences() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        task_assistant=TaskAssistantResult(
            agent_id="task-assistant-agent",
            success=True,
            needs_clarification=True,
            clarification_questions=["Which country?", "By when?"],
            structure=TaskStructure(goal="Renew", desired_result="A valid passport"),
        ),
    )

    hints = build_hints("t-1", result)

    assert _titles(hints) == [
        ("help", "Clarification Questions"),
        ("help", "Task Structure"),
    ]
    assert hints[0].content == "Which country?\n\nBy when?"
    assert hints[0].confidence == 0.7
    assert hints[1].confidence == 0.8


def test_format_structure_lists_sections() -> None:
    text = format_structure(
        TaskStructure(
            goal="Renew passport",
            requirements=["Photos"],
            desired_result="New passport",
            assumptions=["Adult applicant"],
        )
    )

    assert text.startswith("**Goal:** Renew passport")
    assert "**Requirements:**\n- Photos" in text
    assert "**Constraints:**\nNone" in text
    assert text.endswith("**Assumptions:**\n- Adult applicant")


def test_assistant_zero_confidence_is_not_replaced_by_default() -> None:
    result = AgentProcessingResult(
        task_id="t-1",
        task_assistant=TaskAssistantResult(
            agent_id="task-assistant-agent",
            success=True,
            confidence=0.0,
            structure=TaskStructure(goal="Renew"),
        ),
    )

    (structure,) = build_hints("t-1", result)

    assert structure.confidence == 0.0
