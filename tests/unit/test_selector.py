import asyncio

from conftest import SELECT_PROMPT, FakeGateway, selection

from kanban_agents.agents.selector import DEFAULT_REASONING, AgentSelector, default_selection
from kanban_agents.llm.errors import LLMTimeoutError

SELECTION_FLAGS = (
    "should_use_web_content",
    "should_use_summarization",
    "should_use_task_analysis",
    "should_use_context_extraction",
    "should_use_action_extraction",
)


def test_selector_falls_back_to_heuristics_when_model_fails() -> None:
    gateway = FakeGateway({SELECT_PROMPT: LLMTimeoutError("LLM request timed out after 120s")})

    result = asyncio.run(
        AgentSelector(gateway).select_agents("Plan the trip, then book hotels", None, True, 0)
    )

    assert result.success
    assert result.reasoning == DEFAULT_REASONING
    assert result.metadata == {"fallback": True}
    assert all(isinstance(getattr(result, flag), bool) for flag in SELECTION_FLAGS)
    assert result.should_use_web_content is True
    assert result.should_use_summarization is False
    assert result.should_use_action_extraction is True


def test_selector_falls_back_on_unparseable_response() -> None:
    gateway = FakeGateway({SELECT_PROMPT: "I think you should run everything"})

    result = asyncio.run(AgentSelector(gateway).select_agents("Call mom", None, False))

    assert result.reasoning == DEFAULT_REASONING
    assert result.should_use_web_content is False


def test_selector_uses_model_plan() -> None:
    gateway = FakeGateway({SELECT_PROMPT: selection(web=True, actions=False)})

    result = asyncio.run(
        AgentSelector(gateway).select_agents("Read https://example.com", None, True)
    )

    assert result.should_use_web_content is True
    assert result.should_use_action_extraction is False
    assert result.reasoning == "scripted selection"
    assert result.confidence == 0.9
    assert result.metadata is None


def test_default_selection_heuristics() -> None:
    simple = default_selection("Call mom", None, False)
    long_content = default_selection("Read article", None, True, url_content_length=800)
    numbered = default_selection("Order 2 chairs and 4 lamps", "", False)

    assert simple.should_use_action_extraction is False
    assert simple.should_use_task_analysis is True
    assert simple.confidence == 0.7
    assert long_content.should_use_summarization is True
    assert numbered.should_use_action_extraction is True
