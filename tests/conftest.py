from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from kanban_agents.agents import AgentSuite, build_agents
from kanban_agents.config.settings import Settings
from kanban_agents.llm.errors import LLMResponseError
from kanban_agents.storage.memory import InMemoryTaskStore
from kanban_agents.web.fetcher import HttpFetcher

SELECT_PROMPT = "Decide which task-processing agents"
SUMMARY_PROMPT = "Summarize the content below"
ANALYSIS_PROMPT = "Analyze this personal task"
CONTEXT_PROMPT = "Extract the working context"
ACTIONS_PROMPT = "Break this task into concrete"
ASSISTANT_PROMPT = "You help a person complete a task"
MARKDOWN_PROMPT = "Reformat this task description"


class FakeGateway:
    """Test-only text generator answering by prompt marker."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[dict[str, Any]] = []

    @property
    def prompts(self) -> list[str]:
        return [call["prompt"] for call in self.calls]

    def prompts_for(self, marker: str) -> list[str]:
        return [prompt for prompt in self.prompts if marker in prompt]

    async def ensure_model_available(self) -> None:
        return None

    async def generate(self, prompt: str, *, fmt: str = "json", temperature: float = 0.5) -> str:
        self.calls.append({"prompt": prompt, "fmt": fmt, "temperature": temperature})
        for marker, reply in self.responses.items():
            if marker not in prompt:
                continue
            if isinstance(reply, BaseException):
                raise reply
            if isinstance(reply, (dict, list)):
                return json.dumps(reply)
            return reply
        raise LLMResponseError("No scripted response for prompt")


def selection(**overrides: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "shouldUseWebContent": False,
        "shouldUseSummarization": False,
        "shouldUseTaskAnalysis": True,
        "shouldUseContextExtraction": True,
        "shouldUseActionExtraction": True,
        "reasoning": "scripted selection",
        "confidence": 0.9,
    }
    keys = {
        "web": "shouldUseWebContent",
        "summary": "shouldUseSummarization",
        "analysis": "shouldUseTaskAnalysis",
        "context": "shouldUseContextExtraction",
        "actions": "shouldUseActionExtraction",
    }
    for name, value in overrides.items():
        payload[keys[name]] = value
    return payload


def mock_fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> HttpFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return HttpFetcher(client=client)


def no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected HTTP request to {request.url}")


@pytest.fixture
def store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def agents(gateway: FakeGateway) -> AgentSuite:
    return build_agents(gateway, fetcher=mock_fetcher(no_network))


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)
