"""Specialized agents and the bundle the pipeline runs them from."""

from __future__ import annotations

from dataclasses import dataclass

from kanban_agents.agents.action_extractor import ActionExtractorAgent
from kanban_agents.agents.action_filter import filter_trivial_actions, is_trivial_action
from kanban_agents.agents.base import TextGenerator
from kanban_agents.agents.context_extractor import ContextExtractorAgent
from kanban_agents.agents.markdown_formatter import MarkdownFormatterAgent
from kanban_agents.agents.selector import AgentSelector, default_selection
from kanban_agents.agents.summarizer import SummarizerAgent
from kanban_agents.agents.task_analyzer import TaskAnalyzerAgent
from kanban_agents.agents.task_assistant import TaskAssistantAgent
from kanban_agents.agents.web_content import WebContentAgent, extract_url
from kanban_agents.web.fetcher import HttpFetcher


@dataclass(slots=True)
class AgentSuite:
    selector: AgentSelector
    web_content: WebContentAgent
    summarizer: SummarizerAgent
    task_analyzer: TaskAnalyzerAgent
    context_extractor: ContextExtractorAgent
    action_extractor: ActionExtractorAgent
    task_assistant: TaskAssistantAgent
    markdown_formatter: MarkdownFormatterAgent


def build_agents(gateway: TextGenerator, *, fetcher: HttpFetcher | None = None) -> AgentSuite:
    return AgentSuite(
        selector=AgentSelector(gateway),
        web_content=WebContentAgent(fetcher),
        summarizer=SummarizerAgent(gateway),
        task_analyzer=TaskAnalyzerAgent(gateway),
        context_extractor=ContextExtractorAgent(gateway),
        action_extractor=ActionExtractorAgent(gateway),
        task_assistant=TaskAssistantAgent(gateway),
        markdown_formatter=MarkdownFormatterAgent(gateway),
    )


__all__ = [
    "ActionExtractorAgent",
    "AgentSelector",
    "AgentSuite",
    "ContextExtractorAgent",
    "MarkdownFormatterAgent",
    "SummarizerAgent",
    "TaskAnalyzerAgent",
    "TaskAssistantAgent",
    "WebContentAgent",
    "build_agents",
    "default_selection",
    "extract_url",
    "filter_trivial_actions",
    "is_trivial_action",
]
