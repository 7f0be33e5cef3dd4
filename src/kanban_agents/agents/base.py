"""Shared plumbing for prompt -> parse -> typed-result agents."""

from __future__ import annotations

import logging
from typing import Any, Protocol, TypeVar
from urllib.parse import urlparse

from kanban_agents.agents.constants import (
    MAX_CONTENT_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    TRUNCATION_MARKER,
    Confidence,
)
from kanban_agents.agents.models import AgentResult
from kanban_agents.llm.gateway import ResponseFormat

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=AgentResult)

NO_INVENTION_RULE = (
    "Only use facts present in the task title, description or supplied content. "
    "Never invent names, dates, numbers or requirements that are not there."
)


class TextGenerator(Protocol):
    async def generate(
        self, prompt: str, *, fmt: ResponseFormat = "json", temperature: float = 0.5
    ) -> str: ...

    async def ensure_model_available(self) -> None: ...


class InputValidationError(ValueError):
    """Input rejected before any model call is made."""


def validate_title(title: str | None) -> str:
    if not isinstance(title, str) or not title:
        raise InputValidationError("Title is required and must be a string")
    if not title.strip():
        raise InputValidationError("Title cannot be empty")
    if len(title) > MAX_TITLE_LENGTH:
        raise InputValidationError(
            f"Title exceeds maximum length of {MAX_TITLE_LENGTH} characters"
        )
    return title


def validate_description(description: str | None) -> str | None:
    if description is None:
        return None
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise InputValidationError(
            f"Description exceeds maximum length of {MAX_DESCRIPTION_LENGTH} characters"
        )
    return description


def validate_url(url: str | None) -> str:
    if not isinstance(url, str) or not url:
        raise InputValidationError("URL is required and must be a string")
    if len(url) > MAX_URL_LENGTH:
        raise InputValidationError(f"URL exceeds maximum length of {MAX_URL_LENGTH} characters")
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise InputValidationError("URL must use http or https protocol")
    if not parsed.netloc:
        raise InputValidationError("Invalid URL format")
    return url


def validate_content_size(content: str | None, *, max_length: int = MAX_CONTENT_LENGTH) -> str:
    if not isinstance(content, str) or not content:
        raise InputValidationError("Content is required and must be a string")
    if len(content) > max_length:
        raise InputValidationError(f"Content exceeds maximum length of {max_length} characters")
    return content


def truncate_content(content: str, max_length: int = MAX_CONTENT_LENGTH) -> str:
    if len(content) <= max_length:
        return content
    return content[:max_length] + TRUNCATION_MARKER


def reported_confidence(
    reported: float | None, default: float, *, populated: bool = True
) -> float:
    """Prefer the model's own score, including 0.0; an empty payload gets MEDIUM at most."""
    if reported is not None:
        return reported
    return default if populated else min(default, Confidence.MEDIUM)


class BaseAgent:
    agent_id = "base-agent"

    def __init__(self, gateway: TextGenerator) -> None:
        self.gateway = gateway

    async def call_llm(
        self, prompt: str, *, temperature: float, fmt: ResponseFormat = "json"
    ) -> str:
        await self.gateway.ensure_model_available()
        return await self.gateway.generate(prompt, fmt=fmt, temperature=temperature)

    def failure(self, result_type: type[ResultT], error: str, **fields: Any) -> ResultT:
        logger.warning("%s failed: %s", self.agent_id, error)
        return result_type(
            agent_id=self.agent_id,
            success=False,
            confidence=0.0,
            error=error,
            **fields,
        )
