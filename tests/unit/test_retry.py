import asyncio
from types import SimpleNamespace

import httpx
import pytest

from kanban_agents.llm import retry
from kanban_agents.llm.errors import LLMResponseError, LLMTimeoutError, LLMTransientError
from kanban_agents.llm.retry import is_retryable_error, retry_with_backoff


def test_retryable_error_classification() -> None:
    assert is_retryable_error(LLMTimeoutError("slow"))
    assert is_retryable_error(LLMTransientError("busy"))
    assert is_retryable_error(httpx.ConnectError("refused"))
    assert is_retryable_error(RuntimeError("ECONNREFUSED while connecting"))
    assert not is_retryable_error(LLMResponseError("request timed out in the prompt text"))
    assert not is_retryable_error(ValueError("bad input"))


def test_retry_recovers_from_transient_failures() -> None:
    attempts = []

    async def operation() -> str:
        attempts.append(1)
        if len(attempts) < 3:
            raise LLMTransientError("temporary failure")
        return "ok"

    result = asyncio.run(retry_with_backoff(operation, max_retries=2, initial_delay_s=0.0))

    assert result == "ok"
    assert len(attempts) == 3


def test_retry_gives_up_after_max_attempts() -> None:
    attempts = []

    async def operation() -> str:
        attempts.append(1)
        raise LLMTimeoutError("LLM request timed out after 1s")

    with pytest.raises(LLMTimeoutError):
        asyncio.run(retry_with_backoff(operation, max_retries=1, initial_delay_s=0.0))
    assert len(attempts) == 2


def test_non_retryable_error_is_raised_immediately() -> None:
    attempts = []

    async def operation() -> str:
        attempts.append(1)
        raise LLMResponseError("LLM request failed with status 400")

    with pytest.raises(LLMResponseError):
        asyncio.run(retry_with_backoff(operation, max_retries=3, initial_delay_s=0.0))
    assert len(attempts) == 1


def test_backoff_delays_grow_and_are_capped(monkeypatch) -> None:
    delays: list[float] = []
    attempts = []

    async def record_sleep(delay: float) -> None:
        delays.append(delay)

    monkeypatch.setattr(retry, "asyncio", SimpleNamespace(sleep=record_sleep))

    async def operation() -> str:
        attempts.append(1)
        raise LLMTransientError("temporary failure")

    with pytest.raises(LLMTransientError):
        asyncio.run(
            retry_with_backoff(
                operation,
                max_retries=4,
                initial_delay_s=1.0,
                max_delay_s=3.0,
                multiplier=2.0,
            )
        )

    assert len(attempts) == 5
    assert delays == [1.0, 2.0, 3.0, 3.0]
