"""Uniform text-generation gateway over local and hosted model backends."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal, Protocol

import httpx

from kanban_agents.config.settings import Settings, get_settings
from kanban_agents.llm.errors import (
    LLMError,
    LLMResponseError,
    LLMTimeoutError,
    LLMTransientError,
)
from kanban_agents.llm.retry import retry_with_backoff

logger = logging.getLogger(__name__)

ResponseFormat = Literal["json", "text"]
_TRANSIENT_STATUS = {408, 425, 429, 500, 502, 503, 504}


class ModelBackend(Protocol):
    name: str

    async def generate(
        self, prompt: str, *, fmt: ResponseFormat, temperature: float, timeout_s: float
    ) -> str: ...

    async def list_models(self, *, timeout_s: float) -> list[str]: ...

    async def pull_model(self, *, timeout_s: float) -> None: ...


class OllamaBackend:
    """Local backend speaking the Ollama generate/tags/pull API."""

    name = "ollama"

    def __init__(self, *, client: httpx.AsyncClient, base_url: str, model: str) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.model = model

    async def generate(
        self, prompt: str, *, fmt: ResponseFormat, temperature: float, timeout_s: float
    ) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if fmt == "json":
            body["format"] = "json"
        payload = await _post_json(
            self._client, f"{self._base_url}/api/generate", body, timeout_s=timeout_s
        )
        response = payload.get("response")
        if not isinstance(response, str):
            raise LLMResponseError("Ollama response did not include generated text")
        return response

    async def list_models(self, *, timeout_s: float) -> list[str]:
        payload = await _get_json(self._client, f"{self._base_url}/api/tags", timeout_s=timeout_s)
        models = payload.get("models")
        if not isinstance(models, list):
            return []
        return [str(item.get("name")) for item in models if isinstance(item, dict)]

    async def pull_model(self, *, timeout_s: float) -> None:
        await _post_json(
            self._client,
            f"{self._base_url}/api/pull",
            {"name": self.model, "stream": False},
            timeout_s=timeout_s,
        )


class OpenAIChatBackend:
    """Hosted backend speaking the OpenAI chat-completions API."""

    name = "openai"

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        model: str,
        api_key: str,
    ) -> None:
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self.model = model

    async def generate(
        self, prompt: str, *, fmt: ResponseFormat, temperature: float, timeout_s: float
    ) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if fmt == "json":
            body["response_format"] = {"type": "json_object"}
        payload = await _post_json(
            self._client,
            f"{self._base_url}/chat/completions",
            body,
            timeout_s=timeout_s,
            headers=self._headers,
        )
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise LLMResponseError("Chat completion returned no choices")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise LLMResponseError("Chat completion returned no message content")
        return content

    async def list_models(self, *, timeout_s: float) -> list[str]:
        try:
            await _get_json(
                self._client,
                f"{self._base_url}/models/{self.model}",
                timeout_s=timeout_s,
                headers=self._headers,
            )
        except LLMResponseError:
            return []
        return [self.model]

    async def pull_model(self, *, timeout_s: float) -> None:
        raise LLMResponseError(f"Hosted model {self.model} is not available to this account")


class LLMGateway:
    """Applies timeout, retry and model-availability policy to a backend."""

    def __init__(
        self,
        backend: ModelBackend,
        *,
        timeout_s: float = 120.0,
        max_retries: int = 2,
        initial_delay_s: float = 1.0,
        max_delay_s: float = 5.0,
        multiplier: float = 2.0,
        pull_timeout_multiplier: float = 2.0,
    ) -> None:
        self.backend = backend
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.initial_delay_s = initial_delay_s
        self.max_delay_s = max_delay_s
        self.multiplier = multiplier
        self.pull_timeout_multiplier = pull_timeout_multiplier
        self._model_ready = False
        self._model_lock = asyncio.Lock()

    async def generate(
        self, prompt: str, *, fmt: ResponseFormat = "json", temperature: float = 0.5
    ) -> str:
        async def _attempt() -> str:
            try:
                return await asyncio.wait_for(
                    self.backend.generate(
                        prompt, fmt=fmt, temperature=temperature, timeout_s=self.timeout_s
                    ),
                    timeout=self.timeout_s,
                )
            except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
                raise LLMTimeoutError(
                    f"LLM request timed out after {self.timeout_s:g}s"
                ) from exc

        return await retry_with_backoff(
            _attempt,
            max_retries=self.max_retries,
            initial_delay_s=self.initial_delay_s,
            max_delay_s=self.max_delay_s,
            multiplier=self.multiplier,
        )

    async def ensure_model_available(self) -> None:
        """Best effort: log and continue when the model cannot be confirmed."""
        if self._model_ready:
            return
        # Concurrent callers wait for a single check-and-pull.
        async with self._model_lock:
            if self._model_ready:
                return
            model = getattr(self.backend, "model", "<unknown>")
            try:
                models = await self.backend.list_models(timeout_s=self.timeout_s)
                if any(name == model or name.split(":")[0] == model for name in models):
                    self._model_ready = True
                    return
                logger.info(
                    "Model %s not found on %s backend, pulling", model, self.backend.name
                )
                await self.backend.pull_model(
                    timeout_s=self.timeout_s * self.pull_timeout_multiplier
                )
                self._model_ready = True
                logger.info("Model %s pulled", model)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Could not ensure model %s is available: %s", model, exc)


def build_gateway(
    settings: Settings | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> LLMGateway:
    resolved = settings or get_settings()
    http_client = client or httpx.AsyncClient()
    backend: ModelBackend
    if resolved.llm_provider == "openai":
        backend = OpenAIChatBackend(
            client=http_client,
            base_url=resolved.llm_base_url,
            model=resolved.llm_model,
            api_key=resolved.resolved_openai_api_key(),
        )
    else:
        backend = OllamaBackend(
            client=http_client, base_url=resolved.llm_base_url, model=resolved.llm_model
        )
    return LLMGateway(
        backend,
        timeout_s=resolved.llm_timeout_s,
        max_retries=resolved.llm_max_retries,
        initial_delay_s=resolved.llm_retry_initial_delay_s,
        max_delay_s=resolved.llm_retry_max_delay_s,
        multiplier=resolved.llm_retry_multiplier,
        pull_timeout_multiplier=resolved.llm_pull_timeout_multiplier,
    )


async def _post_json(
    client: httpx.AsyncClient,
    url: str,
    body: dict[str, Any],
    *,
    timeout_s: float,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    try:
        response = await client.post(url, json=body, timeout=timeout_s, headers=headers)
    except httpx.TimeoutException:
        raise
    except httpx.TransportError as exc:
        raise LLMTransientError(f"LLM connection error: {exc}") from exc
    return _decode(response)


async def _get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout_s: float,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    try:
        response = await client.get(url, timeout=timeout_s, headers=headers)
    except httpx.TimeoutException:
        raise
    except httpx.TransportError as exc:
        raise LLMTransientError(f"LLM connection error: {exc}") from exc
    return _decode(response)


def _decode(response: httpx.Response) -> dict[str, Any]:
    if response.status_code == 429:
        raise LLMTransientError("LLM rate limit exceeded (status 429)")
    if response.status_code in _TRANSIENT_STATUS:
        raise LLMTransientError(
            f"LLM temporary failure with status {response.status_code}: {response.text[:400]}"
        )
    if response.is_error:
        raise LLMResponseError(
            f"LLM request failed with status {response.status_code}: {response.text[:400]}"
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise LLMResponseError("LLM returned non-JSON response") from exc
    if not isinstance(payload, dict):
        raise LLMError("LLM returned an unexpected payload shape")
    return payload
