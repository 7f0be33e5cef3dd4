"""Async HTTP client used to download linked task content."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_HEAD_TIMEOUT_SECONDS = 10.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; KanbanAgents/0.1)"
ACCEPT_HEADER = "text/html,application/xhtml+xml,application/xml;q=0.9,text/plain,*/*;q=0.8"


@dataclass(slots=True)
class FetchResult:
    """Result of an HTTP request."""

    url: str
    status_code: int
    content: str
    content_type: str
    is_success: bool
    error: str | None = None


class HttpFetcher:
    """Thin wrapper around ``httpx.AsyncClient`` that never raises for HTTP errors."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        head_timeout_seconds: float = DEFAULT_HEAD_TIMEOUT_SECONDS,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._head_timeout = head_timeout_seconds
        self._fetch_timeout = fetch_timeout_seconds
        self._headers = {"User-Agent": user_agent, "Accept": ACCEPT_HEADER}

    async def head(self, url: str) -> FetchResult:
        return await self._request("HEAD", url, timeout=self._head_timeout)

    async def get(self, url: str) -> FetchResult:
        return await self._request("GET", url, timeout=self._fetch_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, *, timeout: float) -> FetchResult:
        try:
            response = await self._client.request(
                method, url, headers=self._headers, timeout=timeout
            )
        except httpx.TimeoutException:
            logger.warning("Timeout on %s %s", method, url)
            return FetchResult(
                url=url,
                status_code=0,
                content="",
                content_type="",
                is_success=False,
                error=f"Request timed out after {timeout:g}s",
            )
        except httpx.HTTPError as exc:
            logger.warning("HTTP error on %s %s: %s", method, url, exc)
            return FetchResult(
                url=url,
                status_code=0,
                content="",
                content_type="",
                is_success=False,
                error=str(exc) or exc.__class__.__name__,
            )

        content_type = response.headers.get("content-type", "")
        if not response.is_success:
            return FetchResult(
                url=url,
                status_code=response.status_code,
                content="",
                content_type=content_type,
                is_success=False,
                error=f"HTTP {response.status_code}: {response.reason_phrase}".rstrip(": "),
            )
        return FetchResult(
            url=url,
            status_code=response.status_code,
            content=response.text if method != "HEAD" else "",
            content_type=content_type,
            is_success=True,
        )
