"""Web-Content agent: URL detection plus download and text extraction."""

from __future__ import annotations

import logging
import re
import time
from datetime import UTC, datetime
from typing import Any

from kanban_agents.agents.base import InputValidationError, validate_url
from kanban_agents.agents.constants import MIN_EXTRACTION_LENGTH
from kanban_agents.agents.models import WebContentResult
from kanban_agents.web.extractor import extract_text, extract_title, strip_tags
from kanban_agents.web.fetcher import HttpFetcher

logger = logging.getLogger(__name__)

_URL = re.compile(r"(https?://[^\s]+)", re.IGNORECASE)
_HEAD_UNSUPPORTED = {405, 501}


def extract_url(text: str | None, metadata: dict[str, Any] | None = None) -> str | None:
    """Prefer an explicit ``metadata["url"]``, else the first http(s) link in ``text``."""
    candidate = (metadata or {}).get("url")
    if isinstance(candidate, str) and candidate.strip():
        return candidate.strip()
    match = _URL.search(text or "")
    return match.group(1) if match else None


class WebContentAgent:
    agent_id = "web-content-agent"

    def __init__(self, fetcher: HttpFetcher | None = None) -> None:
        self.fetcher = fetcher or HttpFetcher()

    def extract_url(self, text: str | None, metadata: dict[str, Any] | None = None) -> str | None:
        return extract_url(text, metadata)

    async def download_content(self, url: str) -> WebContentResult:
        started = time.monotonic()
        try:
            validate_url(url)
        except InputValidationError as exc:
            return self._failure(url, str(exc), started)

        try:
            return await self._download(url, started)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error downloading %s", url)
            return self._failure(url, str(exc) or exc.__class__.__name__, started)

    async def _download(self, url: str, started: float) -> WebContentResult:
        logger.info("Downloading content from %s", url)
        head = await self.fetcher.head(url)
        if not head.is_success and head.status_code not in _HEAD_UNSUPPORTED:
            return self._failure(url, head.error or f"HTTP {head.status_code}", started)

        page = await self.fetcher.get(url)
        if not page.is_success:
            return self._failure(url, page.error or f"HTTP {page.status_code}", started)

        content_type = page.content_type or head.content_type
        downloaded_at = datetime.now(UTC)
        if "text/html" not in content_type.lower():
            text = page.content
            is_text = "text/plain" in content_type or "application/json" in content_type
            return WebContentResult(
                agent_id=self.agent_id,
                success=True,
                confidence=0.9 if text else 0.5,
                url=url,
                content=text,
                text_content=text,
                content_type=content_type,
                downloaded_at=downloaded_at,
                metadata={
                    "content_length": len(text),
                    "is_html": False,
                    "is_text": is_text,
                    "download_time_ms": _elapsed_ms(started),
                },
            )

        html = page.content
        extraction = extract_text(html, url=url)
        text = extraction.text if extraction.is_success else ""
        method = extraction.method
        if len(text.strip()) < MIN_EXTRACTION_LENGTH:
            stripped = strip_tags(html)
            if len(stripped) > len(text.strip()):
                text = stripped
                method = f"{method}+tag-strip" if extraction.is_success else "tag-strip"
        content = text or html
        logger.info("Downloaded %s characters from %s via %s", len(content), url, method)
        return WebContentResult(
            agent_id=self.agent_id,
            success=True,
            confidence=0.8 if content else 0.5,
            url=url,
            title=extract_title(html),
            content=content,
            text_content=text,
            html_content=html,
            content_type=content_type,
            downloaded_at=downloaded_at,
            metadata={
                "content_length": len(content),
                "html_length": len(html),
                "text_length": len(text),
                "is_html": True,
                "extraction_method": method,
                "download_time_ms": _elapsed_ms(started),
            },
        )

    def _failure(self, url: str, error: str, started: float) -> WebContentResult:
        logger.warning("Failed to download content from %s: %s", url, error)
        return WebContentResult(
            agent_id=self.agent_id,
            success=False,
            confidence=0.0,
            error=error,
            url=url,
            metadata={"download_time_ms": _elapsed_ms(started)},
        )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
