"""HTML to clean text extraction using trafilatura."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import trafilatura

logger = logging.getLogger(__name__)

@dataclass(slots=True)
class ExtractionResult:
    """Result of HTML text extraction."""

    text: str
    is_success: bool
    method: str = "none"
    error: str | None = None


def extract_text(html: str, *, url: str | None = None) -> ExtractionResult:
    """Extract main content text, trying precision first and recall second."""

    if not html or not html.strip():
        return ExtractionResult(text="", is_success=False, error="empty HTML input")

    for method, options in (
        ("trafilatura-precision", {"favor_precision": True, "deduplicate": True}),
        ("trafilatura-recall", {"favor_recall": True}),
    ):
        try:
            text = trafilatura.extract(html, url=url, include_tables=True, **options)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s failed for %s: %s", method, url or "<unknown>", exc)
            continue
        if text:
            return ExtractionResult(text=text, is_success=True, method=method)

    return ExtractionResult(text="", is_success=False, error="no content extracted")


def strip_tags(html: str) -> str:
    """Plain body text with scripts and styles removed."""
    if not html or not html.strip():
        return ""
    return trafilatura.html2txt(html)


def extract_title(html: str) -> str | None:
    """The document <title>; titles nested in body markup such as inline SVG are ignored."""
    if not html or not html.strip():
        return None
    tree = trafilatura.load_html(html)
    if tree is None:
        return None
    element = tree.find(".//head/title")
    if element is not None:
        title = " ".join(element.text_content().split())
        if title:
            return title
    metadata = trafilatura.extract_metadata(tree)
    return metadata.title if metadata is not None and metadata.title else None
