"""Build-context node: download, summarize and freeze the local brain."""

from __future__ import annotations

import logging

from kanban_agents.agents import AgentSuite
from kanban_agents.agents.constants import (
    LARGE_CONTENT_TRUNCATE,
    MIN_CONTENT_FOR_SUMMARIZATION,
    ORCHESTRATOR_SUMMARY_WORDS,
)
from kanban_agents.agents.models import (
    AgentSelectionResult,
    SummarizationResult,
    WebContentResult,
)
from kanban_agents.pipeline.context import ProcessingContext
from kanban_agents.pipeline.models import LocalBrain, ProcessingStage
from kanban_agents.pipeline.state import PipelineState
from kanban_agents.storage.models import TaskRecord

logger = logging.getLogger(__name__)


async def run(state: PipelineState, agents: AgentSuite) -> PipelineState:
    context = state["context"]
    selection = state["selection"]
    url = state.get("url")

    web_content = await _download(context, agents, selection, url)
    summarization = await _summarize(context, agents, selection, web_content)
    brain = build_local_brain(context.task, url, web_content, summarization)
    logger.info(
        "Built local brain for %s: description=%s chars, web=%s chars, summary=%s chars",
        context.task_id,
        len(brain.description or ""),
        len(brain.web_content or ""),
        len(brain.content_summary or ""),
    )
    await context.progress.emit(
        ProcessingStage.BUILDING_CONTEXT,
        "Local brain built - all available data gathered and ready for analysis",
        {
            "has_web_content": brain.web_content is not None,
            "has_summary": brain.content_summary is not None,
            "total_context_chars": len(brain.description or "") + len(brain.web_content or ""),
        },
    )
    return {"web_content": web_content, "summarization": summarization, "brain": brain}


def build_local_brain(
    task: TaskRecord,
    url: str | None,
    web_content: WebContentResult | None,
    summarization: SummarizationResult | None,
) -> LocalBrain:
    downloaded = web_content if web_content is not None and web_content.success else None
    summary = summarization.summary if summarization is not None and summarization.success else ""
    content_summary = summary or (downloaded.title if downloaded else None) or None

    if task.description:
        description = (
            f"{task.description}\n\n[Context from {url}]\n{content_summary}".strip()
            if content_summary
            else task.description
        )
    else:
        description = content_summary

    return LocalBrain(
        title=task.title,
        description=description,
        original_description=task.description,
        web_content=downloaded.text_content if downloaded else None,
        content_summary=content_summary,
        web_content_title=downloaded.title if downloaded else None,
        url=url,
    )


async def _download(
    context: ProcessingContext,
    agents: AgentSuite,
    selection: AgentSelectionResult,
    url: str | None,
) -> WebContentResult | None:
    progress = context.progress
    if not url:
        await progress.emit(ProcessingStage.DETECTING_URL, "No URLs found in task")
        return None
    if context.options.skip_web_content or not selection.should_use_web_content:
        logger.info("Skipping web content download for %s", context.task_id)
        return None

    await progress.emit(ProcessingStage.DETECTING_URL, "Detecting URLs in task...")
    await progress.emit(
        ProcessingStage.DOWNLOADING_CONTENT, f"Downloading content from: {url}", {"url": url}
    )
    try:
        web_content = await agents.web_content.download_content(url)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Web content agent raised for %s", url)
        web_content = WebContentResult(
            agent_id=agents.web_content.agent_id,
            success=False,
            confidence=0.0,
            error=str(exc) or exc.__class__.__name__,
            url=url,
        )

    if web_content.success:
        length = len(web_content.text_content or "")
        await progress.emit(
            ProcessingStage.EXTRACTING_TEXT,
            f"Content downloaded ({length} characters)",
            {"url": url, "content_length": length, "title": web_content.title},
        )
    else:
        context.errors.append(f"Web content download failed: {web_content.error}")
        await progress.emit(
            ProcessingStage.ERROR,
            f"Failed to download content: {web_content.error}",
            {"url": url, "error": web_content.error},
        )
    return web_content


async def _summarize(
    context: ProcessingContext,
    agents: AgentSuite,
    selection: AgentSelectionResult,
    web_content: WebContentResult | None,
) -> SummarizationResult | None:
    if context.options.skip_summarization or web_content is None or not web_content.success:
        return None
    text = web_content.text_content or ""
    if len(text) <= MIN_CONTENT_FOR_SUMMARIZATION:
        logger.info("Skipping summarization for %s - content is too short", context.task_id)
        return None
    if not (selection.should_use_summarization or len(text) > LARGE_CONTENT_TRUNCATE):
        logger.info("Skipping summarization for %s - not selected", context.task_id)
        return None

    progress = context.progress
    await progress.emit(
        ProcessingStage.SUMMARIZING_CONTENT,
        f"Summarizing content ({len(text)} characters)...",
        {"content_length": len(text)},
    )
    try:
        summarization = await agents.summarizer.summarize(text, ORCHESTRATOR_SUMMARY_WORDS)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Summarizer raised for %s", context.task_id)
        summarization = SummarizationResult(
            agent_id=agents.summarizer.agent_id,
            success=False,
            confidence=0.0,
            error=str(exc) or exc.__class__.__name__,
        )

    if summarization.success:
        await progress.emit(
            ProcessingStage.SUMMARIZING_CONTENT,
            f"Content summarized ({summarization.word_count} words)",
            {
                "summary_length": summarization.word_count,
                "key_points": len(summarization.key_points),
            },
        )
    else:
        context.errors.append(f"Content summarization failed: {summarization.error}")
        await progress.emit(
            ProcessingStage.ERROR,
            f"Summarization failed: {summarization.error}",
            {"error": summarization.error},
        )
    return summarization
