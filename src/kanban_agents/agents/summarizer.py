"""Summarizer agent."""

from __future__ import annotations

from kanban_agents.agents.base import NO_INVENTION_RULE, BaseAgent, truncate_content
from kanban_agents.agents.constants import SUMMARY_MAX_WORDS, Confidence, Temperature
from kanban_agents.agents.models import SummarizationResult
from kanban_agents.agents.schemas import SummaryResponse
from kanban_agents.llm.json_parsing import parse_json_response


class SummarizerAgent(BaseAgent):
    agent_id = "content-summarizer-agent"

    async def summarize(
        self, content: str | None, max_length: int = SUMMARY_MAX_WORDS
    ) -> SummarizationResult:
        if not content or not content.strip():
            return self.failure(SummarizationResult, "No content to summarize")

        original_length = len(content)
        prompt = _build_prompt(truncate_content(content), max_length)
        try:
            response = await self.call_llm(prompt, temperature=Temperature.CONSISTENT)
        except Exception as exc:  # noqa: BLE001
            return self.failure(
                SummarizationResult, str(exc), original_length=original_length
            )

        parsed = parse_json_response(response, SummaryResponse)
        if not parsed.success or parsed.data is None:
            # Plain-text answers are still usable as a summary.
            summary = response.strip()
            if not summary:
                return self.failure(
                    SummarizationResult,
                    parsed.error or "Empty summary",
                    original_length=original_length,
                )
            return SummarizationResult(
                agent_id=self.agent_id,
                success=True,
                confidence=Confidence.MEDIUM_HIGH,
                original_length=original_length,
                summary=summary,
                word_count=len(summary.split()),
                metadata={"fallback": True, "parse_error": parsed.error},
            )

        summary = parsed.data.summary.strip()
        return SummarizationResult(
            agent_id=self.agent_id,
            success=True,
            confidence=Confidence.EXCELLENT if summary else Confidence.MEDIUM,
            original_length=original_length,
            summary=summary,
            key_points=parsed.data.key_points,
            word_count=len(summary.split()),
        )


def _build_prompt(content: str, max_words: int) -> str:
    return (
        f"Summarize the content below in at most {max_words} words and list its key points.\n"
        f"{NO_INVENTION_RULE}\n\n"
        f"Content:\n{content}\n\n"
        'Return JSON only: {"summary": "...", "keyPoints": ["..."]}'
    )
