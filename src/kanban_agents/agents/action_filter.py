"""Drop navigation-only and otherwise trivial action items."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeVar

from kanban_agents.agents.models import ActionItem

ActionT = TypeVar("ActionT", str, ActionItem)

MIN_ACTION_LENGTH = 10

TRIVIAL_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^open\s+(the\s+)?browser",
        r"^navigate\s+to",
        r"^go\s+to\s+(the\s+)?(url|website|link|page)",
        r"^visit\s+(the\s+)?(url|website|link|page)",
        r"^access\s+(the\s+)?(url|website|link|page)",
        r"^click\s+on\s+(the\s+)?link",
        r"^open\s+(the\s+)?(link|url|website|page)",
        r"^read\s+(the\s+)?(content|text|page|document|article)",
        r"^view\s+(the\s+)?(content|text|page|document|article)",
        r"^look\s+at",
        r"^check\s+(the\s+)?(url|link|website|page)",
        r"^start",
        r"^begin",
        r"^prepare",
        r"^get\s+ready",
        r"^(read|view|check|open|click|navigate|visit|access)$",
    )
)


def is_trivial_action(action: str | ActionItem) -> bool:
    text = action if isinstance(action, str) else action.description
    normalized = text.strip().lower()
    if any(pattern.search(normalized) for pattern in TRIVIAL_PATTERNS):
        return True
    return len(normalized) < MIN_ACTION_LENGTH


def filter_trivial_actions(actions: Iterable[ActionT]) -> list[ActionT]:
    return [action for action in actions if not is_trivial_action(action)]
