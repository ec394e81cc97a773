"""
Pure reasoning/answer separation.

This module contains NO side effects and NO state carried across chunks.
It is a deterministic function over the full text buffer seen so far:
the caller re-runs it on the whole accumulator after every chunk.

Rules:
- Completed <think>...</think> segments are reasoning, in document order.
- An unterminated opening tag means reasoning is still streaming:
  everything after it is reasoning, everything before it is answer.
- Anything else (stray closing tags, nested tags) is literal answer text.
- Never raises.

Note: rescanning the whole buffer per chunk is O(n^2) over a turn. An
incremental scanner would need to carry offset + open-tag state between
chunks; short turns have not needed it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from constants import PARAGRAPH_SEPARATOR, REASONING_TAG


# =============================================================================
# Parse Result
# =============================================================================

@dataclass(frozen=True)
class ParsedContent:
    """Reasoning/answer split of a buffer."""
    reasoning: str = ""
    answer: str = ""
    reasoning_open: bool = False


EMPTY_PARSE = ParsedContent()


# =============================================================================
# Public API
# =============================================================================

def parse_reasoning(buffer: str, *, tag: str = REASONING_TAG) -> ParsedContent:
    """
    Split `buffer` into reasoning and answer text.

    Examples (tag="r"):
        ""                     -> ("", "", False)
        "<r>thinking</r>hello" -> ("thinking", "hello", False)
        "<r>partial"           -> ("partial", "", True)
    """
    if not buffer:
        return EMPTY_PARSE

    completed_re, open_tag = _patterns(tag)

    completed = PARAGRAPH_SEPARATOR.join(
        match.group(1) for match in completed_re.finditer(buffer)
    )
    remainder = completed_re.sub("", buffer)

    open_index = remainder.find(open_tag)
    if open_index == -1:
        return ParsedContent(
            reasoning=completed,
            answer=remainder.strip(),
            reasoning_open=False,
        )

    in_progress = remainder[open_index + len(open_tag):]
    reasoning = (
        f"{completed}{PARAGRAPH_SEPARATOR}{in_progress}"
        if completed
        else in_progress
    )

    return ParsedContent(
        reasoning=reasoning,
        answer=remainder[:open_index].strip(),
        reasoning_open=True,
    )


# =============================================================================
# Internal
# =============================================================================

@lru_cache(maxsize=8)
def _patterns(tag: str) -> tuple[re.Pattern[str], str]:
    """Compiled non-greedy segment regex + literal opening tag for `tag`."""
    escaped = re.escape(tag)
    completed_re = re.compile(rf"<{escaped}>(.*?)</{escaped}>", re.DOTALL)
    return completed_re, f"<{tag}>"
