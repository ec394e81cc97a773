"""
Conversation catalog metadata.

Summaries are what a conversation list shows: id, title, model and
timestamps. They are patched by out-of-band push notifications (a
backend-generated title) and never touch turn state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence


@dataclass(frozen=True)
class ConversationSummary:
    """Catalog entry for one persisted conversation."""
    id: int
    model: str
    title: str = ""
    created_at: float = 0.0
    updated_at: float = 0.0


@dataclass(frozen=True)
class TitleUpdated:
    """Push notification: a conversation's title changed."""
    conversation_id: int
    title: str


def apply_title_update(
    summaries: Sequence[ConversationSummary],
    event: TitleUpdated,
    now: float,
) -> tuple[ConversationSummary, ...]:
    """
    Pure metadata patch.

    Returns a new tuple with the matching summary's title replaced and
    updated_at bumped to `now`. Unknown ids leave the catalog unchanged.
    """
    return tuple(
        replace(s, title=event.title, updated_at=now)
        if s.id == event.conversation_id
        else s
        for s in summaries
    )
