"""
Conversation persistence collaborator.

The orchestrator core calls these operations but does not define how
conversations are stored. InMemoryConversationStore is the default
implementation (no durability beyond the process).

This module contains:
- A narrow Protocol (capability, not implementation)
- One in-memory implementation
- Zero orchestration logic
"""

from __future__ import annotations

import copy
import itertools
import time
from dataclasses import replace
from typing import Protocol, Sequence, runtime_checkable

from context.catalog import ConversationSummary
from context.conversation import Turn
from observability.logger import log_event


class ConversationNotFound(KeyError):
    """No conversation with that id."""


@runtime_checkable
class ConversationStore(Protocol):
    async def create_conversation(self, model_id: str) -> int: ...
    async def load_conversation(self, conversation_id: int) -> list[Turn]: ...
    async def save_turns(self, conversation_id: int, turns: Sequence[Turn]) -> None: ...
    async def delete_conversation(self, conversation_id: int) -> None: ...
    async def update_title(self, conversation_id: int, title: str) -> None: ...
    async def list_conversations(self) -> list[ConversationSummary]: ...


class InMemoryConversationStore:
    """
    Process-local conversation store.

    Invariants:
    - Ids are monotonic and never reused
    - Stored turns are copies; callers never share Turn objects with
      the store
    - list_conversations() returns newest first
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._summaries: dict[int, ConversationSummary] = {}
        self._turns: dict[int, list[Turn]] = {}

    async def create_conversation(self, model_id: str) -> int:
        conversation_id = next(self._ids)
        now = time.time()
        self._summaries[conversation_id] = ConversationSummary(
            id=conversation_id,
            model=model_id,
            created_at=now,
            updated_at=now,
        )
        self._turns[conversation_id] = []

        log_event({
            "event_type": "conversation_created",
            "conversation_id": conversation_id,
            "model": model_id,
        })
        return conversation_id

    async def load_conversation(self, conversation_id: int) -> list[Turn]:
        if conversation_id not in self._turns:
            raise ConversationNotFound(conversation_id)
        return copy.deepcopy(self._turns[conversation_id])

    async def save_turns(self, conversation_id: int, turns: Sequence[Turn]) -> None:
        if conversation_id not in self._turns:
            raise ConversationNotFound(conversation_id)
        self._turns[conversation_id] = copy.deepcopy(list(turns))

    async def delete_conversation(self, conversation_id: int) -> None:
        self._summaries.pop(conversation_id, None)
        self._turns.pop(conversation_id, None)

        log_event({
            "event_type": "conversation_deleted",
            "conversation_id": conversation_id,
        })

    async def list_conversations(self) -> list[ConversationSummary]:
        return sorted(
            self._summaries.values(),
            key=lambda s: (s.created_at, s.id),
            reverse=True,
        )

    async def update_title(self, conversation_id: int, title: str) -> None:
        """Persist a pushed title. Unknown ids are ignored."""
        summary = self._summaries.get(conversation_id)
        if summary is None:
            return
        self._summaries[conversation_id] = replace(summary, title=title, updated_at=time.time())
