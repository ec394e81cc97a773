"""
Chat session container.

- Owns the ConversationContext (turn state) and the conversation catalog
- Owns the TurnOrchestrator for the current conversation
- Delegates conversation lifecycle to the persistence collaborator
- Receives out-of-band title updates through a message channel

One ChatSession lives for one application session; nothing here is
process-global.
"""

from __future__ import annotations

import asyncio
import time
from typing import Sequence

from adapters.llm.base import LLMAdapter
from adapters.tools.base import ToolSelection, ToolSubsystem
from config import AppConfig
from context.catalog import ConversationSummary, TitleUpdated, apply_title_update
from context.conversation import ConversationContext, Turn
from observability.logger import log_event
from orchestrator.capabilities import DEFAULT_TOOL_SUPPORT_POLICY, ToolSupportPolicy
from orchestrator.runtime import TurnOrchestrator
from session.persistence import ConversationStore


class ChatSession:
    """
    Context object for one user's chat application session.

    Writers:
    - Turn state: only the TurnOrchestrator
    - Catalog metadata: only this class (including title patches)
    """

    def __init__(
        self,
        *,
        llm: LLMAdapter,
        tools: ToolSubsystem,
        store: ConversationStore,
        config: AppConfig | None = None,
        policy: ToolSupportPolicy = DEFAULT_TOOL_SUPPORT_POLICY,
    ) -> None:
        self._llm = llm
        self._store = store
        self._config = config or AppConfig()

        self.conversation = ConversationContext()
        self.orchestrator = TurnOrchestrator(
            conversation=self.conversation,
            llm=llm,
            tools=tools,
            config=self._config,
            policy=policy,
        )

        self._summaries: tuple[ConversationSummary, ...] = ()
        self._title_updates: asyncio.Queue[TitleUpdated] = asyncio.Queue()

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def current_conversation_id(self) -> int | None:
        return self.conversation.conversation_id

    @property
    def summaries(self) -> tuple[ConversationSummary, ...]:
        return self._summaries

    @property
    def turns(self) -> tuple[Turn, ...]:
        return self.conversation.turns

    # ------------------------------------------------------------------
    # Conversation catalog
    # ------------------------------------------------------------------

    async def load_conversations(self) -> tuple[ConversationSummary, ...]:
        self._summaries = tuple(await self._store.list_conversations())
        return self._summaries

    async def create_conversation(self) -> int:
        """Create a conversation for the current model and switch to it."""
        self._cancel_active("conversation_created")

        conversation_id = await self._store.create_conversation(self._llm.model)
        await self.load_conversations()

        self.conversation.conversation_id = conversation_id
        self.conversation.clear()
        return conversation_id

    async def select_conversation(self, conversation_id: int) -> tuple[Turn, ...]:
        """Switch to a stored conversation and load its turns."""
        self._cancel_active("conversation_selected")

        turns = await self._store.load_conversation(conversation_id)
        self.conversation.conversation_id = conversation_id
        self.conversation.replace_turns(turns)
        return self.conversation.turns

    async def delete_current_conversation(self) -> int | None:
        """
        Delete the current conversation and fall back to the newest
        remaining one (or none).

        Returns the new current conversation id.
        """
        conversation_id = self.conversation.conversation_id
        if conversation_id is None:
            return None

        self._cancel_active("conversation_deleted")
        await self._store.delete_conversation(conversation_id)
        await self.load_conversations()

        self.conversation.conversation_id = None
        self.conversation.clear()

        if self._summaries:
            await self.select_conversation(self._summaries[0].id)
        return self.conversation.conversation_id

    def clear_history(self) -> None:
        """Drop in-memory turns of the current conversation."""
        self._cancel_active("history_cleared")
        self.conversation.clear()

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def send_message(
        self,
        text: str,
        selected_tools: Sequence[ToolSelection] | None = None,
    ) -> Turn | None:
        """
        Submit a user message and run the turn to completion.

        Creates a conversation first if none is selected. Returns None
        when the orchestrator rejects the submit.
        """
        if not text.strip() or self.conversation.is_active:
            return None

        if self.conversation.conversation_id is None:
            await self.create_conversation()

        conversation_id = self.conversation.conversation_id
        turn = await self.orchestrator.submit(text, selected_tools)

        # A switch mid-turn already replaced the in-memory turns
        if turn is not None and self.conversation.conversation_id == conversation_id:
            await self._store.save_turns(conversation_id, self.conversation.turns)
        return turn

    def cancel(self) -> bool:
        return self.orchestrator.cancel()

    # ------------------------------------------------------------------
    # Push notifications
    # ------------------------------------------------------------------

    def publish_title_update(self, event: TitleUpdated) -> None:
        """Channel input. Safe to call from any coroutine at any time."""
        self._title_updates.put_nowait(event)

    async def apply_title_update(self, event: TitleUpdated) -> None:
        """
        Patch catalog metadata only; turn state is never touched.

        The store receives the title too, so a later reload keeps it.
        """
        await self._store.update_title(event.conversation_id, event.title)
        self._summaries = apply_title_update(self._summaries, event, time.time())
        log_event({
            "event_type": "conversation_title_updated",
            "conversation_id": event.conversation_id,
        })

    async def drain_title_updates(self) -> int:
        """Apply every queued title update now. Returns how many."""
        applied = 0
        while True:
            try:
                event = self._title_updates.get_nowait()
            except asyncio.QueueEmpty:
                return applied
            await self.apply_title_update(event)
            applied += 1

    async def run_title_updates(self) -> None:
        """Consume the title channel forever (run as a background task)."""
        while True:
            event = await self._title_updates.get()
            await self.apply_title_update(event)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _cancel_active(self, reason: str) -> None:
        if self.conversation.is_active and self.orchestrator.cancel():
            log_event({
                "event_type": "turn_cancelled_by_session",
                "conversation_id": self.conversation.conversation_id,
                "reason": reason,
            })
