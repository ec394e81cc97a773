"""
Conversation state owned by the orchestrator.

Responsibilities:
- Store ordered turns (user, assistant, system, tool)
- Track the single active turn and its cancellation token
- Enforce the "at most one active turn" invariant
- Provide the prior user/assistant history for provider requests

Non-responsibilities:
- No reducer logic
- No provider formatting
- No persistence (turns are never deleted here)
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable

from observability.logger import log_event
from orchestrator.cancellation import CancellationToken
from orchestrator.enums.role import Role
from orchestrator.enums.tool_status import ToolCallStatus


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class ToolCallRecord:
    """Outcome of one executed tool call."""

    id: str  # qualified name as issued by the provider
    provider: str
    tool: str
    arguments: dict[str, Any]
    status: ToolCallStatus
    result: str = ""
    error: str | None = None
    started_at: float = 0.0
    ended_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "provider": self.provider,
            "tool": self.tool,
            "arguments": self.arguments,
            "result": self.result,
            "error": self.error,
            "status": self.status.value,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }


@dataclass
class Turn:
    """
    Single conversation turn.

    Mutable: the orchestrator writes progress onto the assistant turn in
    place while it streams.
    """

    role: Role
    content: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    reasoning_content: str = ""
    is_streaming: bool = False
    is_reasoning_streaming: bool = False
    is_executing_tools: bool = False
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)

    @property
    def in_progress(self) -> bool:
        return self.is_streaming or self.is_executing_tools

    def clear_progress(self) -> None:
        self.is_streaming = False
        self.is_reasoning_streaming = False
        self.is_executing_tools = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "reasoning_content": self.reasoning_content,
            "is_streaming": self.is_streaming,
            "is_reasoning_streaming": self.is_reasoning_streaming,
            "is_executing_tools": self.is_executing_tools,
            "tool_calls": [record.to_dict() for record in self.tool_calls],
            "created_at": self.created_at,
        }


class ActiveTurnError(RuntimeError):
    """A turn is already active in this conversation."""


# =============================================================================
# Conversation
# =============================================================================

class ConversationContext:
    """
    Mutable conversation state owned by the orchestrator.

    This object is intentionally imperative:
    - The orchestrator decides *when* turns change
    - This class keeps them ordered and guards the active-turn slot

    Invariants:
    - Turns are stored in chronological order
    - active_turn_id is set iff cancellation_token is set
    - At most one turn is active at any instant
    """

    def __init__(self, conversation_id: int | None = None) -> None:
        self.conversation_id = conversation_id
        self._turns: list[Turn] = []
        self._active_turn_id: str | None = None
        self._cancellation_token: CancellationToken | None = None

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def active_turn_id(self) -> str | None:
        return self._active_turn_id

    @property
    def cancellation_token(self) -> CancellationToken | None:
        return self._cancellation_token

    @property
    def is_active(self) -> bool:
        return self._active_turn_id is not None

    def get_turn(self, turn_id: str) -> Turn | None:
        for turn in self._turns:
            if turn.id == turn_id:
                return turn
        return None

    def in_progress_turns(self) -> list[Turn]:
        """Turns still flagged as streaming or executing tools."""
        return [t for t in self._turns if t.in_progress]

    def history(self) -> list[Turn]:
        """Prior user/assistant turns, in order (system/tool turns excluded)."""
        return [
            t for t in self._turns
            if t.role in (Role.USER, Role.ASSISTANT)
        ]

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    def begin_turn(self, user_text: str) -> tuple[Turn, Turn, CancellationToken]:
        """
        Append a user turn + streaming assistant placeholder and claim the
        active-turn slot with a fresh cancellation token.

        Raises:
            ActiveTurnError if a turn is already active.
        """
        if self._active_turn_id is not None:
            raise ActiveTurnError(self._active_turn_id)

        user_turn = self.append(Turn(role=Role.USER, content=user_text))
        assistant_turn = self.append(Turn(role=Role.ASSISTANT, is_streaming=True))

        self._active_turn_id = assistant_turn.id
        self._cancellation_token = CancellationToken()

        log_event({
            "event_type": "turn_started",
            "conversation_id": self.conversation_id,
            "turn_id": assistant_turn.id,
        })
        return user_turn, assistant_turn, self._cancellation_token

    def release_turn(self, turn_id: str | None = None) -> None:
        """
        Clear the active-turn slot.

        With `turn_id`, only releases if that turn still owns the slot
        (a cancelled turn must not release a newer turn's slot).
        """
        if turn_id is not None and turn_id != self._active_turn_id:
            return
        self._active_turn_id = None
        self._cancellation_token = None

    def replace_turns(self, turns: Iterable[Turn]) -> None:
        """Swap in turns loaded from persistence. Drops any active slot."""
        self._turns = list(turns)
        self.release_turn()

    def clear(self) -> None:
        self.replace_turns(())
