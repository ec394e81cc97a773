"""
Authoritative per-turn orchestrator state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need for one turn.
- Derived views are read-only properties; no mutation helpers.
"""
from __future__ import annotations

from dataclasses import dataclass

from adapters.llm.base import ToolCallRequest
from context.conversation import ToolCallRecord
from orchestrator.enums.state import STREAMING_PHASES, TERMINAL_PHASES, TurnPhase
from orchestrator.reasoning import EMPTY_PARSE, ParsedContent


@dataclass(frozen=True)
class TurnState:
    """Immutable snapshot of one assistant turn's orchestration state."""

    turn_id: str

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    phase: TurnPhase = TurnPhase.IDLE

    # ------------------------------------------------------------------
    # Text accumulation
    # ------------------------------------------------------------------
    # Raw text of the initial response
    initial_text: str = ""

    # Raw text of the post-tool follow-up response
    follow_up_text: str = ""

    # Parse of the full buffer (initial, or initial + follow-up)
    parsed: ParsedContent = EMPTY_PARSE

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------
    # Calls collected from any chunk of the initial stream
    pending_tool_calls: tuple[ToolCallRequest, ...] = ()

    # Set once the coordinator returns
    tool_records: tuple[ToolCallRecord, ...] = ()

    # ------------------------------------------------------------------
    # Terminal content
    # ------------------------------------------------------------------
    # Replaces the parsed answer on failure / cancellation
    content_override: str | None = None

    last_error: str | None = None

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def content(self) -> str:
        if self.content_override is not None:
            return self.content_override
        return self.parsed.answer

    @property
    def reasoning_open(self) -> bool:
        return self.phase in STREAMING_PHASES and self.parsed.reasoning_open
