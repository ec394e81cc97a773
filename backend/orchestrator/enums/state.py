"""
Authoritative turn phase enumeration.

Rules:
- This enum defines ONLY the control-plane phases of one assistant turn.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class TurnPhase(str, Enum):
    """
    Deterministic phases of a single assistant turn.

    IDLE:
        Placeholder created, nothing requested yet.
    STREAMING:
        Initial provider response is streaming.
    EXECUTING_TOOLS:
        Tool calls detected in the initial response are being executed.
    FOLLOW_UP:
        Tool results were fed back; the follow-up response is streaming.
    FINALIZED:
        Terminal. Turn completed normally.
    FAILED:
        Terminal. Provider request failed; content holds the error text.
    CANCELLED:
        Terminal, absorbing. Caller cancelled the turn.
    """

    IDLE = "IDLE"
    STREAMING = "STREAMING"
    EXECUTING_TOOLS = "EXECUTING_TOOLS"
    FOLLOW_UP = "FOLLOW_UP"
    FINALIZED = "FINALIZED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_PHASES: frozenset[TurnPhase] = frozenset({
    TurnPhase.FINALIZED,
    TurnPhase.FAILED,
    TurnPhase.CANCELLED,
})

STREAMING_PHASES: frozenset[TurnPhase] = frozenset({
    TurnPhase.STREAMING,
    TurnPhase.FOLLOW_UP,
})
