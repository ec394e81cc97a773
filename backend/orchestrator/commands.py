"""
Side-effect command definitions for the turn orchestrator.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from adapters.llm.base import ToolCallRequest
from orchestrator.enums.state import TurnPhase


# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    Stable discriminants used for logging and runtime dispatch.
    """

    # Tools
    EXECUTE_TOOLS = "EXECUTE_TOOLS"

    # LLM
    START_FOLLOW_UP = "START_FOLLOW_UP"

    # Lifecycle
    FINALIZE_TURN = "FINALIZE_TURN"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Commands
# =============================================================================

@dataclass(frozen=True)
class ExecuteTools(Command):
    """Run the collected tool calls through the coordinator, in order."""
    calls: tuple[ToolCallRequest, ...]
    command_type: CommandType = CommandType.EXECUTE_TOOLS


@dataclass(frozen=True)
class StartFollowUp(Command):
    """
    Stream a follow-up response over the extended continuation.

    Tools are never offered on the follow-up request.
    """
    command_type: CommandType = CommandType.START_FOLLOW_UP


@dataclass(frozen=True)
class FinalizeTurn(Command):
    """Clear progress flags and release the active-turn slot."""
    phase: TurnPhase
    command_type: CommandType = CommandType.FINALIZE_TURN


@dataclass(frozen=True)
class LogEvent(Command):
    """Emit a structured log line (enriched by the runtime)."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT


# Commands the runtime must await (everything else executes inline)
ASYNC_COMMAND_TYPES: frozenset[CommandType] = frozenset({
    CommandType.EXECUTE_TOOLS,
    CommandType.START_FOLLOW_UP,
})
