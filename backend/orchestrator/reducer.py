"""
Pure turn reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (phase, event) pair is handled or explicitly ignored (logged).
"""

# Terminal phases (FINALIZED, FAILED, CANCELLED) ignore every event.
# This is what guarantees no turn write after cancellation is observed:
# late chunks, late tool results and late failures all land here.

from __future__ import annotations

from dataclasses import replace
from typing import Any

from adapters.llm.prompts import provider_error_content
from constants import CANCELLATION_MARKER, CANCELLATION_SUFFIX, PARAGRAPH_SEPARATOR
from orchestrator.commands import (
    Command,
    ExecuteTools,
    FinalizeTurn,
    LogEvent,
    StartFollowUp,
)
from orchestrator.enums.state import TurnPhase
from orchestrator.enums.tool_status import ToolCallStatus
from orchestrator.events import (
    CancelRequested,
    ContentDelta,
    Event,
    ProviderFailed,
    StreamDone,
    ToolCallsDetected,
    ToolsExecuted,
    TurnSubmitted,
)
from orchestrator.reasoning import parse_reasoning
from orchestrator.state_dataclass import TurnState


# =============================================================================
# Small helpers
# =============================================================================

def add_cancellation_marker(content: str) -> str:
    """Append the cancellation marker unless it is already present."""
    if CANCELLATION_MARKER in content:
        return content
    return content + CANCELLATION_SUFFIX


def _log(
    state: TurnState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "phase": state.phase.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "turn_id": state.turn_id,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(
    state: TurnState, event: Event, reason: str
) -> tuple[TurnState, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _transition(
    state: TurnState,
    new_state: TurnState,
    event: Event,
    source: str,
    *commands: Command,
) -> tuple[TurnState, tuple[Command, ...]]:
    return new_state, _logs_last(commands + (
        _log(
            new_state,
            event,
            "state_changed",
            {
                "from_phase": state.phase.value,
                "to_phase": new_state.phase.value,
                "source": source,
            },
        ),
    ))


def _finalize(
    state: TurnState, new_state: TurnState, event: Event, source: str
) -> tuple[TurnState, tuple[Command, ...]]:
    return _transition(
        state, new_state, event, source,
        FinalizeTurn(phase=new_state.phase),
    )


def _follow_up_buffer(initial_text: str, follow_up_text: str) -> str:
    return f"{initial_text}{PARAGRAPH_SEPARATOR}{follow_up_text}"


# =============================================================================
# Shared handlers (any non-terminal phase)
# =============================================================================

def _on_cancel(
    state: TurnState, event: CancelRequested
) -> tuple[TurnState, tuple[Command, ...]]:
    new_state = replace(
        state,
        phase=TurnPhase.CANCELLED,
        content_override=add_cancellation_marker(state.content),
    )
    return _finalize(state, new_state, event, "cancel_requested")


def _on_provider_failed(
    state: TurnState, event: ProviderFailed
) -> tuple[TurnState, tuple[Command, ...]]:
    new_state = replace(
        state,
        phase=TurnPhase.FAILED,
        content_override=provider_error_content(event.reason),
        last_error=event.reason,
    )
    new_state, cmds = _finalize(state, new_state, event, "provider_failed")
    return new_state, _logs_last(
        cmds + (_log(new_state, event, "provider_failed", {"reason": event.reason}),)
    )


# =============================================================================
# Reducer
# =============================================================================

def reduce(
    state: TurnState, event: Event
) -> tuple[TurnState, tuple[Command, ...]]:
    """
    Pure reducer for the single-turn state machine.

        IDLE -> STREAMING -> (EXECUTING_TOOLS -> FOLLOW_UP) -> FINALIZED
        any non-terminal -> CANCELLED | FAILED

    Given the current turn state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects
    """
    # ------------------------------------------------------------------
    # Terminal gating
    # ------------------------------------------------------------------
    if state.is_terminal:
        return _ignore(state, event, f"turn_{state.phase.value.lower()}")

    if isinstance(event, CancelRequested):
        return _on_cancel(state, event)

    if isinstance(event, ProviderFailed):
        if state.phase is TurnPhase.IDLE:
            return _ignore(state, event, "not_started")
        return _on_provider_failed(state, event)

    # ------------------------------------------------------------------
    # IDLE
    # ------------------------------------------------------------------
    if state.phase is TurnPhase.IDLE:
        if isinstance(event, TurnSubmitted):
            new_state = replace(state, phase=TurnPhase.STREAMING)
            return _transition(state, new_state, event, "turn_submitted")
        return _ignore(state, event, "not_started")

    # ------------------------------------------------------------------
    # STREAMING (initial response)
    # ------------------------------------------------------------------
    if state.phase is TurnPhase.STREAMING:
        if isinstance(event, ContentDelta):
            text = state.initial_text + event.delta
            return replace(state, initial_text=text, parsed=parse_reasoning(text)), ()

        if isinstance(event, ToolCallsDetected):
            new_state = replace(
                state,
                pending_tool_calls=state.pending_tool_calls + event.calls,
            )
            return new_state, (
                _log(new_state, event, "tool_calls_collected", {
                    "names": [c.name for c in event.calls],
                    "total": len(new_state.pending_tool_calls),
                }),
            )

        if isinstance(event, StreamDone):
            if state.pending_tool_calls:
                new_state = replace(state, phase=TurnPhase.EXECUTING_TOOLS)
                return _transition(
                    state, new_state, event, "tool_calls_detected",
                    ExecuteTools(calls=state.pending_tool_calls),
                )
            new_state = replace(state, phase=TurnPhase.FINALIZED)
            return _finalize(state, new_state, event, "stream_done")

        return _ignore(state, event, "unexpected_while_streaming")

    # ------------------------------------------------------------------
    # EXECUTING_TOOLS
    # ------------------------------------------------------------------
    if state.phase is TurnPhase.EXECUTING_TOOLS:
        if isinstance(event, ToolsExecuted):
            completed = sum(
                1 for r in event.records if r.status is ToolCallStatus.COMPLETED
            )
            new_state = replace(
                state,
                tool_records=event.records,
                pending_tool_calls=(),
            )

            if completed:
                new_state = replace(new_state, phase=TurnPhase.FOLLOW_UP)
                return _transition(
                    state, new_state, event, "tools_executed",
                    StartFollowUp(),
                    _log(new_state, event, "tools_executed", {
                        "completed": completed,
                        "failed": len(event.records) - completed,
                    }),
                )

            # No successful call: nothing new to tell the model
            new_state = replace(new_state, phase=TurnPhase.FINALIZED)
            new_state, cmds = _finalize(state, new_state, event, "no_tool_succeeded")
            return new_state, _logs_last(cmds + (
                _log(new_state, event, "follow_up_skipped", {
                    "failed": len(event.records),
                }),
            ))

        return _ignore(state, event, "unexpected_while_executing_tools")

    # ------------------------------------------------------------------
    # FOLLOW_UP (post-tool response, tools disabled)
    # ------------------------------------------------------------------
    if state.phase is TurnPhase.FOLLOW_UP:
        if isinstance(event, ContentDelta):
            follow_up = state.follow_up_text + event.delta
            return replace(
                state,
                follow_up_text=follow_up,
                parsed=parse_reasoning(_follow_up_buffer(state.initial_text, follow_up)),
            ), ()

        if isinstance(event, ToolCallsDetected):
            return _ignore(state, event, "tools_disabled_on_follow_up")

        if isinstance(event, StreamDone):
            new_state = replace(state, phase=TurnPhase.FINALIZED)
            return _finalize(state, new_state, event, "follow_up_done")

        return _ignore(state, event, "unexpected_during_follow_up")

    return _ignore(state, event, "unhandled_phase")
