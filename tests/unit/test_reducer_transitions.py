"""
Reducer-only guarantees for the single-turn state machine.

- Happy paths (with and without tools)
- Terminal gating (no writes after cancel / failure / finalize)
- Every decision is observable as a LogEvent
"""

from typing import Any

from adapters.llm.base import ToolCallRequest
from context.conversation import ToolCallRecord
from orchestrator.commands import (
    CommandType,
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
    EventType,
    ProviderFailed,
    StreamDone,
    ToolCallsDetected,
    ToolsExecuted,
    TurnSubmitted,
)
from orchestrator.reducer import add_cancellation_marker, reduce
from orchestrator.state_dataclass import TurnState


CALL = ToolCallRequest("Calendar_check_calendar", {"date": "2024-05-01"}, id="c1")


def _submitted() -> TurnSubmitted:
    return TurnSubmitted(event_type=EventType.TURN_SUBMITTED, ts_ms=0)


def _delta(text: str) -> ContentDelta:
    return ContentDelta(event_type=EventType.CONTENT_DELTA, ts_ms=1, delta=text)


def _done() -> StreamDone:
    return StreamDone(event_type=EventType.STREAM_DONE, ts_ms=2)


def _cancel() -> CancelRequested:
    return CancelRequested(event_type=EventType.CANCEL_REQUESTED, ts_ms=3)


def _record(status: ToolCallStatus) -> ToolCallRecord:
    return ToolCallRecord(
        id=CALL.name,
        provider="Calendar",
        tool="check_calendar",
        arguments=dict(CALL.arguments),
        status=status,
        result="{}" if status is ToolCallStatus.COMPLETED else "",
        error=None if status is ToolCallStatus.COMPLETED else "boom",
    )


def _run(state: TurnState, *events: Any) -> tuple[TurnState, list[Any]]:
    commands: list[Any] = []
    for event in events:
        state, cmds = reduce(state, event)
        commands.extend(cmds)
    return state, commands


def _streaming() -> TurnState:
    state, _ = reduce(TurnState(turn_id="t1"), _submitted())
    return state


def _non_logs(commands: list[Any]) -> list[Any]:
    return [c for c in commands if not isinstance(c, LogEvent)]


def _decisions(commands: list[Any]) -> list[str]:
    return [c.event["decision"] for c in commands if isinstance(c, LogEvent)]


def test_submit_starts_streaming() -> None:
    state, cmds = reduce(TurnState(turn_id="t1"), _submitted())

    assert state.phase is TurnPhase.STREAMING
    assert len(cmds) == 1
    assert cmds[0].event["decision"] == "state_changed"
    assert cmds[0].event["details"] == {
        "from_phase": "IDLE",
        "to_phase": "STREAMING",
        "source": "turn_submitted",
    }


def test_deltas_accumulate_and_reparse() -> None:
    state, cmds = _run(_streaming(), _delta("<think>plan"), _delta("</think>Hel"))

    assert cmds == []
    assert state.initial_text == "<think>plan</think>Hel"
    assert state.parsed.reasoning == "plan"
    assert state.content == "Hel"
    assert not state.reasoning_open

    state, _ = reduce(state, _delta("lo <think>more"))
    assert state.content == "Hello"
    assert state.reasoning_open


def test_stream_done_without_tools_finalizes() -> None:
    state, cmds = _run(_streaming(), _delta("Hi"), _done())

    assert state.phase is TurnPhase.FINALIZED
    assert state.content == "Hi"
    assert not state.reasoning_open
    assert _non_logs(cmds) == [FinalizeTurn(phase=TurnPhase.FINALIZED)]
    # Side effects first, logs last
    assert isinstance(cmds[0], FinalizeTurn)


def test_tool_calls_from_any_chunk_are_collected() -> None:
    detected = ToolCallsDetected(
        event_type=EventType.TOOL_CALLS_DETECTED, ts_ms=1, calls=(CALL,)
    )
    state, cmds = _run(_streaming(), detected, _delta("Let me check."), detected, _done())

    assert state.phase is TurnPhase.EXECUTING_TOOLS
    assert _non_logs(cmds) == [ExecuteTools(calls=(CALL, CALL))]
    assert _decisions(cmds).count("tool_calls_collected") == 2


def _executing() -> TurnState:
    detected = ToolCallsDetected(
        event_type=EventType.TOOL_CALLS_DETECTED, ts_ms=1, calls=(CALL,)
    )
    state, _ = _run(_streaming(), _delta("Let me check."), detected, _done())
    return state


def test_successful_tools_start_follow_up() -> None:
    executed = ToolsExecuted(
        event_type=EventType.TOOLS_EXECUTED,
        ts_ms=4,
        records=(_record(ToolCallStatus.ERROR), _record(ToolCallStatus.COMPLETED)),
    )
    state, cmds = reduce(_executing(), executed)

    assert state.phase is TurnPhase.FOLLOW_UP
    assert state.pending_tool_calls == ()
    assert len(state.tool_records) == 2
    assert _non_logs(list(cmds)) == [StartFollowUp()]


def test_all_tools_failed_skips_follow_up() -> None:
    executed = ToolsExecuted(
        event_type=EventType.TOOLS_EXECUTED,
        ts_ms=4,
        records=(_record(ToolCallStatus.ERROR),),
    )
    state, cmds = reduce(_executing(), executed)

    assert state.phase is TurnPhase.FINALIZED
    assert state.content == "Let me check."
    assert _non_logs(list(cmds)) == [FinalizeTurn(phase=TurnPhase.FINALIZED)]
    assert "follow_up_skipped" in _decisions(list(cmds))


def test_follow_up_answer_parses_combined_buffer() -> None:
    executed = ToolsExecuted(
        event_type=EventType.TOOLS_EXECUTED,
        ts_ms=4,
        records=(_record(ToolCallStatus.COMPLETED),),
    )
    late_calls = ToolCallsDetected(
        event_type=EventType.TOOL_CALLS_DETECTED, ts_ms=5, calls=(CALL,)
    )
    state, cmds = _run(
        _executing(),
        executed,
        _delta("<think>ok</think>You are "),
        late_calls,
        _delta("free at 3."),
        _done(),
    )

    assert state.phase is TurnPhase.FINALIZED
    assert state.follow_up_text == "<think>ok</think>You are free at 3."
    assert state.content == "Let me check.\n\nYou are free at 3."
    assert state.parsed.reasoning == "ok"
    # Tools are disabled on the follow-up
    assert "ignore" in _decisions(cmds)
    assert not any(c.command_type is CommandType.EXECUTE_TOOLS for c in cmds)


def test_cancel_appends_marker_once_and_gates_everything() -> None:
    state, cmds = _run(_streaming(), _delta("Hello"), _cancel())

    assert state.phase is TurnPhase.CANCELLED
    assert state.content == "Hello [Cancelled]"
    assert _non_logs(cmds) == [FinalizeTurn(phase=TurnPhase.CANCELLED)]

    after, late = _run(state, _cancel(), _delta(" world"), _done())
    assert after is state
    assert _non_logs(late) == []
    assert _decisions(late) == ["ignore", "ignore", "ignore"]
    assert late[0].event["details"] == {"reason": "turn_cancelled"}


def test_cancel_during_tool_execution() -> None:
    state, _ = reduce(_executing(), _cancel())

    assert state.phase is TurnPhase.CANCELLED
    assert state.content == "Let me check. [Cancelled]"

    executed = ToolsExecuted(
        event_type=EventType.TOOLS_EXECUTED,
        ts_ms=9,
        records=(_record(ToolCallStatus.COMPLETED),),
    )
    after, cmds = reduce(state, executed)
    assert after is state
    assert _non_logs(list(cmds)) == []


def test_provider_failure_replaces_content() -> None:
    failed = ProviderFailed(event_type=EventType.PROVIDER_FAILED, ts_ms=5, reason="timeout")
    state, cmds = _run(_streaming(), _delta("partial"), failed)

    assert state.phase is TurnPhase.FAILED
    assert state.content == "Error: timeout"
    assert state.last_error == "timeout"
    assert _non_logs(cmds) == [FinalizeTurn(phase=TurnPhase.FAILED)]
    assert "provider_failed" in _decisions(cmds)


def test_provider_failure_without_message() -> None:
    failed = ProviderFailed(event_type=EventType.PROVIDER_FAILED, ts_ms=5, reason="")
    state, _ = reduce(_streaming(), failed)

    assert state.content == "Error: An unknown error occurred"


def test_idle_ignores_everything_but_submit() -> None:
    idle = TurnState(turn_id="t1")
    failed = ProviderFailed(event_type=EventType.PROVIDER_FAILED, ts_ms=5, reason="x")

    for event in (_delta("x"), _done(), failed):
        state, cmds = reduce(idle, event)
        assert state is idle
        assert _decisions(list(cmds)) == ["ignore"]


def test_log_events_carry_turn_id() -> None:
    _, cmds = _run(_streaming(), _delta("Hi"), _done())

    for cmd in cmds:
        if isinstance(cmd, LogEvent):
            assert cmd.event["turn_id"] == "t1"
            assert "phase" in cmd.event


def test_add_cancellation_marker_is_idempotent() -> None:
    once = add_cancellation_marker("Hello")
    assert once == "Hello [Cancelled]"
    assert add_cancellation_marker(once) == once
    assert add_cancellation_marker("") == " [Cancelled]"
