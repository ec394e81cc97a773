# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

from observability import metrics


def test_timed_emits_one_metric(log_lines: list[dict[str, Any]]) -> None:
    with metrics.timed("llm_stream", conversation_id=7, turn_id="t1", details={"tools": 2}):
        pass

    assert len(log_lines) == 1
    event = log_lines[0]
    assert event["event_type"] == "METRIC_TIMER"
    assert event["metric"] == "llm_stream"
    assert event["outcome"] == "ok"
    assert event["conversation_id"] == 7
    assert event["turn_id"] == "t1"
    assert event["details"] == {"tools": 2}
    assert event["marks_ms"] == {}
    assert event["value_ms"] >= 0


def test_marks_keep_first_occurrence(log_lines: list[dict[str, Any]]) -> None:
    with metrics.timed("llm_stream") as timer:
        timer.mark("first_chunk")
        first = timer.marks["first_chunk"]
        timer.mark("first_chunk")

    assert timer.marks == {"first_chunk": first}
    assert log_lines[0]["marks_ms"] == {"first_chunk": first}


def test_timed_reports_exception_and_reraises(log_lines: list[dict[str, Any]]) -> None:
    before = metrics.active_timer_count()

    with pytest.raises(RuntimeError):
        with metrics.timed("tool_call"):
            assert metrics.active_timer_count() == before + 1
            raise RuntimeError("boom")

    assert metrics.active_timer_count() == before
    assert [(e["metric"], e["outcome"]) for e in log_lines] == [("tool_call", "RuntimeError")]
