"""
Timing metrics for chat turns.

Responsibilities:
- Measure provider streams and tool calls with monotonic time
- Record intra-measurement marks (e.g. first streamed chunk)
- Emit exactly one METRIC_TIMER event per measurement via observability.logger

Non-responsibilities:
- No aggregation, histograms or exporters: one metric = one log event
- No knowledge of the reducer or turn phases
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from observability.logger import log_event


_live_timers: int = 0


def _elapsed_ms(start_ns: int) -> int:
    return (time.monotonic_ns() - start_ns) // 1_000_000


@dataclass
class Timer:
    """
    Handle yielded by timed().

    marks:
        label -> ms since start, first occurrence only (a streamed answer
        has exactly one "first_chunk").
    """
    name: str
    start_ns: int = field(default_factory=time.monotonic_ns)
    marks: dict[str, int] = field(default_factory=dict)

    def mark(self, label: str) -> None:
        self.marks.setdefault(label, _elapsed_ms(self.start_ns))

    def elapsed_ms(self) -> int:
        return _elapsed_ms(self.start_ns)


def active_timer_count() -> int:
    """Measurements entered but not yet exited (leak check for tests)."""
    return _live_timers


@contextmanager
def timed(
    name: str,
    *,
    conversation_id: int | None = None,
    turn_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[Timer]:
    """
    Measure the enclosed block.

    Guarantees:
    - The metric is emitted exactly once, also when the block raises
    - outcome is "ok", or the exception type name (the exception propagates)

    Usage:
        with timed("llm_stream", conversation_id=..., turn_id=...) as timer:
            async for chunk in stream:
                timer.mark("first_chunk")
    """
    global _live_timers  # pylint: disable=global-statement

    timer = Timer(name=name)
    outcome = "ok"
    _live_timers += 1
    try:
        yield timer
    except BaseException as exc:
        outcome = type(exc).__name__
        raise
    finally:
        _live_timers -= 1
        log_event({
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": timer.elapsed_ms(),
            "marks_ms": dict(timer.marks),
            "outcome": outcome,
            "conversation_id": conversation_id,
            "turn_id": turn_id,
            "details": details or {},
        })
