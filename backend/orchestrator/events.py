"""
Turn event definitions for the orchestrator reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no async, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from adapters.llm.base import ToolCallRequest
from context.conversation import ToolCallRecord


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (phase, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Turn lifecycle
    # ------------------------------------------------------------------
    TURN_SUBMITTED = "TURN_SUBMITTED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"

    # ------------------------------------------------------------------
    # Provider stream
    # ------------------------------------------------------------------
    CONTENT_DELTA = "CONTENT_DELTA"
    TOOL_CALLS_DETECTED = "TOOL_CALLS_DETECTED"
    STREAM_DONE = "STREAM_DONE"
    PROVIDER_FAILED = "PROVIDER_FAILED"

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------
    TOOLS_EXECUTED = "TOOLS_EXECUTED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Lifecycle Events
# =============================================================================

@dataclass(frozen=True)
class TurnSubmitted(Event):
    """Provider request for the turn is about to be issued."""


@dataclass(frozen=True)
class CancelRequested(Event):
    """Caller cancelled the turn."""
    reason: str = "cancelled"


# =============================================================================
# Provider Stream Events
# =============================================================================

@dataclass(frozen=True)
class ContentDelta(Event):
    """Incremental text from the provider (never a snapshot)."""
    delta: str


@dataclass(frozen=True)
class ToolCallsDetected(Event):
    """Complete tool calls surfaced by a stream chunk."""
    calls: tuple[ToolCallRequest, ...]


@dataclass(frozen=True)
class StreamDone(Event):
    """Provider signalled completion of the current stream."""


@dataclass(frozen=True)
class ProviderFailed(Event):
    """Provider request or stream failed."""
    reason: str


# =============================================================================
# Tool Events
# =============================================================================

@dataclass(frozen=True)
class ToolsExecuted(Event):
    """Coordinator finished the batch; one record per executed call."""
    records: tuple[ToolCallRecord, ...]
