"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout (v1)
- No buffering, no batching
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

_min_level: int = LEVELS["INFO"]


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests, swappable in later phases)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print


def set_min_level(level: str) -> None:
    """
    Drop events whose "level" is below `level`.

    Unknown level names fall back to INFO.
    """
    global _min_level  # pylint: disable=global-statement
    _min_level = LEVELS.get(level.upper(), LEVELS["INFO"])


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller is responsible for:
    - Supplying a fully-formed event dict
    - Including event_type, conversation_id, turn_id, etc.

    This function:
    - Adds ts_ms (wall clock) if the caller did not
    - Skips events below the configured minimum level
      (events without "level" are INFO)
    - Serializes to JSON
    - Writes exactly one line
    - Never raises
    """
    level = LEVELS.get(str(event.get("level", "INFO")).upper(), LEVELS["INFO"])
    if level < _min_level:
        return

    payload: dict[str, Any] = dict(event)
    payload.setdefault("ts_ms", int(time.time() * 1000))

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback: logging must never crash the runtime
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
