"""
Tool-call execution status enumeration.
"""

from __future__ import annotations

from enum import Enum


class ToolCallStatus(str, Enum):
    """
    Outcome of a single tool call.

    PENDING:
        Requested by the model, not yet executed.
    COMPLETED:
        Tool returned a result; the result was fed back to the model.
    ERROR:
        Decoding or execution failed; the model is NOT told about it.
    """

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"
