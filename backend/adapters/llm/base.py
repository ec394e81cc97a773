"""
LLM adapter contract.

Purpose:
- Define the interface for streaming chat completions with tool calls.
- Define the chunk / tool-call value types crossing that boundary.
- Keep all orchestration, retries, parsing and turn state OUT of the
  adapter.

Rules:
- No retries.
- No reasoning/answer parsing.
- No knowledge of turns, conversations or UI.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator

if TYPE_CHECKING:
    from orchestrator.cancellation import CancellationToken


class ProviderRequestError(Exception):
    """Network or model failure while requesting / streaming a completion."""


# =============================================================================
# Stream Values
# =============================================================================

@dataclass(frozen=True)
class ToolCallRequest:
    """
    A complete tool call requested by the model.

    name is the qualified tool name the model echoes back
    (see orchestrator.tool_names).

    argument_error is set when the streamed arguments were not a JSON
    object; such a call is recorded as failed and never dispatched.
    """
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str = ""
    argument_error: str = ""

    @property
    def call_id(self) -> str:
        return self.id or f"call_{self.name}"

    def to_assistant_message(self, content: str = "") -> dict[str, Any]:
        """Assistant message announcing this single call (provider format)."""
        return {
            "role": "assistant",
            "content": content,
            "tool_calls": [{
                "id": self.call_id,
                "type": "function",
                "function": {
                    "name": self.name,
                    "arguments": json.dumps(self.arguments),
                },
            }],
        }

    def to_tool_message(self, result: str) -> dict[str, Any]:
        """Tool-result message answering this call (provider format)."""
        return {
            "role": "tool",
            "tool_call_id": self.call_id,
            "content": result,
        }


@dataclass(frozen=True)
class StreamChunk:
    """
    One element of a provider stream.

    content:     incremental text delta (never a full snapshot)
    tool_calls:  complete tool calls surfaced with this chunk
    done:        provider signalled completion; no further chunks follow
    """
    content: str = ""
    tool_calls: tuple[ToolCallRequest, ...] = ()
    done: bool = False


# =============================================================================
# Adapter
# =============================================================================

class LLMAdapter(ABC):
    """
    Abstract base class for streaming chat adapters.

    The adapter is a *dumb pipe*:
    messages (+ tools) -> vendor -> StreamChunk sequence.

    Orchestrator responsibilities (NOT here):
    - When to start and when to cancel
    - Context construction
    - What to do with text and tool calls
    """

    model: str

    @abstractmethod
    def stream_chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Start a streaming chat completion.

        Contract:
        - Yields zero or more StreamChunk, the last one with done=True
          unless the token was cancelled.
        - Finite, consumed once, not restartable.
        - Checks `cancel_token` between yields and stops quietly when set.
        - Raises ProviderRequestError on vendor failure; never retries.
        - `tools` omitted or empty means the model is offered no tools.
        """
        raise NotImplementedError
