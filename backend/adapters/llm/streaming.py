"""OpenAI-compatible streaming chat adapter"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, AsyncIterator

from openai import AsyncOpenAI, OpenAIError

from adapters.llm.base import (
    LLMAdapter,
    ProviderRequestError,
    StreamChunk,
    ToolCallRequest,
)
from constants import OLLAMA_PLACEHOLDER_API_KEY
from observability.logger import log_event

if TYPE_CHECKING:
    from orchestrator.cancellation import CancellationToken


@dataclass
class _PartialToolCall:
    """Tool call being reassembled from indexed stream fragments."""
    id: str = ""
    name: str = ""
    argument_parts: list[str] = field(default_factory=list)

    def complete(self) -> ToolCallRequest:
        """Bad arguments stay on this call; siblings are unaffected."""
        raw = "".join(self.argument_parts).strip()
        try:
            arguments = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            return self._malformed(f"malformed_tool_call: {exc}")
        if not isinstance(arguments, dict):
            return self._malformed("malformed_tool_call: arguments must be an object")
        return ToolCallRequest(name=self.name, arguments=arguments, id=self.id)

    def _malformed(self, error: str) -> ToolCallRequest:
        log_event({
            "event_type": "llm_tool_call_malformed",
            "level": "WARNING",
            "tool_call": self.name,
            "error": error,
        })
        return ToolCallRequest(name=self.name, id=self.id, argument_error=error)


class OpenAIChatAdapter(LLMAdapter):
    """
    Concrete streaming adapter over the OpenAI chat-completions API.

    Works against OpenAI itself and any OpenAI-compatible server
    (Ollama exposes one at /v1).

    Design notes:
    - One adapter instance serves many sequential requests.
    - Tool calls stream as indexed fragments (id/name first, arguments
      split across chunks); they are reassembled here and surfaced as
      complete ToolCallRequest values on the chunk that finishes them.
    - Adapter does NOT:
        - Retry
        - Parse reasoning
        - Decide orchestration outcomes
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAI,
        model: str,
        provider: str = "ollama",
    ) -> None:
        """
        Args:
            client:
                Vendor client (AsyncOpenAI, optionally with a base_url).
            model:
                Model identifier string.
            provider:
                Provider label for logging only.
        """
        self._client = client
        self.model = model
        self._provider = provider

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def stream_chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[StreamChunk]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": True,
        }
        if tools:
            kwargs["tools"] = tools

        log_event({
            "event_type": "llm_request_started",
            "provider": self._provider,
            "model": self.model,
            "message_count": len(messages),
            "tool_count": len(tools or ()),
        })

        try:
            stream = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ProviderRequestError(f"{type(exc).__name__}: {exc}") from exc

        partials: dict[int, _PartialToolCall] = {}
        try:
            async for chunk in stream:
                if cancel_token is not None and cancel_token.cancelled:
                    return

                content, finished = self._absorb(chunk, partials)

                ready: tuple[ToolCallRequest, ...] = ()
                if finished and partials:
                    ready = self._drain(partials)

                if content or ready or finished:
                    yield StreamChunk(content=content, tool_calls=ready, done=finished)
                if finished:
                    return

            # Stream ended without finish_reason (some local servers)
            if cancel_token is None or not cancel_token.cancelled:
                yield StreamChunk(tool_calls=self._drain(partials), done=True)

        except OpenAIError as exc:
            raise ProviderRequestError(f"{type(exc).__name__}: {exc}") from exc

        finally:
            await stream.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _absorb(chunk: Any, partials: dict[int, _PartialToolCall]) -> tuple[str, bool]:
        """
        Fold one vendor chunk (OpenAI format) into `partials`.

        Returns (text delta, finished).
        """
        try:
            choice = chunk.choices[0]
        except (AttributeError, IndexError):
            return "", False

        delta = choice.delta
        content = getattr(delta, "content", None) or ""

        for fragment in getattr(delta, "tool_calls", None) or ():
            index = fragment.index if fragment.index is not None else len(partials)
            partial = partials.setdefault(index, _PartialToolCall())
            if fragment.id:
                partial.id = fragment.id
            function = fragment.function
            if function is not None:
                if function.name:
                    partial.name += function.name
                if function.arguments:
                    partial.argument_parts.append(function.arguments)

        return content, choice.finish_reason is not None

    @staticmethod
    def _drain(partials: dict[int, _PartialToolCall]) -> tuple[ToolCallRequest, ...]:
        """Complete and clear reassembled calls, in index order."""
        ready = tuple(partials[i].complete() for i in sorted(partials))
        partials.clear()
        return ready


def build_llm_client(*, api_key: str | None, base_url: str | None) -> AsyncOpenAI:
    """Build the vendor client; local servers get a placeholder key."""
    return AsyncOpenAI(api_key=api_key or OLLAMA_PLACEHOLDER_API_KEY, base_url=base_url)
