"""
Tool execution coordinator.

Responsibilities:
- Execute a batch of model-requested tool calls, strictly sequentially,
  in the order received
- Record one ToolCallRecord per call (completed or error)
- Extend the provider continuation with one (assistant tool-call,
  tool result) message pair per SUCCESSFUL call, in call order

Non-responsibilities:
- NO retries
- NO turn state (the orchestrator stores the records)
- NO follow-up request

Failed calls are never reported in-band: the model is not told a failed
call succeeded, nor that it failed. Only the records reflect it.
"""

from __future__ import annotations

import json
import time
from typing import Any, Sequence

from adapters.llm.base import ToolCallRequest
from adapters.tools.base import ToolExecutionError, ToolSubsystem
from context.conversation import ToolCallRecord
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.cancellation import CancellationToken
from orchestrator.enums.tool_status import ToolCallStatus
from orchestrator.tool_names import CodecError, decode_tool_name


def serialize_tool_result(result: Any) -> str:
    """Strings pass through; anything else is JSON-encoded."""
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)


class ToolExecutionCoordinator:
    """
    Sequential dispatcher from qualified tool calls to the tool subsystem.

    Guarantees:
    - Calls run one at a time, never concurrently
    - The returned records match the input order exactly
    - A failing call never aborts the batch
    - A cancellation observed between calls stops the batch; calls already
      in flight are allowed to finish
    """

    def __init__(
        self,
        *,
        tools: ToolSubsystem,
        conversation_id: int | None = None,
    ) -> None:
        self._tools = tools
        self._conversation_id = conversation_id

    async def execute(
        self,
        calls: Sequence[ToolCallRequest],
        continuation: list[dict[str, Any]],
        *,
        assistant_content: str = "",
        cancel_token: CancellationToken | None = None,
        turn_id: str | None = None,
    ) -> list[ToolCallRecord]:
        """
        Execute `calls` and extend `continuation` in place.

        Args:
            calls:
                Tool calls in the order the model issued them.
            continuation:
                Provider messages of the request that produced the calls.
                Successful calls append their message pair here.
            assistant_content:
                Text the model produced alongside the calls; carried on
                each assistant tool-call message.

        Returns:
            One record per executed call, in call order.
        """
        records: list[ToolCallRecord] = []

        for call in calls:
            if cancel_token is not None and cancel_token.cancelled:
                log_event({
                    "event_type": "tool_batch_stopped",
                    "conversation_id": self._conversation_id,
                    "turn_id": turn_id,
                    "executed": len(records),
                    "remaining": len(calls) - len(records),
                })
                break

            record = await self._execute_one(call, turn_id=turn_id)
            records.append(record)

            if record.status is ToolCallStatus.COMPLETED:
                continuation.append(call.to_assistant_message(assistant_content))
                continuation.append(call.to_tool_message(record.result))

        return records

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _execute_one(
        self,
        call: ToolCallRequest,
        *,
        turn_id: str | None,
    ) -> ToolCallRecord:
        started_at = time.time()

        try:
            provider, tool = decode_tool_name(call.name)
        except CodecError as exc:
            return self._failed(call, "", call.name, str(exc), started_at, turn_id)

        if call.argument_error:
            return self._failed(call, provider, tool, call.argument_error, started_at, turn_id)

        try:
            with timed(
                "tool_call",
                conversation_id=self._conversation_id,
                turn_id=turn_id,
                details={"provider": provider, "tool": tool},
            ):
                result = await self._tools.invoke(provider, tool, dict(call.arguments))
        except ToolExecutionError as exc:
            return self._failed(call, provider, tool, str(exc), started_at, turn_id)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Tool plugins are third-party code; any failure is per-call
            return self._failed(
                call, provider, tool, f"{type(exc).__name__}: {exc}", started_at, turn_id
            )

        log_event({
            "event_type": "tool_call_completed",
            "conversation_id": self._conversation_id,
            "turn_id": turn_id,
            "provider": provider,
            "tool": tool,
        })

        return ToolCallRecord(
            id=call.name,
            provider=provider,
            tool=tool,
            arguments=dict(call.arguments),
            status=ToolCallStatus.COMPLETED,
            result=serialize_tool_result(result),
            started_at=started_at,
            ended_at=time.time(),
        )

    def _failed(
        self,
        call: ToolCallRequest,
        provider: str,
        tool: str,
        error: str,
        started_at: float,
        turn_id: str | None,
    ) -> ToolCallRecord:
        log_event({
            "event_type": "tool_call_failed",
            "level": "WARNING",
            "conversation_id": self._conversation_id,
            "turn_id": turn_id,
            "tool_call_id": call.name,
            "error": error,
        })
        return ToolCallRecord(
            id=call.name,
            provider=provider,
            tool=tool,
            arguments=dict(call.arguments),
            status=ToolCallStatus.ERROR,
            result="",
            error=error,
            started_at=started_at,
            ended_at=time.time(),
        )
